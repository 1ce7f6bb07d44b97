import io

import pytest
import torch

from inception_v4.errors import LabelNotFoundError, LabelTableLoadError, ResourceLoadError
from inception_v4.labels import LABEL_COUNT, LABELS_PATH_ENV, InceptionV4Labels, default_labels_path


class TrackingStream(io.BytesIO):
    """BytesIO that remembers whether it was closed."""

    was_closed = False

    def close(self):
        self.was_closed = True
        super().close()


class FailingStream(TrackingStream):
    def read(self, *args):
        raise OSError("disk went away")


def make_lines(count):
    lines = ["cat", "dog"] + [f"class {i}" for i in range(2, count)]
    return lines[:count]


def make_stream(lines, trailing_newline=True, newline="\n"):
    text = newline.join(lines) + (newline if trailing_newline else "")
    return TrackingStream(text.encode("utf-8"))


@pytest.fixture
def lines():
    return make_lines(LABEL_COUNT)


@pytest.fixture
def labels(lines):
    return InceptionV4Labels(make_stream(lines))


@pytest.mark.parametrize("trailing_newline", [True, False])
def test_every_index_maps_to_its_line(lines, trailing_newline):
    """Test that each index returns the matching line, with or without a final newline"""
    labels = InceptionV4Labels(make_stream(lines, trailing_newline=trailing_newline))

    assert len(labels) == LABEL_COUNT
    for index, line in enumerate(lines):
        assert labels.get_label(index) == line


def test_first_labels(labels):
    assert labels.get_label(0) == "cat"
    assert labels.get_label(1) == "dog"


def test_crlf_resource_loads_without_carriage_returns(lines):
    labels = InceptionV4Labels(make_stream(lines, newline="\r\n"))
    assert labels.get_label(0) == "cat"
    assert labels.get_label(LABEL_COUNT - 1) == lines[-1]


def test_utf8_labels_are_decoded(lines):
    lines[5] = "crème brûlée"
    labels = InceptionV4Labels(make_stream(lines))
    assert labels.get_label(5) == "crème brûlée"


@pytest.mark.parametrize("count", [0, 1, 1000, 1002])
def test_wrong_line_count_fails(count):
    """Test that a resource without exactly 1001 labels is rejected"""
    with pytest.raises(LabelTableLoadError):
        InceptionV4Labels(make_stream(make_lines(count)))


def test_extra_blank_line_is_an_entry(lines):
    # Two trailing newlines leave an empty 1002nd line
    stream = TrackingStream(("\n".join(lines) + "\n\n").encode("utf-8"))
    with pytest.raises(LabelTableLoadError):
        InceptionV4Labels(stream)


def test_empty_label_fails(lines):
    lines[10] = ""
    with pytest.raises(LabelTableLoadError):
        InceptionV4Labels(make_stream(lines))


def test_invalid_utf8_fails_as_resource_error():
    stream = TrackingStream(b"\xff\xfe\n" * LABEL_COUNT)
    with pytest.raises(ResourceLoadError):
        InceptionV4Labels(stream)
    assert stream.was_closed


def test_read_failure_fails_as_resource_error():
    stream = FailingStream()
    with pytest.raises(ResourceLoadError) as excinfo:
        InceptionV4Labels(stream)
    assert isinstance(excinfo.value, OSError)
    assert stream.was_closed


def test_stream_closed_on_success(lines):
    stream = make_stream(lines)
    InceptionV4Labels(stream)
    assert stream.was_closed


def test_stream_closed_on_integrity_failure():
    stream = make_stream(make_lines(1000))
    with pytest.raises(LabelTableLoadError):
        InceptionV4Labels(stream)
    assert stream.was_closed


@pytest.mark.parametrize("index", [-1, 1001, 5000])
def test_out_of_range_lookup_fails(labels, index):
    with pytest.raises(LabelNotFoundError):
        labels.get_label(index)


def test_failed_lookup_leaves_table_usable(labels):
    with pytest.raises(LabelNotFoundError):
        labels.get_label(1001)
    assert labels.get_label(1000) == f"class {1000}"


def test_repeated_lookup_is_identical(labels):
    first = labels.get_label(42)
    for _ in range(5):
        assert labels.get_label(42) is first


def test_labels_mapping_is_read_only(labels):
    with pytest.raises(TypeError):
        labels.labels[0] = "mouse"
    assert labels.get_label(0) == "cat"


def test_from_path(tmp_path, lines):
    path = tmp_path / "inceptionv4classes.txt"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    labels = InceptionV4Labels.from_path(path)
    assert labels.get_label(1) == "dog"


def test_from_path_uses_environment_override(tmp_path, lines, monkeypatch):
    path = tmp_path / "custom_classes.txt"
    path.write_text("\n".join(lines), encoding="utf-8")
    monkeypatch.setenv(LABELS_PATH_ENV, str(path))

    labels = InceptionV4Labels.from_path()
    assert labels.get_label(0) == "cat"


def test_from_missing_path_fails(tmp_path):
    with pytest.raises(ResourceLoadError):
        InceptionV4Labels.from_path(tmp_path / "missing.txt")


def test_decode_predictions_single_row(labels):
    scores = torch.zeros(LABEL_COUNT)
    scores[1] = 3.0
    scores[0] = 2.0
    scores[7] = 1.0

    decoded = labels.decode_predictions(scores, top_k=3)

    assert [(index, label) for index, label, _ in decoded] == [(1, "dog"), (0, "cat"), (7, "class 7")]
    assert decoded[0][2] == pytest.approx(3.0)


def test_decode_predictions_batch(labels):
    scores = torch.zeros(2, LABEL_COUNT)
    scores[0, 0] = 1.0
    scores[1, 1] = 1.0

    decoded = labels.decode_predictions(scores, top_k=1)

    assert len(decoded) == 2
    assert decoded[0][0][1] == "cat"
    assert decoded[1][0][1] == "dog"


def test_decode_predictions_rejects_wrong_class_count(labels):
    with pytest.raises(ValueError):
        labels.decode_predictions(torch.zeros(2, 10))


@pytest.mark.parametrize("top_k", [0, LABEL_COUNT + 1])
def test_decode_predictions_rejects_bad_top_k(labels, top_k):
    with pytest.raises(ValueError):
        labels.decode_predictions(torch.zeros(LABEL_COUNT), top_k=top_k)


@pytest.mark.parametrize("index", [True, False, 1.0, "1", None])
def test_non_integer_lookup_fails(labels, index):
    with pytest.raises(LabelNotFoundError):
        labels.get_label(index)


def test_default_path_resolves_against_working_directory(tmp_path, lines, monkeypatch):
    (tmp_path / "inceptionv4classes.txt").write_text("\n".join(lines), encoding="utf-8")
    monkeypatch.delenv(LABELS_PATH_ENV, raising=False)
    monkeypatch.chdir(tmp_path)

    assert default_labels_path() == "inceptionv4classes.txt"
    assert InceptionV4Labels.from_path().get_label(1) == "dog"
