"""Class labels for the pretrained Inception V4 classifier."""

import logging
import os
from types import MappingProxyType

import torch

from inception_v4.errors import LabelNotFoundError, LabelTableLoadError, ResourceLoadError

logger = logging.getLogger(__name__)

LABELS_RESOURCE_NAME = "inceptionv4classes.txt"
LABELS_PATH_ENV = "INCEPTION_V4_LABELS_PATH"
LABEL_COUNT = 1001


def default_labels_path():
    """Return the label resource path, honouring the environment override.

    Without ``INCEPTION_V4_LABELS_PATH`` set this is the bare resource name,
    which resolves against the current working directory.
    """
    return os.getenv(LABELS_PATH_ENV, LABELS_RESOURCE_NAME)


def _split_lines(text):
    lines = text.split("\n")
    # A final newline terminates the last line, it does not start a new one
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


class InceptionV4Labels:
    """Immutable mapping from Inception V4 output index to class name.

    The table is read from a binary stream holding one UTF-8 label per line.
    The stream is closed once it has been read, whether or not loading
    succeeds.

    Args:
        stream: Readable binary stream with exactly 1001 newline-delimited labels

    Raises:
        ResourceLoadError: If the stream cannot be read or is not valid UTF-8
        LabelTableLoadError: If the stream does not hold 1001 non-empty labels
    """

    def __init__(self, stream):
        with stream:
            try:
                text = stream.read().decode("utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise ResourceLoadError(f"Unable to read Inception V4 labels: {e}") from e

        lines = _split_lines(text)
        if len(lines) != LABEL_COUNT:
            raise LabelTableLoadError(
                f"Inception V4 classification names load error: expected {LABEL_COUNT} labels, found {len(lines)}"
            )
        for index, line in enumerate(lines):
            if not line:
                raise LabelTableLoadError(f"Inception V4 classification names load error: empty label at {index}")

        self._labels = MappingProxyType(dict(enumerate(lines)))
        logger.info(f"Loaded {len(self._labels)} Inception V4 labels")

    @classmethod
    def from_path(cls, path=None):
        """Load the labels from a file, by default the configured resource path."""
        path = path if path is not None else default_labels_path()
        try:
            stream = open(path, "rb")
        except OSError as e:
            raise ResourceLoadError(f"Unable to open Inception V4 labels at {path}: {e}") from e
        return cls(stream)

    @property
    def labels(self):
        return self._labels

    def __len__(self):
        return len(self._labels)

    def get_label(self, index):
        label = None
        if isinstance(index, int) and not isinstance(index, bool):
            label = self._labels.get(index)
        if label is None:
            raise LabelNotFoundError(f"Index of: {index} is out of range")
        return label

    def decode_predictions(self, scores, top_k=5):
        """Map classifier scores to their highest scoring labels.

        Args:
            scores: Tensor of shape [1001] or [B, 1001]
            top_k: Number of labels to return per row

        Returns:
            list: For each row, ``top_k`` tuples of (index, label, score) in
            descending score order. A 1-D input returns the single row.
        """
        single = scores.dim() == 1
        if single:
            scores = scores.unsqueeze(0)
        if scores.dim() != 2 or scores.shape[-1] != LABEL_COUNT:
            raise ValueError(f"Expected scores of shape [B, {LABEL_COUNT}], got {list(scores.shape)}")
        if not 1 <= top_k <= LABEL_COUNT:
            raise ValueError(f"top_k must be between 1 and {LABEL_COUNT}, got {top_k}")

        with torch.no_grad():
            values, indices = torch.topk(scores.detach(), top_k, dim=1)

        decoded = [
            [(index, self.get_label(index), value) for index, value in zip(row_indices, row_values)]
            for row_indices, row_values in zip(indices.tolist(), values.tolist())
        ]
        return decoded[0] if single else decoded
