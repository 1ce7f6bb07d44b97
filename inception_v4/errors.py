"""Exceptions raised while loading and querying Inception V4 labels."""


class InceptionV4Error(Exception):
    """Base class for errors raised by this package."""


class ResourceLoadError(InceptionV4Error, OSError):
    """The label resource could not be opened, read or decoded."""


class LabelTableLoadError(InceptionV4Error, RuntimeError):
    """The label resource was read but does not hold the expected entries."""


class LabelNotFoundError(InceptionV4Error, IndexError):
    """A label lookup used an index outside the table."""
