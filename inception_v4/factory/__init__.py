"""
Inception V4 Network Factory

This package declares the factory interface for building Inception V4
classifiers against a caller-supplied context, and a default implementation
that attaches a dense classification tail to an externally supplied trunk.
"""

from .base import InceptionV4Factory, InceptionV4Network, NetworkContext
from .default import DefaultInceptionV4Factory
from .heads import TAIL_INPUT_FEATURES, InceptionV4Tail, create_inception_v4_tail

__all__ = [
    # Factory interface
    "InceptionV4Factory",
    "DefaultInceptionV4Factory",
    # Networks
    "NetworkContext",
    "InceptionV4Network",
    "InceptionV4Tail",
    "create_inception_v4_tail",
    # Constants
    "TAIL_INPUT_FEATURES",
]
