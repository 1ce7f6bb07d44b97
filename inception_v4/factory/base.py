"""Factory interface and network container for Inception V4."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import torch
import torch.nn as nn


@dataclass
class NetworkContext:
    """Execution context a network is built against."""

    device: torch.device = field(default_factory=lambda: torch.device("cpu"))
    training: bool = False

    def apply(self, module):
        """Move ``module`` to the context device and set its train/eval mode."""
        module.to(self.device)
        module.train(self.training)
        return module


class InceptionV4Network(nn.Module):
    def __init__(self, trunk, tail=None):
        """
        Inception V4 feature trunk followed by an optional classification tail

        Args:
            trunk: Module producing features of shape [B, C] or [B, C, 1, 1]
            tail: Optional classification tail; without it the network returns features
        """
        super().__init__()
        self.trunk = trunk
        self.tail = tail

    def forward(self, pixel_values):
        features = self.trunk(pixel_values)
        features = features.view(features.shape[0], -1)
        if self.tail is None:
            return features
        return self.tail(features)

    def regularisation_penalty(self):
        if self.tail is None:
            parameter = next(self.trunk.parameters(), None)
            if parameter is None:
                return torch.zeros(())
            return torch.zeros((), dtype=parameter.dtype, device=parameter.device)
        return self.tail.regularisation_penalty()


class InceptionV4Factory(ABC):
    """Interface for a factory of Inception V4 networks.

    Every ``create_*`` method receives the :class:`NetworkContext` the
    network is built against. ``regularisation_lambda`` is the L2 penalty
    applied to the final dense layer and ``dropout_keep_probability`` the
    input dropout keep probability of that layer.
    """

    @abstractmethod
    def create_inception_v4(self, context, regularisation_lambda=0.0, dropout_keep_probability=1.0):
        """Create an Inception V4 network with the default 1001-way tail."""

    @abstractmethod
    def create_inception_v4_with_custom_tail(
        self, context, output_features, weights, biases, regularisation_lambda=0.0, dropout_keep_probability=1.0
    ):
        """Create an Inception V4 network whose tail has ``output_features`` outputs and the given parameters."""

    @abstractmethod
    def create_inception_v4_tail(
        self, context, output_neuron_count, weights, biases, regularisation_lambda=0.0, dropout_keep_probability=1.0
    ):
        """Create only the tail of an Inception V4 network, with a custom output neuron count."""

    @abstractmethod
    def create_inception_v4_without_tail(self, context):
        """Create an Inception V4 network without its tail."""

    @abstractmethod
    def create_inception_v4_labels(self):
        """Return the labels for the Inception V4 networks created by this factory."""
