"""Classification tail creation for Inception V4."""

import logging
import math

import torch
import torch.nn as nn

logger = logging.getLogger(__name__)

TAIL_INPUT_FEATURES = 1536


def validate_tail_arguments(regularisation_lambda, dropout_keep_probability):
    if not math.isfinite(regularisation_lambda) or regularisation_lambda < 0:
        raise ValueError(f"regularisation_lambda must be a non-negative number, got {regularisation_lambda}")
    if not 0 < dropout_keep_probability <= 1:
        raise ValueError(f"dropout_keep_probability must be in (0, 1], got {dropout_keep_probability}")


class InceptionV4Tail(nn.Module):
    def __init__(self, in_features, output_features, regularisation_lambda=0.0, dropout_keep_probability=1.0):
        """
        Dense classification head applied to pooled Inception V4 features

        Args:
            in_features: Number of input features from the trunk
            output_features: Number of output neurons
            regularisation_lambda: L2 penalty strength on the dense weights
            dropout_keep_probability: Fraction of inputs kept during training
        """
        super().__init__()
        self.regularisation_lambda = regularisation_lambda
        self.dropout_keep_probability = dropout_keep_probability

        self.dropout = nn.Dropout(1.0 - dropout_keep_probability)
        self.dense = nn.Linear(in_features=in_features, out_features=output_features)

    def forward(self, features):
        return self.dense(self.dropout(features))

    def regularisation_penalty(self):
        """Return ``lambda / 2 * ||W||^2`` for the dense weights."""
        if self.regularisation_lambda == 0:
            return torch.zeros((), dtype=self.dense.weight.dtype, device=self.dense.weight.device)
        return 0.5 * self.regularisation_lambda * self.dense.weight.pow(2).sum()


def create_inception_v4_tail(
    output_features,
    weights=None,
    biases=None,
    regularisation_lambda=0.0,
    dropout_keep_probability=1.0,
    in_features=None,
):
    """Create an Inception V4 classification tail.

    Args:
        output_features: Number of output neurons
        weights: Optional dense weights of shape [output_features, in_features]
        biases: Optional dense biases of shape [output_features]
        regularisation_lambda: L2 penalty strength on the dense weights
        dropout_keep_probability: Input dropout keep probability, in (0, 1]
        in_features: Number of trunk features. When given, the weights must match it;
            otherwise it is taken from the weights, or 1536 without weights

    Returns:
        InceptionV4Tail: The classification tail
    """
    validate_tail_arguments(regularisation_lambda, dropout_keep_probability)
    if isinstance(output_features, bool) or not isinstance(output_features, int) or output_features < 1:
        raise ValueError(f"output_features must be a positive integer, got {output_features}")

    if weights is not None:
        if weights.dim() != 2 or weights.shape[0] != output_features:
            raise ValueError(
                f"Expected weights of shape [{output_features}, in_features], got {list(weights.shape)}"
            )
        if in_features is not None and weights.shape[1] != in_features:
            raise ValueError(f"Expected weights with {in_features} input features, got {weights.shape[1]}")
        in_features = weights.shape[1]
    elif in_features is None:
        in_features = TAIL_INPUT_FEATURES
    if biases is not None and (biases.dim() != 1 or biases.shape[0] != output_features):
        raise ValueError(f"Expected biases of shape [{output_features}], got {list(biases.shape)}")

    tail = InceptionV4Tail(
        in_features=in_features,
        output_features=output_features,
        regularisation_lambda=regularisation_lambda,
        dropout_keep_probability=dropout_keep_probability,
    )

    # Load supplied parameters, keep default init for the rest
    with torch.no_grad():
        if weights is not None:
            tail.dense.weight.copy_(weights)
        if biases is not None:
            tail.dense.bias.copy_(biases)

    logger.info(f"Created Inception V4 tail: {in_features} -> {output_features}")
    return tail
