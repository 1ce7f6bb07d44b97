"""Default Inception V4 factory composing an external trunk with a dense tail."""

import logging

from inception_v4.factory.base import InceptionV4Factory, InceptionV4Network
from inception_v4.factory.heads import TAIL_INPUT_FEATURES, create_inception_v4_tail, validate_tail_arguments
from inception_v4.labels import LABEL_COUNT, InceptionV4Labels, default_labels_path

logger = logging.getLogger(__name__)


class DefaultInceptionV4Factory(InceptionV4Factory):
    """Builds Inception V4 networks from a trunk builder and tail parameters.

    Args:
        trunk_builder: Callable taking a NetworkContext and returning the feature trunk module
        default_tail_loader: Optional callable returning the (weights, biases) of the
            pretrained 1001-way tail
        labels_path: Path of the label resource; defaults to the configured path
    """

    def __init__(self, trunk_builder, default_tail_loader=None, labels_path=None):
        self.trunk_builder = trunk_builder
        self.default_tail_loader = default_tail_loader
        self.labels_path = labels_path

    def create_inception_v4(self, context, regularisation_lambda=0.0, dropout_keep_probability=1.0):
        validate_tail_arguments(regularisation_lambda, dropout_keep_probability)
        if self.default_tail_loader is None:
            logger.warning("No default tail loader configured, the Inception V4 tail is untrained")
            weights, biases = None, None
        else:
            weights, biases = self.default_tail_loader()
        return self.create_inception_v4_with_custom_tail(
            context, LABEL_COUNT, weights, biases, regularisation_lambda, dropout_keep_probability
        )

    def create_inception_v4_with_custom_tail(
        self, context, output_features, weights, biases, regularisation_lambda=0.0, dropout_keep_probability=1.0
    ):
        tail = create_inception_v4_tail(
            output_features,
            weights=weights,
            biases=biases,
            regularisation_lambda=regularisation_lambda,
            dropout_keep_probability=dropout_keep_probability,
            in_features=TAIL_INPUT_FEATURES,
        )
        network = InceptionV4Network(self.trunk_builder(context), tail)
        logger.info(f"Created Inception V4 network with {output_features} outputs on {context.device}")
        return context.apply(network)

    def create_inception_v4_tail(
        self, context, output_neuron_count, weights, biases, regularisation_lambda=0.0, dropout_keep_probability=1.0
    ):
        tail = create_inception_v4_tail(
            output_neuron_count,
            weights=weights,
            biases=biases,
            regularisation_lambda=regularisation_lambda,
            dropout_keep_probability=dropout_keep_probability,
            in_features=TAIL_INPUT_FEATURES,
        )
        return context.apply(tail)

    def create_inception_v4_without_tail(self, context):
        network = InceptionV4Network(self.trunk_builder(context))
        logger.info(f"Created Inception V4 network without tail on {context.device}")
        return context.apply(network)

    def create_inception_v4_labels(self):
        path = self.labels_path if self.labels_path is not None else default_labels_path()
        return InceptionV4Labels.from_path(path)
