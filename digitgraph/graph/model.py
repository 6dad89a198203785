"""Graph construction for the digit classifier.

Builds the classic walkthrough model in a tf.Graph: placeholders for the
feature and one-hot label matrices, trainable weight/bias variables, score
(logit) computation, softmax, mean cross-entropy loss, accuracy, and an
optimizer step. Tensors get stable names so exported graphs can be addressed
without the Python handles.
"""

from __future__ import annotations

from dataclasses import dataclass

import tensorflow as tf

from .config import ModelConfig, OptimizerConfig
from .layers import dense, dropout
from .optimizers import make_optimizer

INPUTS_NAME = 'inputs'
LABELS_NAME = 'labels'
KEEP_PROB_NAME = 'keep_prob'
LOGITS_NAME = 'logits'
PROBABILITIES_NAME = 'probabilities'
PREDICTIONS_NAME = 'predictions'
LOSS_NAME = 'loss'
ACCURACY_NAME = 'accuracy'


@dataclass(frozen=True)
class ModelHandles:
    """Handles to the tensors and ops of a built classifier graph.

    Attributes:
        graph: The tf.Graph owning every op below
        inputs: float32 placeholder [None, input_dim]
        labels: float32 placeholder [None, num_classes] (one-hot)
        keep_prob: scalar dropout keep probability, defaults to 1.0
        logits: Unnormalized class scores
        probabilities: Softmax of the logits
        predictions: argmax class id per example
        loss: Mean softmax cross-entropy
        accuracy: Fraction of correct predictions in the fed batch
        train_op: One optimizer update (also increments global_step)
        global_step: Number of updates applied so far
        init_op: Initializer for every global variable
        summary_op: Merged TensorBoard summaries
        saver: Checkpoint saver over all global variables
    """
    graph: tf.Graph
    inputs: tf.Tensor
    labels: tf.Tensor
    keep_prob: tf.Tensor
    logits: tf.Tensor
    probabilities: tf.Tensor
    predictions: tf.Tensor
    loss: tf.Tensor
    accuracy: tf.Tensor
    train_op: tf.Operation
    global_step: tf.Variable
    init_op: tf.Operation
    summary_op: tf.Tensor
    saver: tf.compat.v1.train.Saver

    @property
    def trainable_variables(self) -> list[tf.Variable]:
        return self.graph.get_collection(tf.compat.v1.GraphKeys.TRAINABLE_VARIABLES)

    @property
    def global_variables(self) -> list[tf.Variable]:
        return self.graph.get_collection(tf.compat.v1.GraphKeys.GLOBAL_VARIABLES)


def create_placeholders(
    input_dim: int,
    num_classes: int,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor]:
    """Create the inputs, labels and keep_prob placeholders in the default graph."""
    inputs = tf.compat.v1.placeholder(tf.float32, shape=[None, input_dim], name=INPUTS_NAME)
    labels = tf.compat.v1.placeholder(tf.float32, shape=[None, num_classes], name=LABELS_NAME)
    keep_prob = tf.compat.v1.placeholder_with_default(1.0, shape=[], name=KEEP_PROB_NAME)
    return inputs, labels, keep_prob


def mlp_logits(inputs: tf.Tensor, keep_prob: tf.Tensor, config: ModelConfig) -> tf.Tensor:
    """
    Stack hidden dense layers and a linear output layer.

    With config.hidden_sizes == () this is a single affine map
    (softmax regression).
    """
    hidden = inputs
    for index, units in enumerate(config.hidden_sizes):
        hidden = dense(
            hidden,
            units,
            activation=config.activation,
            stddev=config.init_stddev,
            name=f'hidden_{index}',
        )
        hidden = dropout(hidden, keep_prob)

    return dense(hidden, config.num_classes, stddev=config.init_stddev, name='output')


def attach_training_ops(
    graph: tf.Graph,
    inputs: tf.Tensor,
    labels: tf.Tensor,
    keep_prob: tf.Tensor,
    logits: tf.Tensor,
    optimizer_config: OptimizerConfig,
) -> ModelHandles:
    """
    Add softmax, loss, accuracy, optimizer, summaries and saver on top of logits.

    The optimizer minimizes over the graph's trainable collection only.

    Returns:
        ModelHandles for the finished graph
    """
    with graph.as_default():
        logits = tf.identity(logits, name=LOGITS_NAME)
        probabilities = tf.nn.softmax(logits, name=PROBABILITIES_NAME)
        predictions = tf.argmax(logits, axis=1, name=PREDICTIONS_NAME)

        cross_entropy = tf.nn.softmax_cross_entropy_with_logits(labels=labels, logits=logits)
        loss = tf.reduce_mean(cross_entropy, name=LOSS_NAME)

        correct = tf.equal(predictions, tf.argmax(labels, axis=1))
        accuracy = tf.reduce_mean(tf.cast(correct, tf.float32), name=ACCURACY_NAME)

        global_step = tf.compat.v1.train.get_or_create_global_step()
        optimizer = make_optimizer(optimizer_config)
        train_op = optimizer.minimize(loss, global_step=global_step, name='train_op')

        tf.compat.v1.summary.scalar('loss', loss)
        tf.compat.v1.summary.scalar('accuracy', accuracy)
        for variable in graph.get_collection(tf.compat.v1.GraphKeys.TRAINABLE_VARIABLES):
            tf.compat.v1.summary.histogram(variable.op.name, variable)
        summary_op = tf.compat.v1.summary.merge_all()

        init_op = tf.compat.v1.global_variables_initializer()
        saver = tf.compat.v1.train.Saver(max_to_keep=5)

    return ModelHandles(
        graph=graph,
        inputs=inputs,
        labels=labels,
        keep_prob=keep_prob,
        logits=logits,
        probabilities=probabilities,
        predictions=predictions,
        loss=loss,
        accuracy=accuracy,
        train_op=train_op,
        global_step=global_step,
        init_op=init_op,
        summary_op=summary_op,
        saver=saver,
    )


def build_mlp_graph(config: ModelConfig, graph: tf.Graph | None = None) -> ModelHandles:
    """
    Build the complete MLP classifier graph.

    Args:
        config: Architecture and optimizer settings
        graph: Graph to build into (default: a fresh tf.Graph)

    Returns:
        ModelHandles for feeding and running the graph in a session

    Example:
        >>> handles = build_mlp_graph(ModelConfig(hidden_sizes=(128,)))
        >>> with tf.compat.v1.Session(graph=handles.graph) as sess:
        ...     sess.run(handles.init_op)
        ...     sess.run(handles.train_op, {handles.inputs: x, handles.labels: y})
    """
    graph = graph if graph is not None else tf.Graph()

    with graph.as_default():
        if config.seed is not None:
            tf.compat.v1.set_random_seed(config.seed)
        inputs, labels, keep_prob = create_placeholders(config.input_dim, config.num_classes)
        logits = mlp_logits(inputs, keep_prob, config)

    return attach_training_ops(graph, inputs, labels, keep_prob, logits, config.optimizer)
