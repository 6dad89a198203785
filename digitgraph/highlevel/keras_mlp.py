"""The same MLP through tf.keras, the high-level wrapper shipped with TensorFlow.

Where the graph API spells out placeholders, variables, the loss and the
session loop, Keras collapses them into layer declarations plus compile/fit.
Histories come back in the train_*/val_* format used by train_loop so the two
styles can be compared side by side.
"""

from __future__ import annotations

import tensorflow as tf

from digitgraph.dataset.mnist import DigitDatasets, DigitSplit
from digitgraph.graph.config import ModelConfig, OptimizerConfig
from digitgraph.graph.layers import get_activation
from digitgraph.graph.optimizers import OPTIMIZER_NAMES
from digitgraph.training.types import Metrics, TrainingConfig, create_metrics

# Keras history key -> train_loop history key
_HISTORY_KEYS = {
    'loss': 'train_loss',
    'accuracy': 'train_accuracy',
    'val_loss': 'val_loss',
    'val_accuracy': 'val_accuracy',
}


def keras_optimizer(config: OptimizerConfig) -> tf.keras.optimizers.Optimizer:
    """Keras counterpart of make_optimizer."""
    optimizers = tf.keras.optimizers
    if config.name == 'sgd':
        return optimizers.SGD(learning_rate=config.learning_rate)
    if config.name == 'momentum':
        return optimizers.SGD(learning_rate=config.learning_rate, momentum=config.momentum)
    if config.name == 'adam':
        return optimizers.Adam(learning_rate=config.learning_rate)
    if config.name == 'adagrad':
        return optimizers.Adagrad(learning_rate=config.learning_rate)
    if config.name == 'rmsprop':
        return optimizers.RMSprop(learning_rate=config.learning_rate)

    raise ValueError(f"Unknown optimizer '{config.name}'. Options: {list(OPTIMIZER_NAMES)}")


def build_keras_mlp(config: ModelConfig, dropout_rate: float = 0.0) -> tf.keras.Model:
    """
    Compiled Sequential MLP mirroring build_mlp_graph(config).

    Args:
        config: Architecture and optimizer settings
        dropout_rate: Fraction of hidden units dropped during fit (0 disables)

    Returns:
        Model compiled with categorical cross-entropy and accuracy
    """
    if not 0.0 <= dropout_rate < 1.0:
        raise ValueError(f"dropout_rate must be in [0, 1), got {dropout_rate}")
    get_activation(config.activation)

    def initializer(index: int) -> tf.keras.initializers.Initializer:
        seed = None if config.seed is None else config.seed + index
        return tf.keras.initializers.TruncatedNormal(stddev=config.init_stddev, seed=seed)

    activation = None if config.activation == 'linear' else config.activation

    layers = [tf.keras.Input(shape=(config.input_dim,), name='inputs')]
    for index, units in enumerate(config.hidden_sizes):
        layers.append(tf.keras.layers.Dense(
            units,
            activation=activation,
            kernel_initializer=initializer(index),
            name=f'hidden_{index}',
        ))
        if dropout_rate > 0:
            layers.append(tf.keras.layers.Dropout(dropout_rate, name=f'dropout_{index}'))
    layers.append(tf.keras.layers.Dense(
        config.num_classes,
        activation='softmax',
        kernel_initializer=initializer(len(config.hidden_sizes)),
        name='probabilities',
    ))

    model = tf.keras.Sequential(layers, name='mlp')
    model.compile(
        optimizer=keras_optimizer(config.optimizer),
        loss='categorical_crossentropy',
        metrics=['accuracy'],
    )
    return model


def train_keras_mlp(
    model: tf.keras.Model,
    datasets: DigitDatasets,
    config: TrainingConfig,
) -> dict[str, list[float]]:
    """
    Fit a compiled model and return its history in train_loop format.

    TrainingConfig.keep_prob is ignored; dropout is part of the Keras model.
    """
    validation = datasets.validation
    validation_data = (
        (validation.images, validation.labels) if validation.num_examples > 0 else None
    )

    callbacks = []
    if config.log_dir is not None:
        callbacks.append(tf.keras.callbacks.TensorBoard(log_dir=config.log_dir))

    result = model.fit(
        datasets.train.images,
        datasets.train.labels,
        batch_size=config.batch_size,
        epochs=config.num_epochs,
        validation_data=validation_data,
        shuffle=True,
        callbacks=callbacks,
        verbose=0,
    )

    history = {
        _HISTORY_KEYS[key]: [float(v) for v in values]
        for key, values in result.history.items()
        if key in _HISTORY_KEYS
    }
    for epoch in range(config.num_epochs):
        print(f"Epoch {epoch + 1}/{config.num_epochs} | "
              f"loss: {history['train_loss'][epoch]:.4f} | "
              f"accuracy: {history['train_accuracy'][epoch]:.4f}")
    return history


def evaluate_keras_mlp(
    model: tf.keras.Model,
    split: DigitSplit,
    batch_size: int = 1000,
) -> Metrics:
    """Loss and accuracy of a Keras model over a split."""
    if split.num_examples == 0:
        raise ValueError("Cannot evaluate on an empty split")

    results = model.evaluate(
        split.images,
        split.labels,
        batch_size=batch_size,
        verbose=0,
        return_dict=True,
    )
    return create_metrics({'loss': results['loss'], 'accuracy': results['accuracy']})
