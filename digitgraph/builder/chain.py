"""Fluent, immutable layer-chain builder.

Every method returns a new Chain with one more layer appended, so partially
built chains can be shared and extended independently:

    >>> base = Chain().fully_connected(256).dropout()
    >>> small = base.logits(10)
    >>> large = base.fully_connected(128).logits(10)

A finished chain becomes a LayerGraph, and build_model attaches the usual
placeholders, loss and optimizer so the result trains exactly like the
hand-written graph.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from functools import partial

import tensorflow as tf

from digitgraph.graph.config import ModelConfig, OptimizerConfig
from digitgraph.graph.graph import LayerGraph
from digitgraph.graph.layers import affine, dropout, get_activation
from digitgraph.graph.model import (
    ACCURACY_NAME,
    INPUTS_NAME,
    KEEP_PROB_NAME,
    LABELS_NAME,
    LOGITS_NAME,
    LOSS_NAME,
    PREDICTIONS_NAME,
    PROBABILITIES_NAME,
    ModelHandles,
    attach_training_ops,
    create_placeholders,
)
from digitgraph.graph.node import LayerNode

RESERVED_NAMES = frozenset({
    INPUTS_NAME, LABELS_NAME, KEEP_PROB_NAME, LOGITS_NAME,
    PROBABILITIES_NAME, PREDICTIONS_NAME, LOSS_NAME, ACCURACY_NAME,
})


@dataclass(frozen=True)
class LayerSpec:
    """One link of a chain (pure data)."""
    name: str
    kind: str
    units: int | None = None
    activation: str | None = None
    stddev: float = 0.1
    trainable: bool = True


def _fully_connected(inputs: tf.Tensor, units: int, activation: str | None, stddev: float) -> tf.Tensor:
    outputs = affine(inputs, units, stddev=stddev)
    activation_fn = get_activation(activation)
    if activation_fn is not None:
        outputs = activation_fn(outputs)
    return outputs


@dataclass(frozen=True)
class Chain:
    """Immutable sequence of layers fed from a single input tensor.

    Args:
        input_key: Key of the tensor feeding the first layer
        layers: Layers so far (use the builder methods instead of passing this)
    """
    input_key: str = INPUTS_NAME
    layers: tuple[LayerSpec, ...] = ()

    def _append(self, spec: LayerSpec) -> Chain:
        if spec.name in RESERVED_NAMES or spec.name == self.input_key:
            raise ValueError(f"Layer name '{spec.name}' is reserved for a graph endpoint")
        taken = {layer.name for layer in self.layers}
        if spec.name in taken:
            raise ValueError(f"Layer name '{spec.name}' is already used in this chain")
        return replace(self, layers=self.layers + (spec,))

    def _default_name(self, prefix: str) -> str:
        taken = {layer.name for layer in self.layers} | RESERVED_NAMES | {self.input_key}
        count = sum(1 for layer in self.layers if layer.kind == prefix)
        while f'{prefix}_{count}' in taken:
            count += 1
        return f'{prefix}_{count}'

    def fully_connected(
        self,
        units: int,
        activation: str | None = 'relu',
        name: str | None = None,
        stddev: float = 0.1,
    ) -> Chain:
        """Append a dense layer."""
        if units < 1:
            raise ValueError(f"units must be positive, got {units}")
        get_activation(activation)
        return self._append(LayerSpec(
            name=name or self._default_name('fully_connected'),
            kind='fully_connected',
            units=units,
            activation=activation,
            stddev=stddev,
        ))

    def dropout(self, name: str | None = None) -> Chain:
        """Append dropout driven by the keep_prob placeholder."""
        return self._append(LayerSpec(
            name=name or self._default_name('dropout'),
            kind='dropout',
        ))

    def logits(self, num_classes: int, name: str = 'output', stddev: float = 0.1) -> Chain:
        """Append the linear class-score layer."""
        return self.fully_connected(num_classes, activation=None, name=name, stddev=stddev)

    def frozen(self) -> Chain:
        """Mark the most recent layer as non-trainable."""
        if not self.layers:
            raise ValueError("Cannot freeze a layer of an empty chain")
        last = replace(self.layers[-1], trainable=False)
        return replace(self, layers=self.layers[:-1] + (last,))

    @property
    def output_key(self) -> str:
        if not self.layers:
            return self.input_key
        return self.layers[-1].name

    def layer_graph(self) -> LayerGraph:
        """Translate the chain into a LayerGraph of LayerNodes."""
        if not self.layers:
            raise ValueError("Chain has no layers")

        nodes = {}
        previous = self.input_key
        for spec in self.layers:
            if spec.kind == 'fully_connected':
                node = LayerNode(
                    name=spec.name,
                    fn=partial(
                        _fully_connected,
                        units=spec.units,
                        activation=spec.activation,
                        stddev=spec.stddev,
                    ),
                    inputs=[previous],
                    outputs=[spec.name],
                    trainable=spec.trainable,
                )
            else:
                node = LayerNode(
                    name=spec.name,
                    fn=dropout,
                    inputs=[previous, KEEP_PROB_NAME],
                    outputs=[spec.name],
                    trainable=spec.trainable,
                )
            nodes[spec.name] = node
            previous = spec.name

        return LayerGraph(nodes)

    def __repr__(self) -> str:
        links = " -> ".join(
            f"{layer.kind}({layer.units})" if layer.units else layer.kind
            for layer in self.layers
        )
        return f"Chain({self.input_key} -> {links or '<empty>'})"


def mlp_chain(config: ModelConfig) -> Chain:
    """Chain equivalent of build_mlp_graph(config)."""
    chain = Chain()
    for index, units in enumerate(config.hidden_sizes):
        chain = chain.fully_connected(
            units,
            activation=config.activation,
            name=f'hidden_{index}',
            stddev=config.init_stddev,
        ).dropout()
    return chain.logits(config.num_classes, stddev=config.init_stddev)


def build_model(
    chain: Chain,
    input_dim: int,
    optimizer_config: OptimizerConfig | None = None,
    seed: int | None = None,
    graph: tf.Graph | None = None,
) -> ModelHandles:
    """
    Build a trainable classifier graph from a chain ending in a logits layer.

    The number of classes is taken from the width of the last layer.

    Returns:
        ModelHandles with the same surface as build_mlp_graph
    """
    if not chain.layers or chain.layers[-1].kind != 'fully_connected':
        raise ValueError("Chain must end with a fully connected (logits) layer")

    optimizer_config = optimizer_config or OptimizerConfig()
    graph = graph if graph is not None else tf.Graph()
    num_classes = chain.layers[-1].units

    with graph.as_default():
        if seed is not None:
            tf.compat.v1.set_random_seed(seed)
        inputs, labels, keep_prob = create_placeholders(input_dim, num_classes)
        tensors = chain.layer_graph().build({
            chain.input_key: inputs,
            KEEP_PROB_NAME: keep_prob,
        })

    return attach_training_ops(
        graph, inputs, labels, keep_prob, tensors[chain.output_key], optimizer_config
    )
