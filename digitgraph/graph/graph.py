"""LayerGraph: named layer nodes wired together by tensor keys.

Nodes declare the keys they read and write; the graph works out which node
feeds which, orders them so producers run first and then emits every node's
ops into the current tf.Graph. Freezing a node keeps its variables out of the
trainable collection the optimizer minimizes over.
"""

from __future__ import annotations

from collections import deque
from typing import Iterable

import tensorflow as tf

from .node import LayerNode


class LayerGraph:
    """A directed acyclic graph of layer nodes.

    Args:
        nodes: Node name -> LayerNode
        edges: Optional {node_name: [names it depends on]}; inferred from
            the nodes' input/output keys when omitted

    Example:
        >>> hidden = LayerNode("hidden", relu_layer, ["inputs"], ["features"])
        >>> output = LayerNode("output", linear_layer, ["features"], ["logits"])
        >>> layers = LayerGraph(nodes={"output": output, "hidden": hidden})
        >>> layers.execution_order
        ['hidden', 'output']
    """

    def __init__(
        self,
        nodes: dict[str, LayerNode],
        edges: dict[str, list[str]] | None = None
    ):
        self.nodes = nodes
        self.edges = edges if edges is not None else self._infer_edges()
        self.execution_order = self._execution_order()

    def _infer_edges(self) -> dict[str, list[str]]:
        producer: dict[str, str] = {}
        for name, node in self.nodes.items():
            for key in node.outputs:
                if key in producer:
                    raise ValueError(
                        f"Multiple nodes produce output '{key}': "
                        f"{producer[key]} and {name}"
                    )
                producer[key] = name

        edges = {}
        for name, node in self.nodes.items():
            deps = [producer[key] for key in node.inputs if key in producer]
            edges[name] = list(dict.fromkeys(deps))
        return edges

    def _execution_order(self) -> list[str]:
        """Kahn's algorithm; ties are broken by node insertion order."""
        referenced = set(self.edges) | {d for deps in self.edges.values() for d in deps}
        unknown = sorted(referenced - set(self.nodes))
        if unknown:
            raise ValueError(f"Edges reference unknown nodes: {unknown}")

        pending = {name: len(self.edges.get(name, [])) for name in self.nodes}
        dependents: dict[str, list[str]] = {name: [] for name in self.nodes}
        for name, deps in self.edges.items():
            for dep in deps:
                dependents[dep].append(name)

        ready = deque(name for name, count in pending.items() if count == 0)
        order = []
        while ready:
            name = ready.popleft()
            order.append(name)
            for child in dependents[name]:
                pending[child] -= 1
                if pending[child] == 0:
                    ready.append(child)

        if len(order) != len(self.nodes):
            stuck = sorted(set(self.nodes) - set(order))
            raise ValueError(f"Graph has cycles; could not order nodes: {stuck}")
        return order

    def build(self, inputs: dict[str, tf.Tensor]) -> dict[str, tf.Tensor]:
        """Emit every node's ops into the current default graph.

        Args:
            inputs: External tensors by key, typically placeholders

        Returns:
            The external inputs plus every node output, by key
        """
        tensors = dict(inputs)
        for name in self.execution_order:
            tensors.update(self.nodes[name](tensors))
        return tensors

    def output_keys(self) -> list[str]:
        """Keys no other node consumes, in execution order."""
        consumed = {key for node in self.nodes.values() for key in node.inputs}
        return [
            key
            for name in self.execution_order
            for key in self.nodes[name].outputs
            if key not in consumed
        ]

    def variables(self, node_name: str, graph: tf.Graph | None = None) -> list[tf.Variable]:
        """Variables a built node created."""
        return self.get_node(node_name).variables(graph)

    def trainable_nodes(self) -> list[str]:
        return [name for name, node in self.nodes.items() if node.trainable]

    def _set_trainable(self, names: Iterable[str], trainable: bool) -> None:
        for name in names:
            self.get_node(name).trainable = trainable

    # Freezing only affects builds that happen afterwards.
    def freeze_node(self, node_name: str):
        self._set_trainable([node_name], False)

    def unfreeze_node(self, node_name: str):
        self._set_trainable([node_name], True)

    def freeze_all(self):
        self._set_trainable(self.nodes, False)

    def unfreeze_all(self):
        self._set_trainable(self.nodes, True)

    def get_node(self, name: str) -> LayerNode:
        try:
            return self.nodes[name]
        except KeyError:
            raise ValueError(
                f"Node '{name}' not found. Available nodes: {list(self.nodes)}"
            ) from None

    def __repr__(self) -> str:
        frozen = [name for name, node in self.nodes.items() if not node.trainable]
        return (
            f"LayerGraph(\n"
            f"  nodes={list(self.nodes)},\n"
            f"  trainable={self.trainable_nodes()},\n"
            f"  frozen={frozen},\n"
            f"  execution_order={self.execution_order}\n"
            f")"
        )
