"""LayerNode: a named computation emitting TensorFlow ops into a graph.

A node can be:
- A dense layer creating its own variables
- A parameter-free transform (dropout, reshape)
- Any function mapping named tensors to named tensors
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Any

import tensorflow as tf


@dataclass
class LayerNode:
    """A computational node in a layer graph.

    Args:
        name: Unique identifier; also the variable scope of the node
        fn: Function taking the input tensors positionally (in `inputs`
            order) and returning one tensor, or a sequence for multiple outputs
        inputs: List of tensor keys this node expects
        outputs: List of tensor keys this node produces
        trainable: Whether the optimizer may update this node's variables

    Example:
        >>> hidden = LayerNode(
        ...     name="hidden_0",
        ...     fn=lambda x: affine(x, 256),
        ...     inputs=["inputs"],
        ...     outputs=["hidden_0"],
        ... )
    """
    name: str
    fn: Callable[..., Any]
    inputs: list[str]
    outputs: list[str]
    trainable: bool = True

    def __call__(self, tensors: dict[str, tf.Tensor]) -> dict[str, tf.Tensor]:
        """Apply node to the available tensors.

        Must run inside the target graph's `as_default()` context.

        Args:
            tensors: Every tensor produced so far, by key

        Returns:
            outputs: Dictionary of outputs from this node
        """
        node_inputs = {k: tensors[k] for k in self.inputs if k in tensors}

        missing = set(self.inputs) - set(node_inputs.keys())
        if missing:
            raise ValueError(
                f"Node '{self.name}' missing required inputs: {missing}. "
                f"Available inputs: {list(tensors.keys())}"
            )

        input_args = [node_inputs[k] for k in self.inputs]

        with tf.compat.v1.variable_scope(self.name):
            result = self.fn(*input_args)

        if not self.trainable:
            self._remove_from_trainable()

        if len(self.outputs) == 1:
            return {self.outputs[0]: result}

        if not isinstance(result, (tuple, list)):
            raise ValueError(
                f"Node '{self.name}' declares {len(self.outputs)} outputs "
                f"but fn returned non-sequence: {type(result)}"
            )
        if len(result) != len(self.outputs):
            raise ValueError(
                f"Node '{self.name}' declares {len(self.outputs)} outputs "
                f"but fn returned {len(result)} values"
            )
        return dict(zip(self.outputs, result))

    def variables(self, graph: tf.Graph | None = None) -> list[tf.Variable]:
        """Global variables created under this node's scope."""
        graph = graph if graph is not None else tf.compat.v1.get_default_graph()
        return graph.get_collection(
            tf.compat.v1.GraphKeys.GLOBAL_VARIABLES, scope=re.escape(self.name) + '/'
        )

    def _remove_from_trainable(self) -> None:
        graph = tf.compat.v1.get_default_graph()
        frozen = {id(v) for v in self.variables(graph)}
        collection = graph.get_collection_ref(tf.compat.v1.GraphKeys.TRAINABLE_VARIABLES)
        collection[:] = [v for v in collection if id(v) not in frozen]

    def __repr__(self) -> str:
        trainable_str = "trainable" if self.trainable else "frozen"
        return (
            f"LayerNode('{self.name}', "
            f"inputs={self.inputs}, outputs={self.outputs}, {trainable_str})"
        )
