"""digitgraph graph API: the classifier as an explicit TensorFlow graph.

Core primitives:
- Placeholders, variables and dense layers in tf.compat.v1 graph mode
- ModelHandles: every tensor/op needed to train and run the classifier
- LayerNode / LayerGraph: composable, named layer DAGs
- GraphDef export, freezing and re-import
"""

from .config import ModelConfig, OptimizerConfig
from .layers import (
    get_activation,
    weight_variable,
    bias_variable,
    affine,
    dense,
    dropout,
)
from .optimizers import OPTIMIZER_NAMES, make_optimizer
from .model import (
    ModelHandles,
    create_placeholders,
    mlp_logits,
    attach_training_ops,
    build_mlp_graph,
)
from .node import LayerNode
from .graph import LayerGraph
from .serialization import (
    FrozenModel,
    export_graph_def,
    load_graph_def,
    freeze_graph,
    save_frozen_graph,
    import_frozen_graph,
    run_frozen,
)

__all__ = [
    'ModelConfig',
    'OptimizerConfig',
    'get_activation',
    'weight_variable',
    'bias_variable',
    'affine',
    'dense',
    'dropout',
    'OPTIMIZER_NAMES',
    'make_optimizer',
    'ModelHandles',
    'create_placeholders',
    'mlp_logits',
    'attach_training_ops',
    'build_mlp_graph',
    'LayerNode',
    'LayerGraph',
    'FrozenModel',
    'export_graph_def',
    'load_graph_def',
    'freeze_graph',
    'save_frozen_graph',
    'import_frozen_graph',
    'run_frozen',
]
