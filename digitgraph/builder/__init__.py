"""Fluent builder API: declare layers as a chain, get a trainable graph."""

from .chain import RESERVED_NAMES, LayerSpec, Chain, mlp_chain, build_model

__all__ = [
    'RESERVED_NAMES',
    'LayerSpec',
    'Chain',
    'mlp_chain',
    'build_model',
]
