"""Core numerical primitives for FedDeep."""

from . import activations, arithmetic, initializers, losses, types
from .config import Config, Mode
from .errors import DataPartitionEmpty, FedDeepError, InvalidConfiguration, ShapeMismatch
from .network import Layer, Network
from .parameters import ParameterStore

__all__ = [
    "Config",
    "DataPartitionEmpty",
    "FedDeepError",
    "InvalidConfiguration",
    "Layer",
    "Mode",
    "Network",
    "ParameterStore",
    "ShapeMismatch",
    "activations",
    "arithmetic",
    "initializers",
    "losses",
    "types",
]
