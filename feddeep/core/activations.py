"""Activation catalog for FedDeep.

Each activation is a pair of pure functions: the forward transform and its
derivative expressed in terms of the transform's *output*, since layers cache
their outputs rather than their pre-activation sums.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict

import numpy as np

from .errors import InvalidConfiguration
from .types import Array


class Activation(str, Enum):
    SIGMOID = "sigmoid"
    TANH = "tanh"
    RELU = "relu"
    LINEAR = "linear"
    SOFTMAX = "softmax"

    @classmethod
    def parse(cls, value: "Activation | str") -> "Activation":
        try:
            return cls(value)
        except ValueError as exc:
            available = ", ".join(item.value for item in cls)
            raise InvalidConfiguration(
                f"Unknown activation {value!r}. Available activations: {available}"
            ) from exc


def sigmoid(x: Array) -> Array:
    return 1.0 / (1.0 + np.exp(-x))


def tanh(x: Array) -> Array:
    return np.tanh(x)


def relu(x: Array) -> Array:
    """Return the ReLU activation."""

    return np.maximum(x, 0.0)


def linear(x: Array) -> Array:
    return x


def softmax(x: Array) -> Array:
    """Row-wise softmax; a 1-D input is treated as a single row."""

    shifted = x - np.max(x, axis=-1, keepdims=True)
    exp = np.exp(shifted)
    return exp / np.sum(exp, axis=-1, keepdims=True)


@dataclass(frozen=True)
class ActivationFns:
    """Forward function and output-space derivative for one activation."""

    name: str
    f: Callable[[Array], Array]
    df: Callable[[Array], Array]


REGISTRY: Dict[Activation, ActivationFns] = {
    Activation.SIGMOID: ActivationFns("sigmoid", sigmoid, lambda y: y * (1.0 - y)),
    Activation.TANH: ActivationFns("tanh", tanh, lambda y: 1.0 - y**2),
    Activation.RELU: ActivationFns("relu", relu, lambda y: (y > 0.0).astype(np.float64)),
    Activation.LINEAR: ActivationFns("linear", linear, np.ones_like),
    # Output layer of multiclass mode only; the cross-entropy delta carries the Jacobian.
    Activation.SOFTMAX: ActivationFns("softmax", softmax, lambda y: y * (1.0 - y)),
}


def get(activation: Activation | str) -> ActivationFns:
    return REGISTRY[Activation.parse(activation)]


__all__ = [
    "Activation",
    "ActivationFns",
    "REGISTRY",
    "get",
    "linear",
    "relu",
    "sigmoid",
    "softmax",
    "tanh",
]
