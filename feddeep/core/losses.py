"""Loss catalog used by the network's backward pass and by evaluation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable

import numpy as np

from .errors import InvalidConfiguration
from .types import Array

_EPS = 1e-12


class Loss(str, Enum):
    CROSS_ENTROPY = "crossentropy"
    BINARY_CROSS_ENTROPY = "binarycrossentropy"
    MEAN_SQUARED = "meansquared"

    @classmethod
    def parse(cls, value: "Loss | str") -> "Loss":
        try:
            return cls(value)
        except ValueError as exc:
            available = ", ".join(item.value for item in cls)
            raise InvalidConfiguration(
                f"Unknown loss {value!r}. Available losses: {available}"
            ) from exc


ValueFn = Callable[[Array, Array], float]
DeltaFn = Callable[[Array, Array, Array], Array]


@dataclass(frozen=True)
class LossFns:
    """Scalar loss plus the output-layer error term.

    ``delta(predictions, targets, dactivation)`` receives the output
    activation's derivative evaluated at ``predictions``.
    """

    name: str
    value: ValueFn
    delta: DeltaFn


def _as_rows(array: Array) -> Array:
    array = np.asarray(array, dtype=np.float64)
    return array.reshape(1, -1) if array.ndim == 1 else array


def _cross_entropy(pred: Array, target: Array) -> float:
    pred, target = _as_rows(pred), _as_rows(target)
    return float(-np.mean(np.sum(target * np.log(pred + _EPS), axis=1)))


def _binary_cross_entropy(pred: Array, target: Array) -> float:
    pred, target = _as_rows(pred), _as_rows(target)
    per_row = target * np.log(pred + _EPS) + (1.0 - target) * np.log(1.0 - pred + _EPS)
    return float(-np.mean(np.sum(per_row, axis=1)))


def _mean_squared(pred: Array, target: Array) -> float:
    pred, target = _as_rows(pred), _as_rows(target)
    return float(np.mean(np.square(pred - target)))


def _difference(pred: Array, target: Array, _dactivation: Array) -> Array:
    return pred - target


def _squared_delta(pred: Array, target: Array, dactivation: Array) -> Array:
    return (pred - target) * dactivation


REGISTRY: Dict[Loss, LossFns] = {
    Loss.CROSS_ENTROPY: LossFns("crossentropy", _cross_entropy, _difference),
    Loss.BINARY_CROSS_ENTROPY: LossFns(
        "binarycrossentropy", _binary_cross_entropy, _difference
    ),
    Loss.MEAN_SQUARED: LossFns("meansquared", _mean_squared, _squared_delta),
}


def get(loss: Loss | str) -> LossFns:
    return REGISTRY[Loss.parse(loss)]


def names() -> Iterable[str]:
    return sorted(item.value for item in REGISTRY)


__all__ = ["Loss", "LossFns", "REGISTRY", "get", "names"]
