"""Weight-space arithmetic over parameter stores.

``zero``, ``add`` and ``scale`` are the primitives federated averaging is
built from::

    acc = zero(global_store.copy())
    for store in worker_stores:
        acc = add(acc, store)
    scale(acc, len(worker_stores))
"""

from __future__ import annotations

from typing import Iterable

import numpy as np

from .errors import ShapeMismatch
from .parameters import ParameterStore


def check_same_shape(a: ParameterStore, b: ParameterStore) -> None:
    if len(a.weights) != len(b.weights):
        raise ShapeMismatch.between("layer count", len(a.weights), len(b.weights))
    for idx, (wa, wb) in enumerate(zip(a.weights, b.weights)):
        if wa.shape[0] != wb.shape[0]:
            raise ShapeMismatch.between(f"layer {idx} neuron count", wa.shape[0], wb.shape[0])
        if wa.shape != wb.shape:
            raise ShapeMismatch.between(f"layer {idx} fan-in", wa.shape[1:], wb.shape[1:])


def zero(store: ParameterStore) -> ParameterStore:
    """Set every weight of ``store`` to 0.0 in place."""

    for w in store.weights:
        w.fill(0.0)
    return store


def zeros_like(store: ParameterStore) -> ParameterStore:
    return zero(store.copy())


def add(a: ParameterStore, b: ParameterStore) -> ParameterStore:
    """Elementwise ``a + b`` as a new store sharing ``a``'s config."""

    check_same_shape(a, b)
    return ParameterStore(a.config, [wa + wb for wa, wb in zip(a.weights, b.weights)])


def scale(store: ParameterStore, divisor: float) -> ParameterStore:
    """Divide every weight of ``store`` by ``divisor`` in place."""

    if divisor == 0:
        raise ValueError("divisor must be non-zero")
    for w in store.weights:
        np.divide(w, float(divisor), out=w)
    return store


def average(stores: Iterable[ParameterStore]) -> ParameterStore:
    """Unweighted FedAvg mean of ``stores``."""

    stores = list(stores)
    if not stores:
        raise ValueError("average requires at least one parameter store")
    acc = zeros_like(stores[0])
    for store in stores:
        acc = add(acc, store)
    return scale(acc, len(stores))


__all__ = ["add", "average", "check_same_shape", "scale", "zero", "zeros_like"]
