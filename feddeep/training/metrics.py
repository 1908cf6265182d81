"""Held-out evaluation of a global model."""

from __future__ import annotations

import numpy as np

from ..core.config import Mode
from ..core.errors import ShapeMismatch
from ..core.network import Network
from ..core.types import Array, Batch


def accuracy(predictions: Array, targets: Array) -> float:
    """Fraction of rows whose arg-max matches the one-hot target's arg-max.

    Single-column outputs are treated as binary and thresholded at 0.5.
    """

    preds = np.atleast_2d(np.asarray(predictions))
    targs = np.atleast_2d(np.asarray(targets))
    if preds.shape[0] == 0:
        return 0.0
    if preds.shape[1] == 1:
        return float(np.mean((preds[:, 0] >= 0.5) == (targs[:, 0] >= 0.5)))
    return float(np.mean(np.argmax(preds, axis=1) == np.argmax(targs, axis=1)))


def evaluate(model: Network, examples: Batch) -> tuple[float, float | None]:
    """Return ``(loss, accuracy)``.

    Accuracy is only meaningful for classifiers, so it is ``None`` unless the
    model is in multi-class or binary mode. Targets whose width differs from
    the model's output width raise :class:`ShapeMismatch`.
    """

    predictions = model.forward(examples.inputs)
    targets = np.atleast_2d(np.asarray(examples.targets, dtype=np.float64))
    if targets.shape != predictions.shape:
        raise ShapeMismatch.between("target batch", predictions.shape, targets.shape)
    loss = model.loss(predictions, targets)
    if model.config.mode not in (Mode.MULTICLASS, Mode.BINARY):
        return loss, None
    return loss, accuracy(predictions, targets)


__all__ = ["accuracy", "evaluate"]
