"""Pure in-memory datasets."""

from __future__ import annotations

import numpy as np

from .examples import ExampleSet
from .registry import DatasetSpec, DataSpec, register_dataset
from .utils import deterministic_split, min_max_scale, one_hot

XOR_INPUTS = np.array([[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]])
XOR_TARGETS = np.array([[0.0], [1.0], [1.0], [0.0]])


@register_dataset("xor")
def load_xor(*, one_hot_targets: bool = False, repeat: int = 1, **_: object) -> DatasetSpec:
    """The four-point XOR table; train and test are the same points.

    ``one_hot_targets`` switches to two-column class targets for multi-class
    models; ``repeat`` tiles the table so it can be shared by more workers.
    """

    targets = one_hot(XOR_TARGETS[:, 0], 2) if one_hot_targets else XOR_TARGETS
    inputs = np.tile(XOR_INPUTS, (max(1, int(repeat)), 1))
    targets = np.tile(targets, (max(1, int(repeat)), 1))
    table = ExampleSet(inputs, targets)
    data_spec = DataSpec(
        d_in=2,
        d_out=int(targets.shape[1]),
        task_type="multiclass" if one_hot_targets else "binary",
        num_classes=2,
    )
    return DatasetSpec(
        name="xor",
        train=table,
        test=ExampleSet(XOR_INPUTS, targets[: len(XOR_INPUTS)]),
        data_spec=data_spec,
        provenance={"type": "xor", "one_hot": bool(one_hot_targets), "repeat": int(repeat)},
    )


def _make_blobs(
    classes: int, n_per_class: int, features: int, spread: float, seed: int
) -> tuple[np.ndarray, np.ndarray]:
    rng = np.random.default_rng(seed)
    centers = rng.uniform(-3.0, 3.0, size=(classes, features))
    inputs = []
    labels = []
    for idx, center in enumerate(centers):
        inputs.append(center + spread * rng.standard_normal((n_per_class, features)))
        labels.append(np.full(n_per_class, idx, dtype=np.int64))
    return np.vstack(inputs), np.concatenate(labels)


@register_dataset("blobs")
def load_blobs(
    *,
    classes: int = 3,
    n_per_class: int = 60,
    features: int = 2,
    spread: float = 0.5,
    test_split: float = 0.2,
    seed: int = 0,
    **_: object,
) -> DatasetSpec:
    """Gaussian clusters with one-hot targets, features scaled into [0, 1]."""

    raw, labels = _make_blobs(classes, n_per_class, features, spread, seed)
    inputs, low, high = min_max_scale(raw)
    targets = one_hot(labels, classes)
    splits = deterministic_split(inputs.shape[0], test_split=test_split, seed=seed)

    data_spec = DataSpec(
        d_in=features,
        d_out=classes,
        task_type="multiclass",
        num_classes=classes,
        normalization={"min": low.ravel().tolist(), "max": high.ravel().tolist()},
    )
    provenance = {
        "type": "blobs",
        "classes": classes,
        "n_per_class": n_per_class,
        "features": features,
        "spread": spread,
        "test_split": test_split,
        "seed": seed,
    }
    return DatasetSpec(
        name="blobs",
        train=ExampleSet(inputs[splits.train], targets[splits.train]),
        test=ExampleSet(inputs[splits.test], targets[splits.test]),
        data_spec=data_spec,
        provenance=provenance,
    )


__all__ = ["XOR_INPUTS", "XOR_TARGETS", "load_blobs", "load_xor"]
