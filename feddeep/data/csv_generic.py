"""CSV loaders for classification datasets."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
from sklearn.preprocessing import LabelEncoder

from .examples import ExampleSet
from .registry import DatasetSpec, DataSpec, register_dataset
from .utils import checksum_path, deterministic_split, min_max_scale, one_hot

FIXTURE_DIR = Path(__file__).resolve().parent / "_fixtures"


def _default_path(name: str) -> Path:
    return FIXTURE_DIR / name


def _read_label_first(path: Path) -> tuple[np.ndarray, np.ndarray]:
    df = pd.read_csv(path, header=None)
    if df.shape[1] < 2:
        raise ValueError(f"{path} needs a label column followed by at least one feature")
    labels = df.pop(0).to_numpy(dtype=np.int64)
    return df.to_numpy(dtype=np.float64), labels


@register_dataset("csv_digits")
def load_csv_digits(
    *,
    train_path: str | Path | None = None,
    test_path: str | Path | None = None,
    num_classes: int | None = None,
    scale: float = 255.0,
    test_split: float = 0.2,
    seed: int = 0,
    **_: object,
) -> DatasetSpec:
    """Label-first CSV rows, as in the MNIST-in-CSV distribution.

    Features are divided by ``scale`` and labels one-hot encoded. Without a
    ``test_path`` a deterministic split of the training file is held out.
    """

    train_file = Path(train_path) if train_path else _default_path("digits_fixture.csv")
    X, y = _read_label_first(train_file)
    if test_path:
        test_file = Path(test_path)
        X_test, y_test = _read_label_first(test_file)
        if X_test.shape[1] != X.shape[1]:
            raise ValueError(
                f"{test_file} has {X_test.shape[1]} features, {train_file} has {X.shape[1]}"
            )
        train_idx = np.arange(X.shape[0])
    else:
        test_file = None
        splits = deterministic_split(X.shape[0], test_split=test_split, seed=seed)
        X_test, y_test = X[splits.test], y[splits.test]
        train_idx = splits.train

    if num_classes is None:
        num_classes = int(max(y.max(), y_test.max() if y_test.size else 0)) + 1
    X = X / float(scale)
    X_test = X_test / float(scale)

    data_spec = DataSpec(
        d_in=int(X.shape[1]),
        d_out=int(num_classes),
        task_type="multiclass",
        num_classes=int(num_classes),
        normalization={"divisor": float(scale)},
    )
    provenance = {
        "path": str(train_file),
        "checksum": checksum_path(train_file),
        "test_path": str(test_file) if test_file else None,
        "test_split": None if test_file else test_split,
        "seed": seed,
    }
    return DatasetSpec(
        name="csv_digits",
        train=ExampleSet(X[train_idx], one_hot(y[train_idx], num_classes)),
        test=ExampleSet(X_test, one_hot(y_test, num_classes)),
        data_spec=data_spec,
        provenance=provenance,
    )


@register_dataset("csv_classification")
def load_csv_classification(
    *,
    csv_path: str | Path | None = None,
    target_col: str = "target",
    test_split: float = 0.2,
    seed: int = 0,
    **_: object,
) -> DatasetSpec:
    """Load a headed CSV with a named target column.

    Features are min-max scaled into [0, 1]; labels of any type are encoded
    with :class:`~sklearn.preprocessing.LabelEncoder` and one-hot expanded.
    """

    path = Path(csv_path) if csv_path else _default_path("classification_fixture.csv")
    df = pd.read_csv(path)
    if target_col not in df.columns:
        raise KeyError(f"Target column {target_col!r} not found in CSV")
    y_raw = df.pop(target_col).to_numpy()
    X, low, high = min_max_scale(df.to_numpy(dtype=np.float64))

    encoder = LabelEncoder()
    y_encoded = encoder.fit_transform(y_raw)
    num_classes = int(np.max(y_encoded)) + 1
    targets = one_hot(y_encoded, num_classes)
    splits = deterministic_split(X.shape[0], test_split=test_split, seed=seed)

    data_spec = DataSpec(
        d_in=int(X.shape[1]),
        d_out=num_classes,
        task_type="multiclass",
        num_classes=num_classes,
        normalization={"min": low.ravel().tolist(), "max": high.ravel().tolist()},
    )
    provenance = {
        "path": str(path),
        "checksum": checksum_path(path),
        "test_split": test_split,
        "seed": seed,
        "target_col": target_col,
        "classes": [str(c) for c in encoder.classes_.tolist()],
    }
    return DatasetSpec(
        name="csv_classification",
        train=ExampleSet(X[splits.train], targets[splits.train]),
        test=ExampleSet(X[splits.test], targets[splits.test]),
        data_spec=data_spec,
        provenance=provenance,
    )


__all__ = ["load_csv_classification", "load_csv_digits"]
