"""Core typing contracts for FedDeep."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

Array = np.ndarray

Gradients = List[Array]


@dataclass(frozen=True)
class Example:
    """One labelled record: a fixed-length input and a fixed-length target."""

    inputs: Array
    targets: Array

    def __post_init__(self) -> None:
        object.__setattr__(self, "inputs", np.asarray(self.inputs, dtype=np.float64).reshape(-1))
        object.__setattr__(self, "targets", np.asarray(self.targets, dtype=np.float64).reshape(-1))


@dataclass(frozen=True)
class Batch:
    """A single mini-batch of data; rows are examples."""

    inputs: Array
    targets: Array

    def __len__(self) -> int:
        return int(self.inputs.shape[0])

    @classmethod
    def from_examples(cls, examples: Sequence[Example]) -> "Batch":
        if not examples:
            raise ValueError("Cannot build a batch from zero examples")
        return cls(
            inputs=np.stack([ex.inputs for ex in examples]),
            targets=np.stack([ex.targets for ex in examples]),
        )


@dataclass(frozen=True)
class ModelDescription:
    """Description of the feed-forward network architecture."""

    layer_dims: List[int]
    activation: str
    output_activation: str
    loss: str
    bias: bool


@dataclass(frozen=True)
class EpochReport:
    """Progress emitted once per epoch by the orchestrator."""

    epoch: int
    elapsed: float
    loss: float
    accuracy: float | None = None

    def as_metrics(self) -> dict:
        metrics = {"loss": self.loss, "elapsed": self.elapsed}
        if self.accuracy is not None:
            metrics["accuracy"] = self.accuracy
        return metrics


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`feddeep.training.pipelines.run_pipeline`."""

    rounds: int
    metrics_path: str
    manifest_path: str
    summary_path: str = ""
    model_path: str = ""
    history: List[EpochReport] = field(default_factory=list)
