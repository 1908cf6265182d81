"""Console progress for federated runs."""

from __future__ import annotations

import sys
from datetime import timedelta
from typing import Mapping, TextIO

from ..core.types import ModelDescription


def format_elapsed(seconds: float) -> str:
    return str(timedelta(seconds=round(float(seconds), 3)))


class ProgressPrinter:
    """Print one ``epoch  elapsed  loss  accuracy`` line per epoch.

    The accuracy column is left empty for models that are not classifiers.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream or sys.stdout

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        accuracy = metrics.get("accuracy")
        line = "{}\t{}\t{:.4f}\t{}".format(
            epoch,
            format_elapsed(metrics.get("elapsed", 0.0)),
            float(metrics["loss"]),
            "" if accuracy is None else f"{accuracy:.2f}",
        )
        print(line, file=self.stream)

    __call__ = on_epoch


def print_startup_summary(
    description: ModelDescription,
    *,
    dataset_name: str,
    optimizer: str,
    workers: int,
    batch_size: int,
    epochs: int,
    param_count: int,
    stream: TextIO | None = None,
) -> None:
    stream = stream or sys.stdout
    bias = "with bias" if description.bias else "no bias"
    print("=== FedDeep run ===", file=stream)
    print(f"Dataset       : {dataset_name}", file=stream)
    print(f"Dimensions    : {description.layer_dims} ({bias})", file=stream)
    print(f"Activation    : {description.activation} -> {description.output_activation}", file=stream)
    print(f"Loss          : {description.loss}", file=stream)
    print(f"Optimizer     : {optimizer}", file=stream)
    print(f"Workers       : {workers}", file=stream)
    print(f"Batch size    : {batch_size}", file=stream)
    print(f"Epochs        : {epochs}", file=stream)
    print(f"Parameters    : {param_count}", file=stream)
    print("===================", file=stream)


__all__ = ["ProgressPrinter", "format_elapsed", "print_startup_summary"]
