"""Error taxonomy shared by the network, the arithmetic and the orchestrator."""

from __future__ import annotations

from typing import Sequence


class FedDeepError(Exception):
    """Base class for every error raised by :mod:`feddeep`."""


class ShapeMismatch(FedDeepError, ValueError):
    """Two parameter stores, or a vector and a configuration, disagree in shape."""

    @classmethod
    def between(cls, what: str, expected: object, actual: object) -> "ShapeMismatch":
        return cls(f"{what}: expected {expected}, got {actual}")


class InvalidConfiguration(FedDeepError, ValueError):
    """A model, optimiser or federation setting cannot be honoured."""


class DataPartitionEmpty(InvalidConfiguration):
    """A worker shard holds no examples or yields no batches."""

    def __init__(self, sizes: Sequence[int], message: str | None = None) -> None:
        self.sizes = list(sizes)
        super().__init__(message or f"Worker shards must be non-empty, got sizes {self.sizes}")


__all__ = [
    "FedDeepError",
    "ShapeMismatch",
    "InvalidConfiguration",
    "DataPartitionEmpty",
]
