"""In-memory example collections."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Sequence

import numpy as np

from ..core.errors import ShapeMismatch
from ..core.types import Array, Batch, Example


@dataclass(frozen=True)
class ExampleSet:
    """An ordered, immutable set of labelled examples.

    Inputs and targets are stored as two aligned 2-D arrays, so an
    ``ExampleSet`` can be handed directly to anything that expects a
    :class:`~feddeep.core.types.Batch`.
    """

    inputs: Array
    targets: Array

    def __post_init__(self) -> None:
        inputs = np.atleast_2d(np.array(self.inputs, dtype=np.float64))
        targets = np.array(self.targets, dtype=np.float64)
        if targets.ndim == 1:
            targets = targets.reshape(-1, 1)
        if inputs.shape[0] != targets.shape[0]:
            raise ShapeMismatch.between("target rows", inputs.shape[0], targets.shape[0])
        inputs.setflags(write=False)
        targets.setflags(write=False)
        object.__setattr__(self, "inputs", inputs)
        object.__setattr__(self, "targets", targets)

    @classmethod
    def from_examples(cls, examples: Sequence[Example]) -> "ExampleSet":
        batch = Batch.from_examples(examples)
        return cls(batch.inputs, batch.targets)

    def __len__(self) -> int:
        return int(self.inputs.shape[0])

    def __getitem__(self, index: int) -> Example:
        return Example(self.inputs[index], self.targets[index])

    def __iter__(self) -> Iterator[Example]:
        for idx in range(len(self)):
            yield self[idx]

    @property
    def input_width(self) -> int:
        return int(self.inputs.shape[1])

    @property
    def target_width(self) -> int:
        return int(self.targets.shape[1])

    def take(self, indices: Sequence[int] | Array) -> "ExampleSet":
        idx = np.asarray(indices, dtype=np.int64)
        return ExampleSet(self.inputs[idx], self.targets[idx])

    def as_batch(self) -> Batch:
        return Batch(inputs=self.inputs, targets=self.targets)

    def shuffle(self, rng: np.random.Generator) -> "ExampleSet":
        """Return a reshuffled copy."""

        return self.take(rng.permutation(len(self)))

    def split_n(self, n: int) -> List["ExampleSet"]:
        """Deal examples round-robin into ``n`` disjoint sets."""

        if n <= 0:
            raise ValueError(f"n must be positive, got {n}")
        return [self.take(np.arange(k, len(self), n)) for k in range(n)]

    def split_size(self, size: int) -> List["ExampleSet"]:
        """Slice into consecutive chunks of ``size``; the last may be shorter."""

        if size <= 0:
            raise ValueError(f"size must be positive, got {size}")
        return [
            self.take(np.arange(start, min(start + size, len(self))))
            for start in range(0, len(self), size)
        ]


__all__ = ["ExampleSet"]
