"""Shard and batch scheduling for simulated federated training."""

from __future__ import annotations

from typing import List, Sequence

import numpy as np

from ..core.errors import DataPartitionEmpty, InvalidConfiguration
from ..data.examples import ExampleSet


def partition(examples: ExampleSet, workers: int) -> List[ExampleSet]:
    """Split ``examples`` into ``workers`` disjoint, roughly equal shards."""

    if workers <= 0:
        raise InvalidConfiguration(f"workers must be positive, got {workers}")
    shards = examples.split_n(workers)
    sizes = [len(shard) for shard in shards]
    if min(sizes) == 0:
        raise DataPartitionEmpty(
            sizes, f"{len(examples)} examples cannot fill {workers} worker shards: {sizes}"
        )
    return shards


def epoch_batches(
    shards: Sequence[ExampleSet], batch_size: int, rng: np.random.Generator
) -> List[List[ExampleSet]]:
    """Reshuffle every shard independently and re-slice it into batches."""

    if batch_size <= 0:
        raise InvalidConfiguration(f"batch_size must be positive, got {batch_size}")
    return [shard.shuffle(rng).split_size(batch_size) for shard in shards]


def rounds_per_epoch(batches: Sequence[Sequence[ExampleSet]], cap: int | None = None) -> int:
    """Number of rounds every worker can serve: the smallest batch count."""

    counts = [len(worker) for worker in batches]
    rounds = min(counts) if counts else 0
    if rounds == 0:
        raise DataPartitionEmpty(counts, f"Every worker needs at least one batch, got {counts}")
    if cap is not None:
        rounds = min(rounds, int(cap))
    return rounds


__all__ = ["epoch_batches", "partition", "rounds_per_epoch"]
