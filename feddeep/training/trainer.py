"""Local (per-worker) training."""

from __future__ import annotations

from typing import Callable, Sequence

from ..core.network import Network
from ..core.parameters import ParameterStore
from ..core.types import Batch, Example
from .optimizers import AdamOptimizer, Optimizer


class LocalTrainer:
    """Run a bounded number of optimiser steps on one batch.

    The optimiser state (moment estimates, step counter) belongs to this
    trainer and is reset at the start of every :meth:`train` call, because
    each round starts from a freshly rebuilt local model.
    """

    def __init__(
        self,
        optimizer_factory: Callable[[], Optimizer] | None = None,
        local_steps: int = 1,
    ) -> None:
        if local_steps < 0:
            raise ValueError(f"local_steps must be non-negative, got {local_steps}")
        self._factory = optimizer_factory or AdamOptimizer
        self.optimizer = self._factory()
        self.local_steps = int(local_steps)
        self.last_loss: float | None = None

    def train(self, model: Network, batch: Batch | Sequence[Example]) -> ParameterStore:
        if not isinstance(batch, Batch):
            batch = Batch.from_examples(list(batch))
        self.optimizer.reset()
        self.last_loss = None
        for _ in range(self.local_steps):
            model.forward(batch.inputs)
            self.last_loss = model.backpropagate_step(batch, self.optimizer)
        return model.export_parameters()


__all__ = ["LocalTrainer"]
