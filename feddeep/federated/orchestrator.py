"""Simulated federated averaging over an in-memory dataset.

Every round, each of the ``W`` workers rebuilds a local model from the same
global :class:`ParameterStore`, trains it on one batch of its own shard, and
adds the result into a shared accumulator under a lock. Once all workers
have finished, the accumulator is divided by ``W`` and becomes the next
global store.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import FIRST_EXCEPTION, Executor, ThreadPoolExecutor, wait
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Mapping, Sequence

import numpy as np

from ..core.arithmetic import add, scale, zeros_like
from ..core.config import Config
from ..core.errors import InvalidConfiguration, ShapeMismatch
from ..core.network import Network
from ..core.parameters import ParameterStore
from ..core.types import Batch, EpochReport
from ..data.examples import ExampleSet
from ..reporting.log import get_logger
from ..training.metrics import evaluate
from ..training.optimizers import optimizer_factory
from ..training.trainer import LocalTrainer
from .partition import epoch_batches, partition, rounds_per_epoch

logger = get_logger("federated")


@dataclass
class FederatedSettings:
    """Runtime parameters of a federated run."""

    workers: int = 4
    batch_size: int = 64
    epochs: int = 1
    local_steps: int = 1
    rounds_per_epoch: int | None = None
    optimizer: str = "adam"
    optimizer_params: Dict[str, float] = field(default_factory=lambda: {"lr": 0.001})
    seed: int | None = None

    def validate(self) -> None:
        if self.workers <= 0:
            raise InvalidConfiguration(f"workers must be positive, got {self.workers}")
        if self.batch_size <= 0:
            raise InvalidConfiguration(f"batch_size must be positive, got {self.batch_size}")
        if self.epochs < 0:
            raise InvalidConfiguration(f"epochs must be non-negative, got {self.epochs}")
        if self.local_steps < 0:
            raise InvalidConfiguration(f"local_steps must be non-negative, got {self.local_steps}")
        if self.rounds_per_epoch is not None and self.rounds_per_epoch <= 0:
            raise InvalidConfiguration(
                f"rounds_per_epoch must be positive when set, got {self.rounds_per_epoch}"
            )

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "FederatedSettings":
        known = set(cls.__dataclass_fields__)
        unknown = set(data) - known
        if unknown:
            raise InvalidConfiguration(
                f"Unknown federated settings: {', '.join(sorted(unknown))}"
            )
        return cls(**data)  # type: ignore[arg-type]


@dataclass
class FederatedResult:
    model: Network
    parameters: ParameterStore
    history: List[EpochReport]
    rounds: int


class FederatedAveraging:
    """FedAvg orchestrator.

    ``callbacks`` follow the epoch-callback protocol: objects exposing
    ``on_epoch(epoch, metrics)`` or plain callables with the same signature.
    ``metrics`` carries ``loss``, ``elapsed`` and, for classifiers,
    ``accuracy``.
    """

    def __init__(
        self,
        config: Config,
        settings: FederatedSettings,
        *,
        callbacks: Sequence[object] | None = None,
    ) -> None:
        settings.validate()
        self.config = config
        self.settings = settings
        self.callbacks = list(callbacks or [])
        self.rng = np.random.default_rng(settings.seed)
        self.model = Network(config, rng=self.rng)
        self.global_store = self.model.export_parameters()
        factory = optimizer_factory(settings.optimizer, **settings.optimizer_params)
        self.trainers = [
            LocalTrainer(factory, local_steps=settings.local_steps)
            for _ in range(settings.workers)
        ]
        self._lock = threading.Lock()
        self._accumulator: ParameterStore | None = None

    @property
    def workers(self) -> int:
        return self.settings.workers

    # ------------------------------------------------------------------
    # Rounds

    def run_round(
        self, batches: Sequence[Batch], *, executor: Executor | None = None
    ) -> ParameterStore:
        """Train every worker on its batch and adopt the averaged parameters."""

        if len(batches) != self.workers:
            raise InvalidConfiguration(
                f"Expected one batch per worker ({self.workers}), got {len(batches)}"
            )
        snapshot = self.global_store
        self._accumulator = zeros_like(snapshot)

        if executor is None:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                self._train_workers(pool, snapshot, batches)
        else:
            self._train_workers(executor, snapshot, batches)

        merged = scale(self._accumulator, self.workers)
        self._accumulator = None
        self.global_store = merged
        self.model = Network.from_parameters(merged)
        return merged

    def _train_workers(
        self, executor: Executor, snapshot: ParameterStore, batches: Sequence[Batch]
    ) -> None:
        futures = [
            executor.submit(self._train_worker, k, snapshot, batch)
            for k, batch in enumerate(batches)
        ]
        _, pending = wait(futures, return_when=FIRST_EXCEPTION)
        for future in pending:
            future.cancel()
        # Workers already running when a sibling failed still reach the barrier.
        wait(futures)
        for k, future in enumerate(futures):
            if future.cancelled():
                continue
            error = future.exception()
            if error is not None:
                logger.error("worker %d failed, aborting round: %s", k, error)
                raise error

    def _train_worker(self, k: int, snapshot: ParameterStore, batch: Batch) -> None:
        local = Network.from_parameters(snapshot)
        contribution = self.trainers[k].train(local, batch)
        with self._lock:
            self._accumulator = add(self._accumulator, contribution)
        logger.debug("worker %d merged (batch=%d, loss=%s)", k, len(batch), self.trainers[k].last_loss)

    # ------------------------------------------------------------------
    # Epochs

    def run(self, train: ExampleSet, test: ExampleSet | None = None) -> FederatedResult:
        """Run ``epochs`` epochs and return the final global model.

        ``test`` is evaluated at the end of every epoch; when omitted the
        training set is used.
        """

        shards = partition(train, self.workers)
        held_out = test if test is not None else train
        for label, examples in (("training", train), ("held-out", held_out)):
            self._check_widths(label, examples)
        logger.info(
            "federated run: %d workers, shard sizes %s, batch size %d, %d epochs",
            self.workers,
            [len(shard) for shard in shards],
            self.settings.batch_size,
            self.settings.epochs,
        )

        history: List[EpochReport] = []
        total_rounds = 0
        start = time.perf_counter()
        with ThreadPoolExecutor(
            max_workers=self.workers, thread_name_prefix="feddeep-worker"
        ) as pool:
            for epoch in range(1, self.settings.epochs + 1):
                batches = epoch_batches(shards, self.settings.batch_size, self.rng)
                rounds = rounds_per_epoch(batches, self.settings.rounds_per_epoch)
                for i in range(rounds):
                    self.run_round(
                        [worker[i].as_batch() for worker in batches], executor=pool
                    )
                total_rounds += rounds

                loss, acc = evaluate(self.model, held_out)
                report = EpochReport(
                    epoch=epoch,
                    elapsed=time.perf_counter() - start,
                    loss=loss,
                    accuracy=acc,
                )
                history.append(report)
                logger.info(
                    "epoch %d: %d rounds, loss=%.4f, accuracy=%s",
                    epoch,
                    rounds,
                    loss,
                    "-" if acc is None else f"{acc:.4f}",
                )
                self._emit_epoch(report)

        return FederatedResult(
            model=self.model,
            parameters=self.global_store,
            history=history,
            rounds=total_rounds,
        )

    def _check_widths(self, label: str, examples: ExampleSet) -> None:
        if examples.input_width != self.config.inputs:
            raise ShapeMismatch.between(
                f"{label} input width", self.config.inputs, examples.input_width
            )
        if examples.target_width != self.config.outputs:
            raise ShapeMismatch.between(
                f"{label} target width", self.config.outputs, examples.target_width
            )

    def _emit_epoch(self, report: EpochReport) -> None:
        metrics = report.as_metrics()
        for callback in self.callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(report.epoch, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(report.epoch, metrics)


__all__ = ["FederatedAveraging", "FederatedResult", "FederatedSettings"]
