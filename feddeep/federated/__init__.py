"""Federated averaging over simulated workers."""

from .orchestrator import FederatedAveraging, FederatedResult, FederatedSettings
from .partition import epoch_batches, partition, rounds_per_epoch

__all__ = [
    "FederatedAveraging",
    "FederatedResult",
    "FederatedSettings",
    "epoch_batches",
    "partition",
    "rounds_per_epoch",
]
