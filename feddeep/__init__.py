"""FedDeep public API."""

from .core import activations  # noqa: F401
from .core import arithmetic  # noqa: F401
from .core import types  # noqa: F401
from .core.config import Config, Mode
from .core.errors import (
    DataPartitionEmpty,
    FedDeepError,
    InvalidConfiguration,
    ShapeMismatch,
)
from .core.network import Network
from .core.parameters import ParameterStore
from .federated.orchestrator import FederatedAveraging, FederatedSettings
from .training.pipelines import load_preset, presets, run_pipeline
from .training.trainer import LocalTrainer

__all__ = [
    "Config",
    "DataPartitionEmpty",
    "FedDeepError",
    "FederatedAveraging",
    "FederatedSettings",
    "InvalidConfiguration",
    "LocalTrainer",
    "Mode",
    "Network",
    "ParameterStore",
    "ShapeMismatch",
    "activations",
    "arithmetic",
    "load_preset",
    "presets",
    "run_pipeline",
    "types",
]
