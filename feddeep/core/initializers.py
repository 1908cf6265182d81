"""Weight initialisers.

Every initialiser is a small frozen dataclass whose :meth:`sample` takes an
explicit :class:`numpy.random.Generator`, so a seeded generator reproduces
the exact same network.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Mapping, Tuple, Union

import numpy as np

from .errors import InvalidConfiguration
from .types import Array

Shape = Union[int, Tuple[int, ...]]


@dataclass(frozen=True)
class Normal:
    """Samples from N(mean, stddev)."""

    mean: float = 0.0
    stddev: float = 1.0
    kind: str = "normal"

    def sample(self, rng: np.random.Generator, size: Shape) -> Array:
        return rng.normal(self.mean, self.stddev, size=size)


@dataclass(frozen=True)
class Uniform:
    """Samples from U(mean - spread/2, mean + spread/2)."""

    mean: float = 0.0
    spread: float = 1.0
    kind: str = "uniform"

    def sample(self, rng: np.random.Generator, size: Shape) -> Array:
        return (rng.random(size) - 0.5) * self.spread + self.mean


@dataclass(frozen=True)
class Constant:
    value: float = 0.0
    kind: str = "constant"

    def sample(self, rng: np.random.Generator, size: Shape) -> Array:
        return np.full(size, float(self.value), dtype=np.float64)


Initializer = Union[Normal, Uniform, Constant]

_KINDS = {"normal": Normal, "uniform": Uniform, "constant": Constant}


def initializer_to_dict(initializer: Initializer) -> dict:
    return asdict(initializer)


def initializer_from_dict(data: Mapping[str, object] | Initializer) -> Initializer:
    """Build an initialiser from ``{"kind": ..., **params}``."""

    if isinstance(data, (Normal, Uniform, Constant)):
        return data
    params = dict(data)
    kind = str(params.pop("kind", "normal")).lower()
    if kind not in _KINDS:
        available = ", ".join(sorted(_KINDS))
        raise InvalidConfiguration(
            f"Unknown initializer {kind!r}. Available initializers: {available}"
        )
    try:
        return _KINDS[kind](**{k: float(v) for k, v in params.items()})
    except TypeError as exc:
        raise InvalidConfiguration(f"Invalid parameters for {kind} initializer: {params}") from exc


__all__ = [
    "Constant",
    "Initializer",
    "Normal",
    "Uniform",
    "initializer_from_dict",
    "initializer_to_dict",
]
