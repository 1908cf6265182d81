"""Parameter stores: serialisable snapshots of every network weight."""

from __future__ import annotations

import io
import json
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Sequence

import numpy as np

from .config import Config
from .errors import ShapeMismatch
from .types import Array


@dataclass
class ParameterStore:
    """All weights of a network, decoupled from the live model.

    ``weights[layer]`` is a ``(neurons, fan_in [+ bias])`` array, so
    ``weights[layer][neuron][k]`` addresses the ``k``-th incoming connection of
    one neuron. The store shares its :class:`Config` by reference.
    """

    config: Config
    weights: List[Array]

    def __post_init__(self) -> None:
        self.weights = [np.asarray(w, dtype=np.float64) for w in self.weights]

    @property
    def shape(self) -> tuple[tuple[int, ...], ...]:
        return tuple(tuple(w.shape) for w in self.weights)

    def size(self) -> int:
        return int(sum(w.size for w in self.weights))

    def copy(self) -> "ParameterStore":
        return ParameterStore(self.config, [w.copy() for w in self.weights])

    def check_topology(self) -> None:
        """Raise :class:`ShapeMismatch` unless the weights mirror ``config``."""

        expected = self.config.layer_shapes()
        if self.shape != expected:
            raise ShapeMismatch.between("parameter store topology", expected, self.shape)

    def allclose(self, other: "ParameterStore", *, atol: float = 1e-12) -> bool:
        if self.shape != other.shape:
            return False
        return all(np.allclose(a, b, atol=atol) for a, b in zip(self.weights, other.weights))

    # ------------------------------------------------------------------
    # Serialisation

    def to_dict(self) -> dict:
        return {
            "config": self.config.to_dict(),
            "weights": [w.tolist() for w in self.weights],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "ParameterStore":
        config = Config.from_dict(data["config"])  # type: ignore[arg-type]
        raw: Sequence = data["weights"]  # type: ignore[assignment]
        weights = [_layer_array(layer, idx) for idx, layer in enumerate(raw)]
        store = cls(config, weights)
        store.check_topology()
        return store

    def dumps(self, **kwargs) -> str:
        # ``json`` writes the shortest repr that round-trips each float exactly.
        return json.dumps(self.to_dict(), **kwargs)

    @classmethod
    def loads(cls, text: str | bytes) -> "ParameterStore":
        return cls.from_dict(json.loads(text))

    def save(self, path: str | Path) -> str:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.suffix == ".npz":
            payload = {f"W{idx}": w for idx, w in enumerate(self.weights)}
            config = np.frombuffer(json.dumps(self.config.to_dict()).encode(), dtype=np.uint8)
            with path.open("wb") as handle:
                np.savez_compressed(handle, config=config, **payload)
        else:
            path.write_text(self.dumps(indent=None))
        return str(path)

    @classmethod
    def load(cls, path: str | Path) -> "ParameterStore":
        path = Path(path)
        if path.suffix == ".npz":
            with np.load(io.BytesIO(path.read_bytes())) as archive:
                config = Config.from_dict(json.loads(archive["config"].tobytes().decode()))
                count = sum(1 for key in archive.files if key.startswith("W"))
                weights = [archive[f"W{idx}"] for idx in range(count)]
            store = cls(config, weights)
            store.check_topology()
            return store
        return cls.loads(path.read_text())


def _layer_array(layer: Sequence, idx: int) -> Array:
    rows = [list(neuron) for neuron in layer]
    widths = {len(row) for row in rows}
    if len(widths) > 1:
        raise ShapeMismatch(f"layer {idx} has neurons with differing fan-in: {sorted(widths)}")
    if not rows:
        return np.zeros((0, 0), dtype=np.float64)
    return np.asarray(rows, dtype=np.float64)


__all__ = ["ParameterStore"]
