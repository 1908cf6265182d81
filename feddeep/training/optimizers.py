"""Per-weight update rules applied by :meth:`Network.backpropagate_step`."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List

import numpy as np

from ..core.errors import InvalidConfiguration
from ..core.types import Array, Gradients


@dataclass
class SGDOptimizer:
    """SGD with learning-rate decay and optional (Nesterov) momentum."""

    lr: float = 0.01
    momentum: float = 0.0
    decay: float = 0.0
    nesterov: bool = False
    _velocity: List[Array] = field(default_factory=list, init=False, repr=False)
    _t: int = field(default=0, init=False, repr=False)

    def reset(self) -> None:
        self._velocity = []
        self._t = 0

    def updates(self, grads: Gradients) -> Gradients:
        self._t += 1
        lr = self.lr / (1.0 + self.decay * (self._t - 1))
        if not self._velocity:
            self._velocity = [np.zeros_like(g) for g in grads]
        out: Gradients = []
        for idx, grad in enumerate(grads):
            velocity = self.momentum * self._velocity[idx] - lr * grad
            self._velocity[idx] = velocity
            if self.nesterov:
                out.append(self.momentum * velocity - lr * grad)
            else:
                out.append(velocity)
        return out

    def step(self, model, grads: Gradients) -> None:
        model.apply_updates(self.updates(grads))


@dataclass
class AdamOptimizer:
    """Adam: bias-corrected running estimates of gradient mean and variance."""

    lr: float = 0.001
    beta1: float = 0.9
    beta2: float = 0.999
    epsilon: float = 1e-8
    _m: List[Array] = field(default_factory=list, init=False, repr=False)
    _v: List[Array] = field(default_factory=list, init=False, repr=False)
    _t: int = field(default=0, init=False, repr=False)

    def reset(self) -> None:
        self._m = []
        self._v = []
        self._t = 0

    @property
    def timestep(self) -> int:
        return self._t

    def updates(self, grads: Gradients) -> Gradients:
        if not self._m:
            self._m = [np.zeros_like(g) for g in grads]
            self._v = [np.zeros_like(g) for g in grads]
        self._t += 1
        correction1 = 1.0 - self.beta1**self._t
        correction2 = 1.0 - self.beta2**self._t
        out: Gradients = []
        for idx, grad in enumerate(grads):
            self._m[idx] = self.beta1 * self._m[idx] + (1.0 - self.beta1) * grad
            self._v[idx] = self.beta2 * self._v[idx] + (1.0 - self.beta2) * grad**2
            m_hat = self._m[idx] / correction1
            v_hat = self._v[idx] / correction2
            out.append(-self.lr * m_hat / (np.sqrt(v_hat) + self.epsilon))
        return out

    def step(self, model, grads: Gradients) -> None:
        model.apply_updates(self.updates(grads))


Optimizer = SGDOptimizer | AdamOptimizer

_FACTORIES: Dict[str, Callable[..., Optimizer]] = {
    "sgd": SGDOptimizer,
    "adam": AdamOptimizer,
}


def build_optimizer(name: str, **params: float) -> Optimizer:
    key = str(name).lower()
    if key not in _FACTORIES:
        available = ", ".join(sorted(_FACTORIES))
        raise InvalidConfiguration(f"Unknown optimizer {name!r}. Available optimizers: {available}")
    try:
        return _FACTORIES[key](**params)
    except TypeError as exc:
        raise InvalidConfiguration(f"Invalid parameters for {key} optimizer: {params}") from exc


def optimizer_factory(name: str, **params: float) -> Callable[[], Optimizer]:
    """Return a zero-argument callable producing fresh optimisers."""

    build_optimizer(name, **params)
    return lambda: build_optimizer(name, **params)


__all__ = [
    "AdamOptimizer",
    "Optimizer",
    "SGDOptimizer",
    "build_optimizer",
    "optimizer_factory",
]
