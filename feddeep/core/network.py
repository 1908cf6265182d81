"""Fully-connected feed-forward network with per-layer cached state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from . import activations as activation_catalog
from . import losses as loss_catalog
from .config import Config
from .errors import ShapeMismatch
from .parameters import ParameterStore
from .types import Array, Batch, Example, Gradients, ModelDescription


@dataclass
class Layer:
    """Neurons sharing one activation.

    Row ``j`` of ``weights`` holds neuron ``j``'s incoming connections; the bias
    connection, when present, is the last column.
    """

    weights: Array
    activation: activation_catalog.ActivationFns
    bias: bool
    inputs: Array | None = field(default=None, repr=False)
    sums: Array | None = field(default=None, repr=False)
    outputs: Array | None = field(default=None, repr=False)
    deltas: Array | None = field(default=None, repr=False)

    @property
    def neurons(self) -> int:
        return int(self.weights.shape[0])

    @property
    def fan_in(self) -> int:
        return int(self.weights.shape[1]) - (1 if self.bias else 0)

    def forward(self, x: Array) -> Array:
        z = x @ self.weights[:, : self.fan_in].T
        if self.bias:
            z = z + self.weights[:, -1]
        self.inputs = x
        self.sums = z
        self.outputs = self.activation.f(z)
        return self.outputs

    def gradient(self) -> Array:
        """Mean gradient of the loss w.r.t. ``weights`` from cached values."""

        n = self.inputs.shape[0]
        grad_in = self.deltas.T @ self.inputs / n
        if not self.bias:
            return grad_in
        grad_bias = self.deltas.mean(axis=0).reshape(-1, 1)
        return np.hstack([grad_in, grad_bias])


class Network:
    """Live network built from a :class:`Config`.

    The network is mutated in place by optimiser steps and by
    :meth:`import_parameters`; everything that crosses a worker boundary goes
    through :class:`ParameterStore` instead.
    """

    def __init__(
        self,
        config: Config,
        *,
        rng: np.random.Generator | None = None,
        seed: int | None = None,
    ) -> None:
        config.validate()
        self.config = config
        self._loss = loss_catalog.get(config.resolved_loss)
        hidden = activation_catalog.get(config.activation)
        output = activation_catalog.get(config.output_activation)
        rng = rng if rng is not None else np.random.default_rng(seed)

        self.layers: List[Layer] = []
        last = len(config.layout) - 1
        for idx, shape in enumerate(config.layer_shapes()):
            weights = np.asarray(config.weight.sample(rng, shape), dtype=np.float64)
            self.layers.append(
                Layer(
                    weights=weights,
                    activation=output if idx == last else hidden,
                    bias=config.bias,
                )
            )

    # ------------------------------------------------------------------
    # Forward

    def forward(self, inputs: Array) -> Array:
        """Vectorised forward pass over a ``(n, inputs)`` batch."""

        x = np.asarray(inputs, dtype=np.float64)
        if x.ndim != 2 or x.shape[1] != self.config.inputs:
            raise ShapeMismatch.between(
                "input batch", f"(n, {self.config.inputs})", tuple(x.shape)
            )
        for layer in self.layers:
            x = layer.forward(x)
        return x

    def predict(self, input: Sequence[float] | Array) -> Array:
        x = np.asarray(input, dtype=np.float64)
        if x.ndim != 1 or x.shape[0] != self.config.inputs:
            raise ShapeMismatch.between("input length", self.config.inputs, x.shape[-1] if x.ndim else 0)
        return self.forward(x.reshape(1, -1))[0]

    # ------------------------------------------------------------------
    # Backward

    def backward(self, targets: Array) -> Gradients:
        """Propagate error terms from cached activations and return gradients."""

        out_layer = self.layers[-1]
        if out_layer.outputs is None:
            raise RuntimeError("backward called before forward")
        y = out_layer.outputs
        t = np.atleast_2d(np.asarray(targets, dtype=np.float64))
        if t.shape != y.shape:
            raise ShapeMismatch.between("target batch", y.shape, t.shape)

        out_layer.deltas = self._loss.delta(y, t, out_layer.activation.df(y))
        for idx in reversed(range(len(self.layers) - 1)):
            layer, upper = self.layers[idx], self.layers[idx + 1]
            upstream = upper.deltas @ upper.weights[:, : upper.fan_in]
            layer.deltas = upstream * layer.activation.df(layer.outputs)
        return [layer.gradient() for layer in self.layers]

    def gradients(self, batch: Batch | Example) -> Gradients:
        batch = _as_batch(batch)
        self.forward(batch.inputs)
        return self.backward(batch.targets)

    def backpropagate_step(self, batch: Batch | Example, optimizer) -> float:
        """Apply one optimiser update from the preceding forward pass.

        ``forward`` must have been called on ``batch.inputs`` immediately before;
        the cached activations are consumed. Returns the batch loss.
        """

        batch = _as_batch(batch)
        cached = self.layers[0].inputs
        if cached is None or cached.shape != np.shape(batch.inputs):
            raise RuntimeError("backpropagate_step must follow forward on the same inputs")
        grads = self.backward(batch.targets)
        loss = self._loss.value(self.layers[-1].outputs, batch.targets)
        optimizer.step(self, grads)
        return loss

    def apply_updates(self, updates: Gradients) -> None:
        if len(updates) != len(self.layers):
            raise ShapeMismatch.between("update layer count", len(self.layers), len(updates))
        for layer, update in zip(self.layers, updates):
            layer.weights += update

    def loss(self, predictions: Array, targets: Array) -> float:
        return self._loss.value(predictions, targets)

    # ------------------------------------------------------------------
    # Parameters

    @property
    def weights(self) -> List[Array]:
        return [layer.weights for layer in self.layers]

    def export_parameters(self) -> ParameterStore:
        return ParameterStore(self.config, [layer.weights.copy() for layer in self.layers])

    def import_parameters(self, store: ParameterStore) -> None:
        expected = tuple(layer.weights.shape for layer in self.layers)
        if store.shape != expected:
            raise ShapeMismatch.between("parameter store", expected, store.shape)
        for layer, weights in zip(self.layers, store.weights):
            layer.weights[...] = weights

    @classmethod
    def from_parameters(cls, store: ParameterStore) -> "Network":
        network = cls(store.config, rng=np.random.default_rng(0))
        network.import_parameters(store)
        return network

    def marshal(self) -> str:
        return self.export_parameters().dumps()

    @classmethod
    def unmarshal(cls, text: str | bytes) -> "Network":
        return cls.from_parameters(ParameterStore.loads(text))

    def describe(self) -> ModelDescription:
        return ModelDescription(
            layer_dims=[self.config.inputs, *self.config.layout],
            activation=self.config.activation.value,
            output_activation=self.config.output_activation.value,
            loss=self.config.resolved_loss.value,
            bias=self.config.bias,
        )

    def parameter_count(self) -> int:
        return int(sum(layer.weights.size for layer in self.layers))


def _as_batch(batch: Batch | Example) -> Batch:
    if isinstance(batch, Example):
        return Batch.from_examples([batch])
    return batch


__all__ = ["Layer", "Network"]
