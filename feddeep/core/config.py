"""Network configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Sequence

from .activations import Activation
from .errors import InvalidConfiguration
from .initializers import Initializer, Normal, initializer_from_dict, initializer_to_dict
from .losses import Loss


class Mode(str, Enum):
    """What the output layer represents."""

    DEFAULT = "default"
    MULTICLASS = "multiclass"
    REGRESSION = "regression"
    BINARY = "binary"
    MULTILABEL = "multilabel"

    @classmethod
    def parse(cls, value: "Mode | str") -> "Mode":
        try:
            return cls(value)
        except ValueError as exc:
            available = ", ".join(item.value for item in cls)
            raise InvalidConfiguration(
                f"Unknown mode {value!r}. Available modes: {available}"
            ) from exc


_DEFAULT_LOSS = {
    Mode.MULTICLASS: Loss.CROSS_ENTROPY,
    Mode.MULTILABEL: Loss.CROSS_ENTROPY,
    Mode.BINARY: Loss.BINARY_CROSS_ENTROPY,
    Mode.REGRESSION: Loss.MEAN_SQUARED,
    Mode.DEFAULT: Loss.MEAN_SQUARED,
}


@dataclass(frozen=True)
class Config:
    """Immutable description of a fully-connected network.

    Attributes
    ----------
    inputs:
        Width of every input vector.
    layout:
        Neuron count of each layer, output layer last.
    activation:
        Activation of the hidden layers (and of the output layer in
        ``Mode.DEFAULT``).
    mode:
        Output mode; selects the output activation and the default loss.
    weight:
        Initialiser sampled once per connection at construction.
    bias:
        Whether every neuron carries a trailing bias connection.
    loss:
        Explicit loss, or ``None`` to derive it from ``mode``.
    """

    inputs: int
    layout: Sequence[int]
    activation: Activation = Activation.SIGMOID
    mode: Mode = Mode.DEFAULT
    weight: Initializer = field(default_factory=Normal)
    bias: bool = True
    loss: Loss | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "inputs", int(self.inputs))
        object.__setattr__(self, "layout", tuple(int(n) for n in self.layout))
        object.__setattr__(self, "activation", Activation.parse(self.activation))
        object.__setattr__(self, "mode", Mode.parse(self.mode))
        if self.loss is not None:
            object.__setattr__(self, "loss", Loss.parse(self.loss))

    def validate(self) -> None:
        if not self.layout:
            raise InvalidConfiguration("layout must contain at least one layer")
        if self.inputs <= 0:
            raise InvalidConfiguration(f"inputs must be positive, got {self.inputs}")
        for idx, width in enumerate(self.layout):
            if width <= 0:
                raise InvalidConfiguration(f"layer {idx} must have a positive width, got {width}")
        # Softmax has no elementwise derivative; only the cross-entropy delta is exact.
        if self.activation is Activation.SOFTMAX:
            raise InvalidConfiguration(
                "softmax cannot be a hidden activation; use mode='multiclass' for a softmax output"
            )
        if self.mode is Mode.MULTICLASS and self.resolved_loss is not Loss.CROSS_ENTROPY:
            raise InvalidConfiguration(
                f"multiclass mode requires the crossentropy loss, got {self.resolved_loss.value}"
            )

    @property
    def outputs(self) -> int:
        return self.layout[-1]

    @property
    def output_activation(self) -> Activation:
        if self.mode is Mode.MULTICLASS:
            return Activation.SOFTMAX
        if self.mode is Mode.REGRESSION:
            return Activation.LINEAR
        if self.mode in (Mode.BINARY, Mode.MULTILABEL):
            return Activation.SIGMOID
        return self.activation

    @property
    def resolved_loss(self) -> Loss:
        return self.loss if self.loss is not None else _DEFAULT_LOSS[self.mode]

    def fan_in(self, layer: int) -> int:
        """Number of non-bias incoming connections of ``layer``'s neurons."""

        return self.inputs if layer == 0 else self.layout[layer - 1]

    def layer_shapes(self) -> tuple[tuple[int, int], ...]:
        extra = 1 if self.bias else 0
        return tuple(
            (width, self.fan_in(idx) + extra) for idx, width in enumerate(self.layout)
        )

    def to_dict(self) -> dict:
        return {
            "inputs": int(self.inputs),
            "layout": list(self.layout),
            "activation": self.activation.value,
            "mode": self.mode.value,
            "weight": initializer_to_dict(self.weight),
            "bias": bool(self.bias),
            "loss": self.loss.value if self.loss is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "Config":
        missing = {"inputs", "layout"} - set(data)
        if missing:
            raise InvalidConfiguration(
                f"Config is missing required keys: {', '.join(sorted(missing))}"
            )
        return cls(
            inputs=int(data["inputs"]),  # type: ignore[arg-type]
            layout=list(data["layout"]),  # type: ignore[arg-type]
            activation=data.get("activation", Activation.SIGMOID.value),  # type: ignore[arg-type]
            mode=data.get("mode", Mode.DEFAULT.value),  # type: ignore[arg-type]
            weight=initializer_from_dict(data.get("weight") or {}),  # type: ignore[arg-type]
            bias=bool(data.get("bias", True)),
            loss=data.get("loss"),  # type: ignore[arg-type]
        )


__all__ = ["Config", "Mode"]
