import numpy as np
import pytest

from feddeep.core import activations, initializers, losses
from feddeep.core.config import Config, Mode
from feddeep.core.errors import (
    DataPartitionEmpty,
    FedDeepError,
    InvalidConfiguration,
    ShapeMismatch,
)


def test_activation_derivatives_are_expressed_on_outputs():
    x = np.linspace(-2.0, 2.0, 9)
    eps = 1e-6
    for name in ("sigmoid", "tanh", "linear"):
        fns = activations.get(name)
        numeric = (fns.f(x + eps) - fns.f(x - eps)) / (2 * eps)
        assert np.allclose(fns.df(fns.f(x)), numeric, atol=1e-6), name


def test_relu_and_softmax():
    relu = activations.get("relu")
    assert relu.f(np.array([-1.0, 0.0, 2.0])).tolist() == [0.0, 0.0, 2.0]
    assert relu.df(np.array([0.0, 2.0])).tolist() == [0.0, 1.0]

    rows = activations.softmax(np.array([[1.0, 2.0, 3.0], [1000.0, 1000.0, 1000.0]]))
    assert np.allclose(rows.sum(axis=1), 1.0)
    assert np.allclose(rows[1], 1.0 / 3.0)


def test_unknown_activation_is_invalid_configuration():
    with pytest.raises(InvalidConfiguration):
        activations.Activation.parse("swish")


def test_loss_values_and_deltas():
    pred = np.array([[0.7, 0.2, 0.1]])
    target = np.array([[1.0, 0.0, 0.0]])
    ce = losses.get("crossentropy")
    assert ce.value(pred, target) == pytest.approx(-np.log(0.7), rel=1e-9)
    assert np.allclose(ce.delta(pred, target, np.ones_like(pred)), pred - target)

    mse = losses.get(losses.Loss.MEAN_SQUARED)
    assert mse.value(np.array([1.0, 3.0]), np.array([0.0, 1.0])) == pytest.approx(2.5)
    dact = np.full((1, 3), 0.5)
    assert np.allclose(mse.delta(pred, target, dact), (pred - target) * 0.5)

    bce = losses.get("binarycrossentropy")
    assert bce.value(np.array([[0.5]]), np.array([[1.0]])) == pytest.approx(np.log(2.0))
    assert losses.names() == ["binarycrossentropy", "crossentropy", "meansquared"]


def test_initializers_sample_reproducibly():
    rng_a = np.random.default_rng(3)
    rng_b = np.random.default_rng(3)
    normal = initializers.Normal(mean=0.1, stddev=0.6)
    assert np.array_equal(normal.sample(rng_a, (4, 3)), normal.sample(rng_b, (4, 3)))

    uniform = initializers.Uniform(mean=2.0, spread=0.5).sample(np.random.default_rng(0), 1000)
    assert uniform.min() >= 1.75 and uniform.max() <= 2.25

    constant = initializers.Constant(0.25).sample(np.random.default_rng(0), (2, 2))
    assert np.all(constant == 0.25)


def test_initializer_dict_round_trip():
    init = initializers.initializer_from_dict({"kind": "uniform", "mean": 1, "spread": 2})
    assert init == initializers.Uniform(mean=1.0, spread=2.0)
    assert initializers.initializer_from_dict(initializers.initializer_to_dict(init)) == init
    assert isinstance(initializers.initializer_from_dict({}), initializers.Normal)
    with pytest.raises(InvalidConfiguration):
        initializers.initializer_from_dict({"kind": "xavier"})
    with pytest.raises(InvalidConfiguration):
        initializers.initializer_from_dict({"kind": "constant", "stddev": 1.0})


def test_mode_selects_output_activation_and_loss():
    expected = {
        "multiclass": ("softmax", "crossentropy"),
        "regression": ("linear", "meansquared"),
        "binary": ("sigmoid", "binarycrossentropy"),
        "multilabel": ("sigmoid", "crossentropy"),
        "default": ("tanh", "meansquared"),
    }
    for mode, (activation, loss) in expected.items():
        config = Config(inputs=2, layout=[3, 2], activation="tanh", mode=mode)
        assert config.output_activation.value == activation
        assert config.resolved_loss.value == loss

    explicit = Config(inputs=2, layout=[1], mode=Mode.BINARY, loss="meansquared")
    assert explicit.resolved_loss.value == "meansquared"


def test_config_shapes_and_validation():
    config = Config(inputs=4, layout=[5, 3])
    assert config.layer_shapes() == ((5, 5), (3, 6))
    assert Config(inputs=4, layout=[5, 3], bias=False).layer_shapes() == ((5, 4), (3, 5))
    assert config.outputs == 3

    for bad in (Config(inputs=2, layout=[]), Config(inputs=0, layout=[1]), Config(inputs=2, layout=[3, 0])):
        with pytest.raises(InvalidConfiguration):
            bad.validate()
    with pytest.raises(InvalidConfiguration):
        Config(inputs=2, layout=[1], mode="ranking")
    with pytest.raises(InvalidConfiguration):
        Config.from_dict({"layout": [1]})


def test_config_coerces_inputs_to_int():
    config = Config(inputs=4.0, layout=[2])
    assert config.inputs == 4
    assert isinstance(config.inputs, int)
    with pytest.raises(InvalidConfiguration):
        Config(inputs=0.5, layout=[1]).validate()


@pytest.mark.parametrize("mode", ["default", "regression", "binary", "multiclass"])
def test_softmax_is_rejected_as_configured_activation(mode):
    config = Config(inputs=3, layout=[4, 2], activation="softmax", mode=mode)
    with pytest.raises(InvalidConfiguration, match="softmax"):
        config.validate()


def test_multiclass_output_requires_cross_entropy():
    Config(inputs=3, layout=[4, 2], activation="relu", mode="multiclass").validate()
    with pytest.raises(InvalidConfiguration, match="crossentropy"):
        Config(inputs=3, layout=[4, 2], mode="multiclass", loss="meansquared").validate()


def test_config_dict_round_trip():
    config = Config(
        inputs=3,
        layout=[4, 2],
        activation="relu",
        mode="multiclass",
        weight=initializers.Normal(mean=0.1, stddev=0.6),
        bias=False,
    )
    assert Config.from_dict(config.to_dict()) == config


def test_error_hierarchy():
    assert issubclass(ShapeMismatch, FedDeepError)
    assert issubclass(ShapeMismatch, ValueError)
    assert issubclass(DataPartitionEmpty, InvalidConfiguration)
    err = DataPartitionEmpty([2, 0])
    assert err.sizes == [2, 0]
    assert "[2, 0]" in str(err)
    assert "expected 3, got 4" in str(ShapeMismatch.between("layer count", 3, 4))
