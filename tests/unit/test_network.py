import numpy as np
import pytest

from feddeep.core.config import Config
from feddeep.core.errors import ShapeMismatch
from feddeep.core.initializers import Constant
from feddeep.core.network import Network
from feddeep.core.types import Batch, Example
from feddeep.training.optimizers import SGDOptimizer


def _numeric_gradient(network, batch, layer, eps=1e-6):
    weights = network.layers[layer].weights
    grad = np.zeros_like(weights)
    for idx in np.ndindex(*weights.shape):
        saved = weights[idx]
        weights[idx] = saved + eps
        plus = network.loss(network.forward(batch.inputs), batch.targets)
        weights[idx] = saved - eps
        minus = network.loss(network.forward(batch.inputs), batch.targets)
        weights[idx] = saved
        grad[idx] = (plus - minus) / (2 * eps)
    return grad


def test_predict_shape_and_wrong_length():
    network = Network(Config(inputs=3, layout=[4, 2], mode="multiclass"), seed=0)
    out = network.predict([0.1, 0.2, 0.3])
    assert out.shape == (2,)
    assert out.sum() == pytest.approx(1.0)
    with pytest.raises(ShapeMismatch):
        network.predict([0.1, 0.2])
    with pytest.raises(ShapeMismatch):
        network.forward(np.zeros((2, 4)))


def test_layer_weights_mirror_config():
    config = Config(inputs=3, layout=[4, 2], weight=Constant(0.5))
    network = Network(config)
    assert [layer.weights.shape for layer in network.layers] == [(4, 4), (2, 5)]
    assert network.parameter_count() == 16 + 10
    assert np.all(network.layers[0].weights == 0.5)
    description = network.describe()
    assert description.layer_dims == [3, 4, 2]
    assert description.output_activation == "sigmoid"


def test_forward_matches_manual_computation():
    config = Config(inputs=2, layout=[1], activation="linear", weight=Constant(0.0))
    network = Network(config)
    network.layers[0].weights[...] = [[2.0, -1.0, 0.5]]
    assert network.predict([1.0, 3.0])[0] == pytest.approx(2.0 - 3.0 + 0.5)


@pytest.mark.parametrize(
    "mode, targets",
    [
        ("binary", np.array([[0.0], [1.0], [1.0]])),
        ("multiclass", np.array([[1.0, 0.0], [0.0, 1.0], [1.0, 0.0]])),
    ],
)
def test_backward_matches_numerical_gradient(mode, targets):
    config = Config(inputs=3, layout=[4, targets.shape[1]], activation="tanh", mode=mode)
    network = Network(config, seed=4)
    rng = np.random.default_rng(9)
    batch = Batch(inputs=rng.normal(size=(3, 3)), targets=targets)

    grads = network.gradients(batch)
    for layer in range(len(network.layers)):
        numeric = _numeric_gradient(network, batch, layer)
        assert np.allclose(grads[layer], numeric, atol=1e-6)


def test_backward_requires_forward_and_matching_targets():
    network = Network(Config(inputs=2, layout=[2]), seed=0)
    with pytest.raises(RuntimeError):
        network.backward(np.zeros((1, 2)))
    network.forward(np.zeros((3, 2)))
    with pytest.raises(ShapeMismatch):
        network.backward(np.zeros((3, 1)))


def test_backpropagate_step_reduces_loss():
    config = Config(inputs=2, layout=[3, 1], activation="tanh", mode="binary")
    network = Network(config, seed=1)
    batch = Batch.from_examples(
        [Example([0.0, 1.0], [1.0]), Example([1.0, 1.0], [0.0])]
    )
    optimizer = SGDOptimizer(lr=0.1)
    network.forward(batch.inputs)
    before = network.backpropagate_step(batch, optimizer)
    after = network.loss(network.forward(batch.inputs), batch.targets)
    assert after < before

    network.forward(np.zeros((1, 2)))
    with pytest.raises(RuntimeError):
        network.backpropagate_step(batch, optimizer)


def test_single_example_batches_are_accepted():
    network = Network(Config(inputs=2, layout=[2, 1], mode="binary"), seed=0)
    grads = network.gradients(Example([0.5, 0.5], [1.0]))
    assert [g.shape for g in grads] == [(2, 3), (1, 3)]


def test_export_import_preserves_predictions():
    config = Config(inputs=3, layout=[5, 2], activation="relu", mode="multiclass")
    source = Network(config, seed=10)
    target = Network(config, seed=11)
    probe = [0.3, -0.2, 0.9]
    assert not np.allclose(source.predict(probe), target.predict(probe))

    target.import_parameters(source.export_parameters())
    assert np.array_equal(source.predict(probe), target.predict(probe))

    rebuilt = Network.from_parameters(source.export_parameters())
    assert np.array_equal(source.predict(probe), rebuilt.predict(probe))


def test_export_is_a_snapshot():
    network = Network(Config(inputs=2, layout=[2]), seed=0)
    store = network.export_parameters()
    network.layers[0].weights += 1.0
    assert not np.array_equal(store.weights[0], network.layers[0].weights)


def test_import_rejects_foreign_topology():
    small = Network(Config(inputs=2, layout=[3, 1]), seed=0)
    wide = Network(Config(inputs=2, layout=[4, 1]), seed=0)
    with pytest.raises(ShapeMismatch):
        small.import_parameters(wide.export_parameters())
    with pytest.raises(ShapeMismatch):
        small.apply_updates([np.zeros((3, 3))])


def test_marshal_unmarshal_round_trip():
    network = Network(Config(inputs=2, layout=[3, 2], mode="multiclass"), seed=2)
    clone = Network.unmarshal(network.marshal())
    for a, b in zip(network.weights, clone.weights):
        assert np.array_equal(a, b)
    assert clone.config == network.config
