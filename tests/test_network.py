"""
Unit tests for the feedforward network model.

These tests validate parameter initialization, the forward pass and its
caches, single-sample training (clipping, non-finite recovery, convergence on
a toy sample), manual bias overrides and the read-only snapshot.
"""

import numpy as np
import pytest

from nexus_core.config import SimulatorConfig
from nexus_core.enums import Activation
from nexus_core.errors import ConfigError, DimensionError
from nexus_core.network import Network, validate_architecture

A = Activation


def make_net(sizes=(2, 4, 3, 1), acts=None, seed=0, **cfg):
    acts = acts or [A.LEAKY_RELU] * (len(sizes) - 2) + [A.SIGMOID]
    return Network(list(sizes), acts, SimulatorConfig(seed=seed, **cfg))


class TestConstruction:
    def test_shapes(self):
        net = make_net()
        assert [w.shape for w in net.weights] == [(2, 4), (4, 3), (3, 1)]
        assert [b.shape for b in net.biases] == [(4,), (3,), (1,)]
        assert [d.shape for d in net.weight_deltas] == [(2, 4), (4, 3), (3, 1)]
        assert net.num_layers == 4

    def test_initial_ranges(self):
        net = make_net(sizes=(4, 8, 2), seed=3)
        for w in net.weights:
            bound = 1.0 / np.sqrt(w.shape[0])
            assert np.all(np.abs(w) <= bound)
        for b in net.biases:
            assert np.all(b >= 0.01)
            assert np.all(b < 0.2)
        for d in net.weight_deltas:
            assert np.all(d == 0.0)

    def test_seed_reproducible(self):
        a = make_net(seed=11)
        b = make_net(seed=11)
        for wa, wb in zip(a.weights, b.weights):
            assert np.array_equal(wa, wb)

    @pytest.mark.parametrize(
        "sizes,acts",
        [
            ([2], []),
            ([2, 0, 1], [A.SIGMOID, A.SIGMOID]),
            ([2, 3, 1], [A.SIGMOID]),
            ([2, 3, 1], [A.SIGMOID, "relu"]),
        ],
    )
    def test_invalid_architecture(self, sizes, acts):
        with pytest.raises(ConfigError):
            validate_architecture(sizes, acts)
        with pytest.raises(ConfigError):
            Network(sizes, acts)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            Network([3], [])


class TestForward:
    def test_output_finite_and_sized(self):
        net = make_net()
        out = net.forward([0.0, 1.0])
        assert out.shape == (1,)
        assert np.all(np.isfinite(out))
        assert 0.0 < out[0] < 1.0

    def test_forward_is_idempotent(self):
        net = make_net()
        first = net.forward([0.3, 0.7])
        second = net.forward([0.3, 0.7])
        assert np.array_equal(first, second)

    def test_caches_refreshed(self):
        net = make_net()
        net.forward([0.25, 0.5])
        assert np.allclose(net.values[0], [0.25, 0.5])
        assert np.allclose(net.pre_activations[0], [0.25, 0.5])
        expected = net.values[0] @ net.weights[0] + net.biases[0]
        assert np.allclose(net.pre_activations[1], expected)

    def test_output_is_a_copy(self):
        net = make_net()
        out = net.forward([0.0, 1.0])
        out[0] = 42.0
        assert net.output[0] != 42.0

    def test_wrong_input_length(self):
        net = make_net()
        with pytest.raises(DimensionError):
            net.forward([1.0, 2.0, 3.0])

    def test_non_finite_sum_replaced_by_zero(self):
        net = make_net(sizes=(2, 2, 1), acts=[A.LEAKY_RELU, A.SIGMOID])
        net.weights[1][:] = np.inf
        out = net.forward([0.0, 1.0])
        assert np.all(np.isfinite(out))
        assert net.pre_activations[2][0] == 0.0
        assert out[0] == pytest.approx(0.5)


class TestTraining:
    def test_single_step_reduces_loss(self):
        net = make_net(sizes=(2, 2, 1), acts=[A.SIGMOID, A.SIGMOID], seed=5)
        before = net.train([0.0, 1.0], [1.0], 0.1)
        net.forward([0.0, 1.0])
        after = net.loss([1.0])
        assert after < before

    @pytest.mark.parametrize("seed", range(50))
    def test_single_step_reduces_loss_for_any_seed(self, seed):
        net = make_net(sizes=(2, 2, 1), acts=[A.SIGMOID, A.SIGMOID], seed=seed)
        before = net.train([0.0, 1.0], [1.0], 0.5)
        net.forward([0.0, 1.0])
        assert net.loss([1.0]) < before

    @pytest.mark.parametrize("seed", range(10))
    def test_sigmoid_pair_converges_within_500_steps(self, seed):
        net = make_net(sizes=(2, 2, 1), acts=[A.SIGMOID, A.SIGMOID], seed=seed)
        for _ in range(500):
            net.train([0.3, 0.7], [1.0], 0.1)
        net.forward([0.3, 0.7])
        assert net.loss([1.0]) < 0.01

    def test_train_returns_pre_update_loss(self):
        net = make_net(seed=2)
        net.forward([0.0, 1.0])
        expected = net.loss([1.0])
        assert net.train([0.0, 1.0], [1.0], 0.1) == pytest.approx(expected)

    def test_converges_on_single_sample(self):
        net = make_net(seed=7)
        for _ in range(2000):
            net.train([0.0, 1.0], [1.0], 0.5)
        net.forward([0.0, 1.0])
        assert net.loss([1.0]) < 0.01

    def test_updates_are_clipped(self):
        net = make_net(seed=1, update_clip=0.01)
        before = [b.copy() for b in net.biases]
        net.train([1.0, 1.0], [0.0], 100.0)
        for d in net.weight_deltas:
            assert np.all(np.abs(d) <= 0.01 + 1e-12)
        assert any(np.isclose(np.abs(d), 0.01).any() for d in net.weight_deltas)
        for b0, b1 in zip(before, net.biases):
            assert np.all(np.abs(b1 - b0) <= 0.01 + 1e-12)

    def test_non_finite_gradients_contribute_nothing(self):
        net = make_net(sizes=(2, 2, 1), acts=[A.LEAKY_RELU, A.SIGMOID])
        net.weights[1][:] = np.inf
        w0 = net.weights[0].copy()
        loss = net.train([0.0, 1.0], [1.0], 0.1)
        assert np.isfinite(loss)
        assert np.array_equal(net.weights[0], w0)
        assert np.all(net.weight_deltas[0] == 0.0)
        for b in net.biases:
            assert np.all(np.isfinite(b))

    def test_wrong_target_length(self):
        net = make_net()
        with pytest.raises(DimensionError):
            net.train([0.0, 1.0], [1.0, 0.0], 0.1)

    def test_zero_learning_rate_changes_nothing(self):
        net = make_net()
        w = [x.copy() for x in net.weights]
        net.train([0.0, 1.0], [1.0], 0.0)
        for a, b in zip(w, net.weights):
            assert np.array_equal(a, b)


class TestEdits:
    def test_set_layer_bias_broadcasts(self):
        net = make_net()
        net.set_layer_bias(1, 0.3)
        assert np.all(net.biases[0] == 0.3)

    def test_set_layer_bias_out_of_range_ignored(self):
        net = make_net()
        before = [b.copy() for b in net.biases]
        net.set_layer_bias(0, 5.0)
        net.set_layer_bias(99, 5.0)
        for a, b in zip(before, net.biases):
            assert np.array_equal(a, b)

    def test_set_activations_keeps_weights(self):
        net = make_net()
        w = [x.copy() for x in net.weights]
        net.set_activations([A.TANH, A.ELU, A.SIGMOID])
        assert net.activations == [A.TANH, A.ELU, A.SIGMOID]
        for a, b in zip(w, net.weights):
            assert np.array_equal(a, b)

    def test_set_activations_wrong_length(self):
        net = make_net()
        with pytest.raises(ConfigError):
            net.set_activations([A.TANH])


class TestSnapshot:
    def test_snapshot_is_read_only_copy(self):
        net = make_net()
        net.forward([0.0, 1.0])
        snap = net.snapshot()
        with pytest.raises(ValueError):
            snap.weights[0][0, 0] = 1.0
        net.weights[0][0, 0] += 1.0
        assert snap.weights[0][0, 0] != net.weights[0][0, 0]

    def test_snapshot_fields(self):
        net = make_net()
        net.forward([0.0, 1.0])
        snap = net.snapshot()
        assert snap.layer_sizes == (2, 4, 3, 1)
        assert snap.activation_for(3) == A.SIGMOID
        assert np.array_equal(snap.output, net.output)
        assert len(snap.deltas) == 3
