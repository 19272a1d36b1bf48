import itertools

import numpy as np
import pytest

from network.errors import DegenerateWeightError, ShapeError
from network.neural_net import Layer, NeuralNet
from training.budget import CancellationToken, TrainingBudget, TrainingStatus
from training.objectives import mean_squared_error, validate_examples
from training.trainer import error_distribution_training, hill_climb_training, train_error_distribution


def linear_net(weight=1.0, bias=1.0):
    return NeuralNet([Layer([[weight], [bias]], use_activation=False)])


class TestObjectives:
    def test_mean_squared_error(self, linear_data):
        examples, targets = linear_data
        # Predictions 4, 5, 6, 7 against 20, 25, 30, 35
        expected = (16 ** 2 + 20 ** 2 + 24 ** 2 + 28 ** 2) / 4
        assert mean_squared_error(linear_net(), examples, targets) == pytest.approx(expected)

    def test_perfect_fit_has_zero_loss(self, linear_data):
        examples, targets = linear_data
        assert mean_squared_error(linear_net(5.0, 5.0), examples, targets) == 0.0

    def test_sums_over_outputs(self):
        net = NeuralNet([Layer([[0.0, 0.0]], use_activation=False)])
        assert mean_squared_error(net, [[], []], [[1.0, 2.0], [3.0, 0.0]]) == pytest.approx((1 + 4 + 9) / 2)

    def test_validation(self, linear_data):
        examples, targets = linear_data
        net = linear_net()

        with pytest.raises(ValueError):
            validate_examples(net, [], [])
        with pytest.raises(ShapeError):
            validate_examples(net, examples, targets[:3])
        with pytest.raises(ShapeError):
            validate_examples(net, [[1.0, 2.0]], [[1.0]])
        with pytest.raises(ShapeError):
            validate_examples(net, [[1.0]], [[1.0, 2.0]])


class TestErrorDistributionStep:
    def test_single_step_values(self, linear_data):
        examples, targets = linear_data
        # Mean error is 22, split evenly between the weight and the bias (11 each)
        updated = error_distribution_training(linear_net(), examples, targets, learning_rate=0.01)
        np.testing.assert_allclose(updated.layers[0].weights, [[1.11], [1.11]])

    def test_does_not_mutate_input(self, linear_data):
        examples, targets = linear_data
        net = linear_net()

        updated = error_distribution_training(net, examples, targets, learning_rate=0.01)

        assert updated is not net
        np.testing.assert_array_equal(net.layers[0].weights, [[1.0], [1.0]])

    def test_mean_squared_error_decreases(self, linear_data):
        examples, targets = linear_data
        net = linear_net()
        losses = [mean_squared_error(net, examples, targets)]
        for _ in range(50):
            net = error_distribution_training(net, examples, targets, learning_rate=0.01)
            losses.append(mean_squared_error(net, examples, targets))

        assert losses[-1] < 0.5 * losses[0]
        assert losses[5] < losses[0]

    def test_random_positive_init_improves(self, rng, linear_data):
        examples, targets = linear_data
        net = NeuralNet([Layer.random_layer(1, 1, [0.5, 1.5], use_activation=False, rng=rng)])
        initial = mean_squared_error(net, examples, targets)
        for _ in range(30):
            net = error_distribution_training(net, examples, targets, learning_rate=0.01)
        assert mean_squared_error(net, examples, targets) < initial

    def test_multi_layer_step(self, rng):
        net = NeuralNet.random_network([2, 3, 1], [0.5, 1.5], rng=rng)
        examples = [[1.0, 2.0], [0.5, -1.0]]
        targets = [[3.0], [0.0]]

        updated = error_distribution_training(net, examples, targets, learning_rate=0.05)

        assert updated.shape == net.shape
        for old, new in zip(net.layers, updated.layers):
            assert new.use_activation == old.use_activation
            assert np.all(np.isfinite(new.weights))
            assert not np.array_equal(new.weights, old.weights)

    def test_backward_walk_values(self):
        # Hidden activations [4, 6], output 26, target 30: output error 4
        hidden = Layer([[1.0, 2.0], [3.0, 4.0]], use_activation=True)
        output = Layer([[1.0], [3.0], [4.0]], use_activation=False)
        net = NeuralNet([hidden, output])

        updated = error_distribution_training(net, [[1.0]], [[30.0]], learning_rate=1.0)

        # Output column total 8: nudges 4 * [1, 3, 4] / 8
        np.testing.assert_allclose(updated.layers[1].weights, [[1.5], [4.5], [6.0]])
        # Hidden node errors [0.5, 1.5] (bias row dropped), column totals [4, 6]
        np.testing.assert_allclose(updated.layers[0].weights, [[1.125, 2.5], [3.375, 5.0]])

    def test_degenerate_weights(self, linear_data):
        examples, targets = linear_data
        net = linear_net(1.0, -1.0)

        with pytest.raises(DegenerateWeightError):
            error_distribution_training(net, examples, targets, strict=True)

        updated = error_distribution_training(net, examples, targets)
        np.testing.assert_array_equal(updated.layers[0].weights, net.layers[0].weights)


class TestErrorDistributionLoop:
    def test_converges_on_linear_data(self, linear_data):
        examples, targets = linear_data
        result = train_error_distribution(linear_net(), examples, targets, learning_rate=0.05,
                                          loss_target=0.1, budget=TrainingBudget(max_iterations=1000))

        assert result.converged
        assert result.loss < 0.1
        assert 0 < result.iterations < 1000
        np.testing.assert_allclose(result.network.predict([7.0]), [40.0], atol=0.5)

    def test_budget_exhausted(self, linear_data):
        examples, targets = linear_data
        reports = []
        result = train_error_distribution(linear_net(), examples, targets, learning_rate=0.0001,
                                          loss_target=0.0, budget=TrainingBudget(max_iterations=5),
                                          reporter=reports.append)

        assert result.status is TrainingStatus.BUDGET_EXHAUSTED
        assert result.iterations == 5
        assert [report.iteration for report in reports] == [0, 1, 2, 3, 4, 5]
        assert result.loss == reports[-1].loss

    def test_diverges_with_large_learning_rate(self, linear_data):
        examples, targets = linear_data
        with np.errstate(all="ignore"):
            result = train_error_distribution(linear_net(), examples, targets, learning_rate=10.0,
                                              loss_target=0.1, budget=TrainingBudget(max_iterations=1000))

        assert result.status is TrainingStatus.DIVERGED
        assert not np.isfinite(result.loss)


class TestHillClimb:
    def test_converges_on_linear_data(self, rng, linear_data):
        examples, targets = linear_data
        result = hill_climb_training(linear_net(4.5, 4.0), examples, targets, loss_target=1.0,
                                     max_change_amount=0.2, budget=TrainingBudget(max_iterations=20000),
                                     rng=rng)

        assert result.converged
        assert result.loss < 1.0
        assert result.loss == pytest.approx(mean_squared_error(result.network, examples, targets))

    def test_best_loss_never_increases(self, rng, linear_data):
        examples, targets = linear_data
        reports = []
        result = hill_climb_training(NeuralNet.random_network([1, 4, 1], [-1, 1], rng=rng), examples, targets,
                                     loss_target=0.0, max_change_amount=0.3,
                                     budget=TrainingBudget(max_iterations=300),
                                     reporter=reports.append, rng=rng)

        best = [report.best_loss for report in reports]
        assert all(later <= earlier for earlier, later in zip(best, best[1:]))
        assert reports[0].improved
        assert result.loss == min(report.loss for report in reports)

    def test_budget_exhausted(self, rng, linear_data):
        examples, targets = linear_data
        reports = []
        result = hill_climb_training(linear_net(), examples, targets, loss_target=0.0, max_change_amount=0.1,
                                     budget=TrainingBudget(max_iterations=25), reporter=reports.append, rng=rng)

        assert result.status is TrainingStatus.BUDGET_EXHAUSTED
        assert result.iterations == 25
        assert len(reports) == 25

    def test_cancellation(self, rng, linear_data):
        examples, targets = linear_data
        token = CancellationToken()

        def cancel_after_three(report):
            if report.iteration == 3:
                token.cancel()

        result = hill_climb_training(linear_net(), examples, targets, loss_target=0.0, max_change_amount=0.1,
                                     budget=TrainingBudget(cancel_token=token), reporter=cancel_after_three,
                                     rng=rng)

        assert result.status is TrainingStatus.CANCELLED
        assert result.iterations == 3

    def test_wall_clock_budget(self, rng, linear_data):
        examples, targets = linear_data
        ticks = itertools.count()
        budget = TrainingBudget(max_seconds=5, clock=lambda: float(next(ticks)))

        result = hill_climb_training(linear_net(), examples, targets, loss_target=0.0, max_change_amount=0.1,
                                     budget=budget, rng=rng)

        assert result.status is TrainingStatus.BUDGET_EXHAUSTED
        assert result.iterations == 4

    def test_deterministic_under_seed(self, linear_data):
        examples, targets = linear_data
        results = [
            hill_climb_training(linear_net(), examples, targets, loss_target=0.0, max_change_amount=0.5,
                                budget=TrainingBudget(max_iterations=50), rng=np.random.default_rng(123))
            for _ in range(2)
        ]

        assert results[0].loss == results[1].loss
        assert np.array_equal(results[0].network.layers[0].weights, results[1].network.layers[0].weights)

    def test_does_not_mutate_input(self, rng, linear_data):
        examples, targets = linear_data
        net = linear_net()
        hill_climb_training(net, examples, targets, loss_target=0.0, max_change_amount=0.5,
                            budget=TrainingBudget(max_iterations=10), rng=rng)
        np.testing.assert_array_equal(net.layers[0].weights, [[1.0], [1.0]])

    def test_zero_change_chance_keeps_input_weights(self, rng, linear_data):
        examples, targets = linear_data
        reports = []
        result = hill_climb_training(linear_net(), examples, targets, loss_target=0.0, max_change_amount=0.5,
                                     budget=TrainingBudget(max_iterations=10), reporter=reports.append,
                                     rng=rng, change_chance=0.0)

        np.testing.assert_array_equal(result.network.layers[0].weights, [[1.0], [1.0]])
        assert [report.improved for report in reports] == [True] + [False] * 9

    def test_partial_change_chance_still_improves(self, rng, linear_data):
        examples, targets = linear_data
        start = linear_net(4.5, 4.0)
        result = hill_climb_training(start, examples, targets, loss_target=0.0, max_change_amount=0.2,
                                     budget=TrainingBudget(max_iterations=500), rng=rng, change_chance=0.5)

        assert result.loss < mean_squared_error(start, examples, targets)

    @pytest.mark.parametrize("chance", [-0.5, 1.01])
    def test_rejects_out_of_range_change_chance(self, rng, linear_data, chance):
        examples, targets = linear_data
        with pytest.raises(ValueError):
            hill_climb_training(linear_net(), examples, targets, loss_target=0.0, max_change_amount=0.1,
                                budget=TrainingBudget(max_iterations=1), rng=rng, change_chance=chance)
