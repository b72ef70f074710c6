import numpy as np
import pytest

from fiber_mcmc import (
    ChainConfig,
    ConfigurationError,
    exact_test,
    mcmc_expected,
    pearson_residuals,
    run_exact_test,
)
from fiber_mcmc.statistics import STATISTIC_NAMES

A_2X2 = np.array([[1, 1, 0, 0], [0, 0, 1, 1], [1, 0, 1, 0], [0, 1, 0, 1]])
BASIC_MOVE = np.array([[1], [-1], [-1], [1]])


def test_all_ties_give_unit_p_value_and_half_mid_p():
    obs = np.array([3, 2, 1, 4])
    steps = np.tile(obs[:, None], (1, 20))
    res = exact_test(obs, steps)
    assert np.allclose(res.expected, obs)
    for name in STATISTIC_NAMES:
        assert res.p_value[name] == 1.0
        assert res.mid_p_value[name] == 0.5
        assert res.p_value_std_err[name] == 0.0
        assert res.samps_stats[name].shape == (20,)
    assert res.iter == 20


def test_extreme_observed_table_has_small_p_value():
    # observed far from every sampled table
    obs = np.array([10, 0, 0, 10])
    steps = np.tile(np.array([5, 5, 5, 5])[:, None], (1, 10))
    res = exact_test(obs, steps, expected=[5.0, 5.0, 5.0, 5.0])
    assert res.p_value["X2"] == 0.0
    assert res.p_value["PR"] == 0.0
    assert res.statistic["X2"] > 0.0


def test_p_values_are_probabilities():
    rng = np.random.default_rng(0)
    obs = np.array([4, 1, 2, 6])
    steps = rng.integers(0, 8, size=(4, 50))
    res = exact_test(obs, steps, expected=[3.0, 3.0, 3.0, 3.0])
    for name in STATISTIC_NAMES:
        assert 0.0 <= res.p_value[name] <= 1.0
        assert 0.0 <= res.mid_p_value[name] <= res.p_value[name]
        assert res.p_value_std_err[name] >= 0.0


def test_mcmc_expected_is_row_mean():
    steps = np.array([[1, 3], [4, 0]])
    assert mcmc_expected(steps).tolist() == [2.0, 2.0]
    with pytest.raises(ConfigurationError):
        mcmc_expected(np.zeros((2, 0)))


def test_pearson_residuals():
    r = pearson_residuals([6, 2, 0], [4.0, 2.0, 0.0])
    assert np.isclose(r[0], 1.0)
    assert r[1] == 0.0
    assert r[2] == 0.0


def test_shape_mismatch_is_rejected():
    with pytest.raises(ConfigurationError):
        exact_test([1, 2, 3], np.zeros((4, 5), dtype=int))


def test_run_exact_test_end_to_end():
    obs = np.array([3, 2, 1, 4])
    cfg = ChainConfig(iter=200, thin=2, burn=20, symmetrize=True)
    res = run_exact_test(obs, BASIC_MOVE, config=cfg, rng=0, constraint_matrix=A_2X2)
    steps = res.chain["steps"]
    assert steps.shape == (4, 200)
    assert np.all(A_2X2 @ steps == (A_2X2 @ obs)[:, None])
    assert res.iter == 200
    assert 0.0 <= res.p_value["X2"] <= 1.0
    assert res.chain["moves"].shape == (4, 2)


def test_run_exact_test_with_restarts():
    obs = np.array([3, 2, 1, 4])
    cfg = ChainConfig(iter=100, sis=True, sis_prob=0.5, symmetrize=True)
    res = run_exact_test(obs, BASIC_MOVE, config=cfg, rng=1, constraint_matrix=A_2X2)
    assert res.chain["meta"]["sis_restarts"] > 0
    assert np.all(A_2X2 @ res.chain["steps"] == (A_2X2 @ obs)[:, None])


def test_run_exact_test_rejects_mismatched_constraints():
    with pytest.raises(ConfigurationError):
        run_exact_test([3, 2, 1, 4], BASIC_MOVE, constraint_matrix=np.ones((2, 3)), rng=0)


def test_probability_statistic_separates_tables_with_hundreds_of_counts():
    # 4x4 table with 120 on the diagonal (n = 480) against multinomial draws
    obs = np.diag([120, 120, 120, 120]).ravel()
    rng = np.random.default_rng(0)
    steps = rng.multinomial(480, [1.0 / 16] * 16, size=200).T
    res = exact_test(obs, steps, expected=np.full(16, 30.0))
    assert np.all(np.isfinite(res.samps_stats["PR"]))
    assert len(np.unique(res.samps_stats["PR"])) > 1
    assert res.statistic["PR"] < res.samps_stats["PR"].min()
    assert res.p_value["PR"] < 0.5
    assert res.mid_p_value["PR"] < 0.5
