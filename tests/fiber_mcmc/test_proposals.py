import numpy as np

from fiber_mcmc import Strategy
from fiber_mcmc.proposals import (
    MoveWeights,
    ProposalEngine,
    adaptive_step,
    hit_and_run_step,
    line_range,
)


def _t(*v):
    return np.array(v, dtype=np.int64)


def test_line_range_contains_zero_and_every_step_is_feasible():
    rng = np.random.default_rng(0)
    checked = 0
    for _ in range(300):
        c = rng.integers(0, 6, size=6)
        m = rng.integers(-2, 3, size=6)
        if not (np.any(m > 0) and np.any(m < 0)):
            continue
        lb, ub = line_range(c, m)
        assert lb is not None and ub is not None
        assert lb <= 0 <= ub
        for t in range(lb, ub + 1):
            assert np.all(c + t * m >= 0)
        # tight: one step past either end leaves the orthant
        assert np.any(c + (lb - 1) * m < 0)
        assert np.any(c + (ub + 1) * m < 0)
        checked += 1
    assert checked > 100


def test_line_range_one_signed_move_is_unbounded():
    lb, ub = line_range(_t(3, 3), _t(1, 2))
    assert lb == -1
    assert ub is None


def test_hit_and_run_draws_uniform_nonzero_multiplier(scripted):
    c, m = _t(2, 2), _t(1, -1)  # line [-2, 2]
    for draw, t_expected in ((-2, -2), (-1, -1), (0, 1), (1, 2)):
        src = scripted(integers=[draw])
        cand, t, fallback = hit_and_run_step(c, m, src)
        assert t == t_expected
        assert not fallback
        assert np.array_equal(cand, c + t_expected * m)
        # one draw over the four nonzero multipliers
        assert src.calls == [("integers", -2, 1)]


def test_hit_and_run_one_sided_range(scripted):
    # empty first cell pins the lower end at 0
    src = scripted(integers=[2])
    cand, t, fallback = hit_and_run_step(_t(0, 3), _t(1, -1), src)
    assert src.calls == [("integers", 0, 2)]
    assert t == 3
    assert np.array_equal(cand, _t(3, 0))
    assert not fallback


def test_hit_and_run_falls_back_on_pinned_line(scripted):
    src = scripted()
    cand, t, fallback = hit_and_run_step(_t(0, 0), _t(1, -1), src)
    assert fallback is True
    assert t == 1
    assert np.array_equal(cand, _t(1, -1))
    assert src.calls == []


def test_hit_and_run_falls_back_on_unbounded_line(scripted):
    src = scripted()
    cand, t, fallback = hit_and_run_step(_t(1, 1), _t(1, 1), src)
    assert fallback is True
    assert t == 1
    assert np.array_equal(cand, _t(2, 2))


def test_adaptive_walks_line_length_local_steps(scripted):
    # line [-1, 1]: two local steps; +m rejected (0.9 >= 1/2), then -m accepted (0.1 < 1/2)
    src = scripted(integers=[1, 0], uniforms=[0.9, 0.1])
    cand, fallback = adaptive_step(_t(1, 1), _t(1, -1), src)
    assert not fallback
    assert np.array_equal(cand, _t(0, 2))
    assert [c[0] for c in src.calls] == ["integers", "uniform", "integers", "uniform"]


def test_adaptive_local_steps_stay_nonnegative(scripted):
    # line [0, 2]; the -m step would go negative and must be rejected even with u = 0
    src = scripted(integers=[0, 1], uniforms=[0.0, 0.0])
    cand, fallback = adaptive_step(_t(0, 2), _t(1, -1), src)
    assert not fallback
    assert np.array_equal(cand, _t(1, 1))


def test_adaptive_falls_back_on_unbounded_line(scripted):
    cand, fallback = adaptive_step(_t(1, 1), _t(1, 1), scripted())
    assert fallback is True
    assert np.array_equal(cand, _t(2, 2))


def test_direct_engine_adds_selected_move(scripted):
    moves = np.array([[1, 0], [-1, 0], [0, 1], [0, -1]])
    src = scripted(integers=[1])
    p = ProposalEngine(moves, Strategy.DIRECT, src).propose(_t(5, 5, 5, 5))
    assert p.move_index == 1
    assert np.array_equal(p.table, _t(5, 5, 6, 4))
    assert src.calls == [("integers", 0, 1)]


def test_weighted_engine_selects_by_weight_and_reinforces(scripted):
    moves = np.array([[1, -1], [-1, 1]])
    src = scripted(categoricals=[1])
    engine = ProposalEngine(moves, Strategy.WEIGHTED, src)
    p = engine.propose(_t(3, 3))
    assert src.calls == [("categorical", [1.0, 1.0])]
    assert np.array_equal(p.table, _t(2, 4))
    engine.accepted(p)
    assert engine.weights.values.tolist() == [1.0, 2.0]
    assert engine.weights.total == 3.0


def test_move_weights_start_uniform():
    w = MoveWeights.uniform(3)
    assert w.values.tolist() == [1.0, 1.0, 1.0]
    assert w.total == 3.0


def test_adaptive_falls_back_on_pinned_line(scripted):
    src = scripted()
    cand, fallback = adaptive_step(_t(0, 0), _t(1, -1), src)
    assert fallback is True
    assert np.array_equal(cand, _t(1, -1))
    assert src.calls == []
