import jax
import jax.numpy as jnp
import numpy as np
import pytest

from changepoint_jax import RJMCMC, RJMCMCCFG, MoveWeights, iterate_chain, run_chain
from changepoint_jax.core import boundaries as bnd
from changepoint_jax.inference.rj.kernels import BIRTH, DEATH, RELOCATE, RESCALE, UPDATE
from changepoint_jax.inference.rj.rjmcmc import format_changepoints, select_move
from changepoint_jax.likelihoods import log_likelihood


def _level_shift(rows=100, shift=50, seed=0):
    r = np.random.default_rng(seed)
    y = r.normal(size=rows)
    y[:shift] -= 1.0
    y[shift:] += 1.0
    return y[:, None]


def test_move_weights_validation_and_thresholds():
    w = MoveWeights()
    assert w.update == 0.0
    assert np.allclose(w.thresholds(), (0.30, 0.50, 0.75, 1.00))
    assert np.isclose(MoveWeights(0.1, 0.1, 0.1, 0.1).update, 0.6)
    with pytest.raises(ValueError):
        MoveWeights(relocate=0.5, rescale=0.5, birth=0.25, death=0.25)
    with pytest.raises(ValueError):
        MoveWeights(relocate=-0.1)


def test_cfg_validation_and_max_changepoints():
    with pytest.raises(ValueError):
        RJMCMCCFG(n_steps=-1)
    with pytest.raises(ValueError):
        RJMCMCCFG(chunk_size=0)
    assert RJMCMCCFG(max_changepoints=0).resolve_max_changepoints(100) == 99
    assert RJMCMCCFG(max_changepoints=-3).resolve_max_changepoints(100) == 99
    assert RJMCMCCFG(max_changepoints=5).resolve_max_changepoints(100) == 5
    assert RJMCMCCFG(max_changepoints=500).resolve_max_changepoints(100) == 99
    assert RJMCMCCFG().resolve_max_changepoints(1) == 0


def test_select_move_follows_cumulative_weights():
    thresholds = jnp.asarray(MoveWeights(0.1, 0.2, 0.3, 0.2).thresholds())
    us = jnp.array([0.0, 0.09, 0.11, 0.29, 0.31, 0.59, 0.61, 0.79, 0.81, 0.99])
    moves = select_move(us, thresholds).tolist()
    assert moves == [RELOCATE, RELOCATE, RESCALE, RESCALE, BIRTH, BIRTH, DEATH, DEATH, UPDATE, UPDATE]


def test_chain_keeps_invariants():
    Y = _level_shift(rows=40, shift=20)
    run = run_chain(jax.random.PRNGKey(0), Y, n_steps=3000, max_changepoints=4, chunk_size=700)

    assert run.npmax == 4
    assert len(run.moves) == 3000
    assert np.all((run.n_cps >= 0) & (run.n_cps <= 4))
    for cps in run.changepoints:
        assert len(cps) <= 4
        assert list(cps) == sorted(set(cps))
        assert all(0 < b < 40 for b in cps)

    state = run.state
    assert bnd.is_valid(state.bounds, state.n_cp, 40, npmax=4)
    Z = (Y - Y.mean(axis=0)) / Y.std(axis=0)
    fresh = log_likelihood(jnp.asarray(Z), state.model, state.scale)
    assert np.isclose(float(fresh), float(state.loglik))
    assert np.isclose(run.logliks[-1], float(state.loglik))

    # infeasible draws do not change anything and are never accepted
    assert not np.any(run.accepted & ~run.executed)
    summary = run.acceptance_summary()
    assert sum(v["proposed"] for v in summary.values()) == 3000
    emitting = run.accepted & np.isin(run.moves, [RELOCATE, BIRTH, DEATH])
    assert len(run.changepoints) == int(np.sum(emitting))


def test_chain_is_reproducible_from_the_key():
    Y = _level_shift(rows=30, shift=10)
    a = run_chain(jax.random.PRNGKey(4), Y, n_steps=500, max_changepoints=3)
    b = run_chain(jax.random.PRNGKey(4), Y, n_steps=500, max_changepoints=3, chunk_size=128)
    assert a.changepoints == b.changepoints
    assert np.allclose(a.logliks, b.logliks)


def test_zero_iterations_emit_nothing():
    run = run_chain(jax.random.PRNGKey(0), _level_shift(), n_steps=0, max_changepoints=5)
    assert run.changepoints == []
    assert len(run.moves) == 0
    assert list(iterate_chain(jax.random.PRNGKey(0), _level_shift(), n_steps=0)) == []


def test_non_positive_max_equals_rows_minus_one():
    Y = _level_shift(rows=25, shift=12)
    key = jax.random.PRNGKey(1)
    runs = [run_chain(key, Y, n_steps=400, max_changepoints=m) for m in (0, -7, 24)]
    assert all(r.npmax == 24 for r in runs)
    assert runs[0].changepoints == runs[1].changepoints == runs[2].changepoints


def test_degenerate_inputs_do_not_crash():
    one_row = run_chain(jax.random.PRNGKey(0), np.array([[1.0, 2.0, 3.0]]), n_steps=200)
    assert one_row.npmax == 0
    assert one_row.changepoints == []
    assert np.all(one_row.n_cps == 0)

    one_col = run_chain(jax.random.PRNGKey(0), np.arange(12.0), n_steps=300, max_changepoints=3)
    assert np.all(one_col.n_cps <= 3)

    constant = run_chain(jax.random.PRNGKey(0), np.ones((10, 2)), n_steps=300)
    assert np.all(np.isfinite(constant.logliks))


def test_level_shift_is_recovered():
    Y = _level_shift(rows=100, shift=50)
    run = RJMCMC(RJMCMCCFG(n_steps=20_000, max_changepoints=5)).run(jax.random.PRNGKey(0), Y)

    tail = run.changepoints[len(run.changepoints) // 2:]
    assert tail
    near = [any(45 <= b <= 55 for b in cps) for cps in tail]
    assert np.mean(near) > 0.5


def test_format_changepoints():
    assert format_changepoints((3, 50, 77)) == "3,50,77"
    assert format_changepoints(()) == ""
