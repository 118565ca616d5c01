import jax
import jax.numpy as jnp

from changepoint_jax.core import boundaries as bnd


def _set(rows, npmax, values):
    bounds = bnd.empty_boundaries(rows, npmax)
    n_cp = jnp.array(0, dtype=jnp.int32)
    for v in values:
        bounds, n_cp, _ = bnd.insert_boundary(bounds, n_cp, v)
    return bounds, n_cp


def test_empty_boundaries_has_sentinels_and_padding():
    bounds = bnd.empty_boundaries(10, 3)
    assert bounds.tolist() == [0, 10, 10, 10, 10]
    assert bnd.is_valid(bounds, 0, 10)


def test_insert_keeps_order_and_reports_change():
    bounds, n_cp = _set(10, 3, [7, 3])
    assert int(n_cp) == 2
    assert bnd.interior(bounds, n_cp) == (3, 7)
    assert bnd.is_valid(bounds, n_cp, 10)

    same, n_same, changed = bnd.insert_boundary(bounds, n_cp, 7)
    assert not bool(changed)
    assert int(n_same) == 2
    assert same.tolist() == bounds.tolist()


def test_insert_sentinel_collapses():
    bounds, n_cp = _set(10, 3, [0, 10])
    assert int(n_cp) == 0
    assert bnd.interior(bounds, n_cp) == ()


def test_insert_into_full_buffer_is_refused():
    bounds, n_cp = _set(10, 2, [2, 5])
    bounds2, n_cp2, changed = bnd.insert_boundary(bounds, n_cp, 8)
    assert not bool(changed)
    assert int(n_cp2) == 2
    assert bnd.interior(bounds2, n_cp2) == (2, 5)


def test_remove_shifts_tail():
    bounds, n_cp = _set(10, 4, [2, 5, 8])
    bounds, n_cp = bnd.remove_boundary(bounds, n_cp, 2)
    assert bnd.interior(bounds, n_cp) == (2, 8)
    assert bnd.is_valid(bounds, n_cp, 10)
    assert bounds.tolist()[-2:] == [10, 10]


def test_remove_from_full_buffer_keeps_end_sentinel():
    bounds, n_cp = _set(10, 2, [2, 5])
    bounds, n_cp = bnd.remove_boundary(bounds, n_cp, 1)
    assert bounds.tolist() == [0, 5, 10, 10]
    assert bnd.is_valid(bounds, n_cp, 10)


def test_relocate_and_segment_ids():
    bounds, n_cp = _set(6, 3, [2, 4])
    bounds = bnd.relocate_boundary(bounds, 1, 3)
    assert bnd.interior(bounds, n_cp) == (3, 4)
    assert bnd.segment_ids(bounds, 6).tolist() == [0, 0, 0, 1, 2, 2]


def test_init_boundaries_respects_npmax_and_rows():
    for seed in range(5):
        bounds, n_cp = bnd.init_boundaries(jax.random.PRNGKey(seed), 50, 5)
        assert 0 <= int(n_cp) <= 2
        assert bnd.is_valid(bounds, n_cp, 50)

    bounds, n_cp = bnd.init_boundaries(jax.random.PRNGKey(0), 50, 1)
    assert int(n_cp) <= 1

    bounds, n_cp = bnd.init_boundaries(jax.random.PRNGKey(0), 1, 0)
    assert int(n_cp) == 0
    assert bounds.tolist() == [0, 1]


def test_is_valid_detects_broken_sets():
    assert not bnd.is_valid(jnp.array([0, 5, 5, 10]), 2, 10)
    assert not bnd.is_valid(jnp.array([1, 5, 10, 10]), 1, 10)
    assert not bnd.is_valid(jnp.array([0, 5, 10, 10]), 1, 10, npmin=2)
