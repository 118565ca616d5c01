import jax.numpy as jnp
import numpy as np
import pytest

from changepoint_jax.core import ObservationMatrix, load_delimited, standardize


def test_load_delimited_discovers_shape(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("1,2,3\n4,5,6\n7,8,9\n10,11,12\n")
    data = load_delimited(path)
    assert (data.rows, data.columns) == (4, 3)
    assert len(data) == 4
    assert float(data.Y[3, 0]) == 10.0


def test_load_delimited_single_column_and_single_row(tmp_path):
    col = tmp_path / "col.csv"
    col.write_text("1\n2\n3\n")
    assert load_delimited(col).Y.shape == (3, 1)

    row = tmp_path / "row.csv"
    row.write_text("1;2;3\n")
    assert load_delimited(row, delimiter=";").Y.shape == (1, 3)


def test_load_delimited_rejects_garbage_and_empty(tmp_path):
    bad = tmp_path / "bad.csv"
    bad.write_text("1,2\n3,oops\n")
    with pytest.raises(ValueError):
        load_delimited(bad)

    empty = tmp_path / "empty.csv"
    empty.write_text("")
    with pytest.raises(ValueError):
        load_delimited(empty)


def test_standardize_zero_mean_unit_variance():
    Y = jnp.array([[1.0, 10.0], [2.0, 30.0], [3.0, 20.0], [6.0, 40.0]])
    Z = np.asarray(standardize(Y))
    assert np.allclose(Z.mean(axis=0), 0.0)
    assert np.allclose(Z.std(axis=0), 1.0)


def test_standardize_constant_column_and_single_row():
    Z = np.asarray(standardize(jnp.array([[5.0, 1.0], [5.0, 2.0]])))
    assert np.all(np.isfinite(Z))
    assert np.all(Z[:, 0] == 0.0)

    one = ObservationMatrix(jnp.array([[3.0, 4.0]])).standardized()
    assert np.all(np.asarray(one.Y) == 0.0)
