import numpy as np
import pytest

from tmescore.core.ranking import descending_order, rank_columns


def test_ties_receive_average_rank():
    col = np.array([1.0, 2.0, 3.0, 4.0, 5.0, 5.0, 7.0])
    ranks = rank_columns(col)[:, 0]
    assert ranks[4] == 5.5
    assert ranks[5] == 5.5
    assert np.array_equal(ranks[[0, 1, 2, 3, 6]], [1.0, 2.0, 3.0, 4.0, 7.0])


def test_columns_ranked_independently():
    values = np.array([[1.0, 9.0], [3.0, 3.0], [2.0, 3.0]])
    ranks = rank_columns(values)
    assert np.array_equal(ranks[:, 0], [1.0, 3.0, 2.0])
    assert np.array_equal(ranks[:, 1], [3.0, 1.5, 1.5])
    assert ranks.min() >= 1.0
    assert ranks.max() <= values.shape[0]


def test_descending_order_is_stable_for_ties():
    order = descending_order(np.array([1.5, 3.5, 3.5, 1.5]))
    assert order.tolist() == [1, 2, 0, 3]


def test_rank_columns_rejects_bad_input():
    with pytest.raises(ValueError, match="finite"):
        rank_columns(np.array([1.0, np.nan]))
    with pytest.raises(ValueError, match="non-empty"):
        rank_columns(np.empty((0, 3)))
