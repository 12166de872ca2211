# tests/test_statistics.py
import math

import pytest

from eda_tools import statistics as st


def test_mean_and_empty_sample():
    assert st.mean([1, 2, 3, 4]) == 2.5
    assert st.mean([]) == 0.0


def test_median_uses_index_n_over_two():
    # Even n takes sorted[n // 2], no averaging
    assert st.median([4, 1, 3, 2]) == 3
    assert st.median([5, 1, 3]) == 3
    assert st.median([]) == 0.0


def test_population_std():
    assert st.std([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)
    assert st.std([7]) == 0.0
    assert st.std([]) == 0.0


def test_linear_quantile():
    values = [1, 2, 3, 4, 5, 100]
    assert st.quantile(values, 0.25) == pytest.approx(2.25)
    assert st.quantile(values, 0.75) == pytest.approx(4.75)
    assert st.quantile(values, 0.5) == pytest.approx(3.5)


def test_sample_skewness_degenerate_inputs():
    assert st.sample_skewness([1, 2]) == 0.0
    assert st.sample_skewness([3, 3, 3, 3]) == 0.0
    assert st.sample_skewness([1, 2, 3]) == pytest.approx(0.0)


def test_sample_skewness_is_bias_corrected():
    values = [0, 0, 0, 0, 0, 1, 2, 3, 4, 5]
    # g1 = 0.768..., corrected by sqrt(n(n-1))/(n-2)
    assert st.sample_skewness(values) == pytest.approx(0.9111, abs=1e-3)


def test_pearson_correlation():
    assert st.pearson_correlation([1, 2, 3], [2, 4, 6]) == pytest.approx(1.0)
    assert st.pearson_correlation([1, 2, 3], [3, 2, 1]) == pytest.approx(-1.0)


def test_pearson_correlation_degenerate_inputs_return_zero():
    assert st.pearson_correlation([1], [1]) == 0.0
    assert st.pearson_correlation([1, 1, 1], [1, 2, 3]) == 0.0
    assert st.pearson_correlation([1, 2], [1, 2, 3]) == 0.0


def test_helpers_never_return_nan():
    for fn in (st.mean, st.median, st.std, st.sample_skewness):
        assert not math.isnan(fn([]))
