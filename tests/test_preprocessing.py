import numpy as np
import pytest

from preprocessing import (
    MIN_IBI_SAMPLES,
    filter_ibi_values,
    validate_ibi_series,
    count_outliers,
    compute_successive_differences,
)


def test_filter_drops_invalid_and_out_of_range_values():
    raw = [800, '810', ' 790 ', '"805"', 'abc', '', None, 0, -5, 3000, 2999.5,
           np.nan, np.inf, True]
    ibi = filter_ibi_values(raw)
    assert ibi.tolist() == [800.0, 810.0, 790.0, 805.0, 2999.5]
    assert ibi.dtype == np.float64


def test_filter_empty_input():
    assert len(filter_ibi_values([])) == 0
    assert len(filter_ibi_values(None)) == 0


def test_validate_returns_none_below_minimum(scenario_ibi):
    assert validate_ibi_series(scenario_ibi[:9]) is None
    assert validate_ibi_series(scenario_ibi[:10]) is not None


def test_validate_counts_only_valid_samples(scenario_ibi):
    # 9 valid values padded with junk is still insufficient
    raw = scenario_ibi[:9] + ['x', 0, 5000, -1]
    assert validate_ibi_series(raw) is None


def test_validate_is_idempotent(scenario_ibi):
    raw = scenario_ibi + [5000, 'bad', 0]
    once = validate_ibi_series(raw)
    twice = validate_ibi_series(once)
    np.testing.assert_array_equal(once, twice)


def test_extreme_outlier_is_dropped():
    valid = [800, 810, 790, 805, 795, 800, 815, 790, 805, 800, 798, 802, 796, 804]
    raw = valid[:7] + [5000] + valid[7:]
    ibi = validate_ibi_series(raw)
    assert len(ibi) == len(raw) - 1 == 14
    assert 5000 not in ibi
    assert count_outliers(raw, ibi) == 1


def test_custom_bounds():
    raw = [500] * 5 + [2500] * 5
    assert validate_ibi_series(raw, max_ibi_ms=2000) is None
    assert len(validate_ibi_series(raw, min_samples=5, max_ibi_ms=2000)) == 5


def test_count_outliers_for_insufficient_series():
    assert count_outliers([1, 2, 3], None) == 3


def test_successive_differences():
    diffs = compute_successive_differences([800, 810, 790])
    assert diffs.tolist() == [10.0, -20.0]
    assert len(compute_successive_differences(np.arange(MIN_IBI_SAMPLES) + 700)) == MIN_IBI_SAMPLES - 1
