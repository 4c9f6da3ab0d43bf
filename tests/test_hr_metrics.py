import numpy as np
import pytest

from hr_metrics import (
    HISTOGRAM_BIN_WIDTH_MS,
    round_half_up,
    compute_time_domain_metrics,
    compute_geometric_metrics,
    build_fixed_width_histogram,
    compute_histogram_bin_indices,
)


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.125, 2) == 0.13
    assert round_half_up(-2.5) == -2
    # Python's round() would give 2
    assert round(2.5) == 2


def test_time_domain_scenario(scenario_ibi):
    td = compute_time_domain_metrics(np.array(scenario_ibi, dtype=float))
    assert td['mean_nn'] == pytest.approx(800.6)
    assert td['sdnn'] == pytest.approx(5.88)
    assert td['rmssd'] == pytest.approx(10.67)
    assert td['pnn50'] == 0
    assert td['nn50'] == 0
    assert td['nn20'] == 1
    assert td['pnn20'] == pytest.approx(5.26)
    assert td['min_hr'] == pytest.approx(73.6)
    assert td['max_hr'] == pytest.approx(75.9)
    assert td['sdsd'] > 0


def test_time_domain_constant_series():
    td = compute_time_domain_metrics(np.full(20, 800.0))
    assert td['sdnn'] == 0
    assert td['rmssd'] == 0
    assert td['pnn50'] == 0
    assert td['sdsd'] == 0
    assert td['mean_hr'] == 75.0


def test_time_domain_insufficient_data():
    assert compute_time_domain_metrics(np.full(9, 800.0)) is None


def test_time_domain_empty_diffs_is_invariant_violation():
    with pytest.raises(ValueError):
        compute_time_domain_metrics(np.full(12, 800.0), successive_diffs=np.array([]))


def test_pnn50_never_exceeds_pnn20():
    rng = np.random.default_rng(42)
    for _ in range(25):
        ibi = rng.uniform(400, 1400, size=rng.integers(10, 200))
        td = compute_time_domain_metrics(ibi)
        assert td['pnn50'] <= td['pnn20']
        assert td['rmssd'] >= 0
        assert td['sdnn'] >= 0


def test_rmssd_uses_number_of_differences():
    ibi = np.array([800, 850] * 5, dtype=float)
    td = compute_time_domain_metrics(ibi)
    # Every difference is +-50 ms
    assert td['rmssd'] == 50.0
    assert td['pnn50'] == 0
    assert td['pnn20'] == 100.0


def test_geometric_scenario(scenario_ibi):
    geo = compute_geometric_metrics(np.array(scenario_ibi, dtype=float))
    assert geo['triangular_index'] == pytest.approx(1.54)
    assert geo['tinn'] == pytest.approx(23.44)
    assert geo['bin_width'] == HISTOGRAM_BIN_WIDTH_MS
    assert geo['occupied_bins'] == 4


def test_geometric_insufficient_data():
    assert compute_geometric_metrics(np.full(5, 800.0)) is None


def test_geometric_constant_series():
    geo = compute_geometric_metrics(np.full(15, 800.0))
    assert geo['triangular_index'] == 1.0
    assert geo['tinn'] == 0.0


def test_histogram_counts_sum_to_length(scenario_ibi):
    ibi = np.array(scenario_ibi, dtype=float)
    hist = build_fixed_width_histogram(ibi)
    assert hist['count'].sum() == len(ibi)
    assert hist['bin_index'].tolist() == [0, 1, 2, 3]
    assert hist['count'].tolist() == [5, 13, 1, 1]
    assert hist['start'].iloc[0] == 790.0
    assert hist['center'].iloc[0] == pytest.approx(790.0 + HISTOGRAM_BIN_WIDTH_MS / 2)


def test_histogram_bins_keyed_by_integer_index():
    # Values whose float bin starts differ only by rounding noise share a bin
    ibi = np.array([700.0, 700.0 + 3 * 0.1, 700.3, 707.8, 707.9])
    indices = compute_histogram_bin_indices(ibi)
    assert indices.dtype.kind == 'i'
    assert indices.tolist() == [0, 0, 0, 0, 1]
