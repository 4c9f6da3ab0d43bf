import math

import numpy as np
import pytest

from poincare import (
    compute_poincare_metrics,
    compute_poincare_metrics_from_ibi,
    analyze_poincare,
)


def test_descriptors_of_single_pair():
    result = compute_poincare_metrics(np.array([1.0, 3.0]))
    assert result['sd1'] == pytest.approx(1.41)
    assert result['sd2'] == pytest.approx(2.83)
    assert result['sd1_sd2_ratio'] == pytest.approx(0.5)
    # pi * sqrt(2) * sqrt(8) = 4 * pi
    assert result['ellipse_area'] == 13
    assert isinstance(result['ellipse_area'], int)
    assert result['method'] == 'successive_differences'


def test_alternating_differences_have_zero_sd2():
    result = compute_poincare_metrics(np.array([10.0, -10.0, 10.0]))
    assert result['sd1'] == pytest.approx(14.14)
    assert result['sd2'] == 0
    assert result['sd1_sd2_ratio'] == 0
    assert result['ellipse_area'] == 0


def test_constant_series_is_all_zero():
    result = analyze_poincare(np.full(15, 800.0))
    assert result['sd1'] == 0
    assert result['sd2'] == 0
    assert result['sd1_sd2_ratio'] == 0
    assert result['ellipse_area'] == 0


def test_too_few_differences_returns_none():
    assert compute_poincare_metrics(np.array([5.0])) is None
    assert compute_poincare_metrics(np.array([])) is None


def test_raw_ibi_variant_differs_from_differences(scenario_ibi):
    ibi = np.array(scenario_ibi, dtype=float)
    on_diffs = analyze_poincare(ibi)
    on_ibi = analyze_poincare(ibi, method='ibi')
    assert on_ibi['method'] == 'ibi'
    # Pairs of ~800 ms values lie far from the origin along the identity line
    assert on_ibi['sd2'] > 1000
    assert on_ibi['sd2'] > on_diffs['sd2']


def test_raw_ibi_variant_values():
    result = compute_poincare_metrics_from_ibi(np.array([800.0, 800.0, 800.0]))
    assert result['sd1'] == 0
    assert result['sd2'] == pytest.approx(1131.37)
    assert result['sd1_sd2_ratio'] == 0


def test_scenario_descriptors_are_consistent(scenario_ibi):
    result = analyze_poincare(np.array(scenario_ibi, dtype=float))
    assert result['sd1'] > 0
    assert result['sd2'] > 0
    assert result['sd1_sd2_ratio'] == pytest.approx(result['sd1'] / result['sd2'], abs=0.01)
    assert result['ellipse_area'] == pytest.approx(math.pi * result['sd1'] * result['sd2'], abs=2)


def test_insufficient_samples_returns_none():
    assert analyze_poincare(np.full(9, 800.0)) is None


def test_unknown_method_raises(scenario_ibi):
    with pytest.raises(ValueError):
        analyze_poincare(np.array(scenario_ibi, dtype=float), method='ellipse')
