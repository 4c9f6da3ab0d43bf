#!/usr/bin/env python3
"""
Poincaré Plot Analysis Module

SD1/SD2 descriptors of consecutive-pair scatter. Two inputs are supported:
- 'successive_differences': pairs of the successive difference series (default)
- 'ibi': pairs of the raw IBI series
They describe different quantities and are not interchangeable.
"""

import math
import numpy as np
from typing import Optional

from preprocessing import MIN_IBI_SAMPLES, compute_successive_differences
from hr_metrics import round_half_up

POINCARE_METHODS = ('successive_differences', 'ibi')


def _poincare_from_pairs(series: np.ndarray) -> Optional[dict]:
    series = np.asarray(series, dtype=float)
    if len(series) < 2:
        return None

    rr1 = series[:-1]
    rr2 = series[1:]
    diff = rr1 - rr2
    total = rr1 + rr2

    # Width and length of the point cloud
    sd1 = math.sqrt(np.mean(diff ** 2) / 2.0)
    sd2 = math.sqrt(np.mean(total ** 2) / 2.0)
    ratio = sd1 / sd2 if sd2 > 0 else 0.0
    ellipse_area = math.pi * sd1 * sd2

    return {
        'sd1': round_half_up(sd1, 2),
        'sd2': round_half_up(sd2, 2),
        'sd1_sd2_ratio': round_half_up(ratio, 3),
        'ellipse_area': int(round_half_up(ellipse_area)),
    }


def compute_poincare_metrics(successive_diffs: np.ndarray) -> Optional[dict]:
    """
    Compute SD1, SD2, their ratio and the ellipse area from a successive
    difference series.

    Args:
        successive_diffs: Successive differences of a validated IBI series

    Returns:
        dict with keys: 'sd1', 'sd2', 'sd1_sd2_ratio', 'ellipse_area', 'method';
        None if fewer than 2 differences are given.
    """
    result = _poincare_from_pairs(successive_diffs)
    if result is not None:
        result['method'] = 'successive_differences'
    return result


def compute_poincare_metrics_from_ibi(ibi: np.ndarray) -> Optional[dict]:
    """Same descriptors computed on raw (ibi[i], ibi[i+1]) pairs."""
    result = _poincare_from_pairs(ibi)
    if result is not None:
        result['method'] = 'ibi'
    return result


def analyze_poincare(ibi: np.ndarray, method: str = 'successive_differences') -> Optional[dict]:
    """
    Poincaré analysis of a validated IBI series with the selected input.

    Returns None if fewer than MIN_IBI_SAMPLES intervals are given.
    """
    if method not in POINCARE_METHODS:
        raise ValueError(f"Unknown Poincaré method '{method}'. Expected one of {POINCARE_METHODS}")

    ibi = np.asarray(ibi, dtype=float)
    if len(ibi) < MIN_IBI_SAMPLES:
        return None

    if method == 'ibi':
        return compute_poincare_metrics_from_ibi(ibi)
    return compute_poincare_metrics(compute_successive_differences(ibi))
