#!/usr/bin/env python3
"""
Time-Domain and Geometric HRV Metrics Module

Statistics of a validated IBI series:
- SDNN, RMSSD, SDSD, pNN50/pNN20 and heart rate range
- Fixed-width (7.8125 ms) histogram, triangular index and TINN
"""

import math
import numpy as np
import pandas as pd
from typing import Optional

from preprocessing import MIN_IBI_SAMPLES, compute_successive_differences

# Conventional HRV histogram resolution (1/128 s)
HISTOGRAM_BIN_WIDTH_MS = 7.8125


def round_half_up(value: float, decimals: int = 0) -> float:
    """
    Round to `decimals` places with halves rounded up (toward +inf),
    unlike the built-in round() which rounds halves to even.
    """
    scale = 10 ** decimals
    return math.floor(value * scale + 0.5) / scale


def compute_rmssd(successive_diffs: np.ndarray):
    if len(successive_diffs) < 1:
        return np.nan
    return np.sqrt(np.sum(successive_diffs ** 2) / len(successive_diffs))


def compute_sdnn(ibi: np.ndarray):
    if len(ibi) < 2:
        return np.nan
    return np.std(ibi, ddof=1)


def compute_pnn(successive_diffs: np.ndarray, threshold_ms: float):
    """Count and percentage of |successive differences| above threshold_ms."""
    if len(successive_diffs) < 1:
        return 0, np.nan
    count = int(np.sum(np.abs(successive_diffs) > threshold_ms))
    return count, count / len(successive_diffs) * 100.0


def compute_heart_rates(ibi: np.ndarray) -> np.ndarray:
    """Instantaneous heart rate (bpm) for every interval."""
    return 60000.0 / np.asarray(ibi, dtype=float)


def compute_time_domain_metrics(ibi: np.ndarray,
                                successive_diffs: Optional[np.ndarray] = None) -> Optional[dict]:
    """
    Compute time-domain HRV metrics from a validated IBI series.

    Args:
        ibi: Validated IBI series in milliseconds
        successive_diffs: Precomputed successive differences (optional)

    Returns:
        dict with keys: 'mean_nn', 'sdnn', 'rmssd', 'pnn50', 'pnn20', 'nn50',
        'nn20', 'sdsd', 'mean_hr', 'min_hr', 'max_hr'; None if fewer than
        MIN_IBI_SAMPLES intervals are given.
    """
    ibi = np.asarray(ibi, dtype=float)
    if len(ibi) < MIN_IBI_SAMPLES:
        return None

    if successive_diffs is None:
        successive_diffs = compute_successive_differences(ibi)
    successive_diffs = np.asarray(successive_diffs, dtype=float)
    if len(successive_diffs) == 0:
        raise ValueError("Successive difference series is empty for a validated IBI series")

    nn50, pnn50 = compute_pnn(successive_diffs, 50.0)
    nn20, pnn20 = compute_pnn(successive_diffs, 20.0)
    sdsd = np.std(successive_diffs, ddof=1) if len(successive_diffs) > 1 else 0.0
    heart_rates = compute_heart_rates(ibi)

    return {
        'mean_nn': round_half_up(float(np.mean(ibi)), 2),
        'sdnn': round_half_up(float(compute_sdnn(ibi)), 2),
        'rmssd': round_half_up(float(compute_rmssd(successive_diffs)), 2),
        'pnn50': round_half_up(float(pnn50), 2),
        'pnn20': round_half_up(float(pnn20), 2),
        'nn50': nn50,
        'nn20': nn20,
        'sdsd': round_half_up(float(sdsd), 2),
        'mean_hr': round_half_up(float(np.mean(heart_rates)), 1),
        'min_hr': round_half_up(float(np.min(heart_rates)), 1),
        'max_hr': round_half_up(float(np.max(heart_rates)), 1),
    }


def compute_histogram_bin_indices(ibi: np.ndarray, bin_width: float = HISTOGRAM_BIN_WIDTH_MS) -> np.ndarray:
    """Integer bin index of every interval, counted from min(ibi)."""
    ibi = np.asarray(ibi, dtype=float)
    return np.floor((ibi - np.min(ibi)) / bin_width).astype(int)


def build_fixed_width_histogram(ibi: np.ndarray, bin_width: float = HISTOGRAM_BIN_WIDTH_MS) -> pd.DataFrame:
    """
    Build the occupied bins of a fixed-width IBI histogram.

    Bins are keyed by integer index so that float bin starts never create
    duplicate keys.

    Returns:
        DataFrame with columns [bin_index, start, end, center, count],
        sorted by bin_index
    """
    ibi = np.asarray(ibi, dtype=float)
    if len(ibi) == 0:
        return pd.DataFrame(columns=['bin_index', 'start', 'end', 'center', 'count'])

    indices = compute_histogram_bin_indices(ibi, bin_width)
    counts = pd.Series(indices).value_counts().sort_index()
    min_val = float(np.min(ibi))

    hist = pd.DataFrame({
        'bin_index': counts.index.astype(int),
        'count': counts.values.astype(int),
    })
    hist['start'] = min_val + hist['bin_index'] * bin_width
    hist['end'] = hist['start'] + bin_width
    hist['center'] = hist['start'] + bin_width / 2.0
    return hist[['bin_index', 'start', 'end', 'center', 'count']].reset_index(drop=True)


def compute_geometric_metrics(ibi: np.ndarray, bin_width: float = HISTOGRAM_BIN_WIDTH_MS) -> Optional[dict]:
    """
    Compute histogram-based geometric HRV metrics.

    Triangular index is n / (max bin count). TINN is approximated by the span
    between the first and last occupied bins, not by a triangle fit.

    Returns:
        dict with keys: 'triangular_index', 'tinn', 'bin_width', 'occupied_bins';
        None if fewer than MIN_IBI_SAMPLES intervals are given.
    """
    ibi = np.asarray(ibi, dtype=float)
    if len(ibi) < MIN_IBI_SAMPLES:
        return None

    hist = build_fixed_width_histogram(ibi, bin_width)
    max_count = int(hist['count'].max())
    triangular_index = len(ibi) / max_count
    tinn = (int(hist['bin_index'].max()) - int(hist['bin_index'].min())) * bin_width

    return {
        'triangular_index': round_half_up(triangular_index, 2),
        'tinn': round_half_up(tinn, 2),
        'bin_width': bin_width,
        'occupied_bins': len(hist),
    }
