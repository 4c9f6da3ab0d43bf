#!/usr/bin/env python3
"""
HRV Analysis Module

Runs the full analysis on raw IBI values: validation, then time-domain,
geometric, frequency-domain and Poincaré analyzers on the same validated
series, aggregated into an immutable HRVMetrics result.
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import Iterable, Optional

from preprocessing import (
    MIN_IBI_SAMPLES, MAX_IBI_MS,
    validate_ibi_series, count_outliers, compute_successive_differences
)
from hr_metrics import (
    HISTOGRAM_BIN_WIDTH_MS, round_half_up,
    compute_time_domain_metrics, compute_geometric_metrics
)
from frequency_domain import DEFAULT_SAMPLE_RATE_HZ, compute_frequency_domain_metrics
from poincare import analyze_poincare
from interpretation import rate_data_quality

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HRVMetrics:
    """Aggregate result of one analysis run."""
    time_domain: dict
    geometric: dict
    frequency: dict
    poincare: Optional[dict]
    raw_data: dict

    def to_dict(self, include_series: bool = False) -> dict:
        """
        Plain nested dict of the result.

        Array fields (IBI values, successive differences, PSD) are converted
        to lists when include_series is True and dropped otherwise.
        """
        frequency = dict(self.frequency)
        raw_data = dict(self.raw_data)
        array_fields = [(frequency, 'psd_freqs'), (frequency, 'psd_power'),
                        (raw_data, 'ibi_values'), (raw_data, 'successive_diffs')]
        for section, key in array_fields:
            if include_series and section.get(key) is not None:
                section[key] = np.asarray(section[key]).tolist()
            else:
                section.pop(key, None)

        return {
            'time_domain': dict(self.time_domain),
            'geometric': dict(self.geometric),
            'frequency': frequency,
            'poincare': dict(self.poincare) if self.poincare is not None else None,
            'raw_data': raw_data,
        }

    def to_flat_dict(self) -> dict:
        """Single-level dict of scalar metrics, keys prefixed by section."""
        flat = {}
        for section, values in self.to_dict().items():
            if values is None:
                continue
            for key, value in values.items():
                flat[f'{section}_{key}'] = value
        return flat


def calculate_hrv_metrics(ibi_data: Iterable,
                          frequency_method: str = 'spectral',
                          poincare_method: str = 'successive_differences',
                          bin_width: float = HISTOGRAM_BIN_WIDTH_MS,
                          sample_rate_hz: float = DEFAULT_SAMPLE_RATE_HZ,
                          min_samples: int = MIN_IBI_SAMPLES,
                          max_ibi_ms: float = MAX_IBI_MS) -> Optional[HRVMetrics]:
    """
    Calculate comprehensive HRV metrics from raw IBI values.

    Args:
        ibi_data: Raw IBI cell values in milliseconds
        frequency_method: 'spectral' or 'proportional'
        poincare_method: 'successive_differences' or 'ibi'
        bin_width: Geometric histogram bin width (ms)
        sample_rate_hz: Resampling rate for spectral analysis
        min_samples: Minimum number of valid intervals
        max_ibi_ms: Exclusive upper bound of a valid interval

    Returns:
        HRVMetrics, or None when there is insufficient valid data

    Raises:
        ValueError: min_samples below MIN_IBI_SAMPLES, or an unknown method name
    """
    if min_samples < MIN_IBI_SAMPLES:
        raise ValueError(f"min_samples must be >= {MIN_IBI_SAMPLES}, got {min_samples}")

    raw_values = list(ibi_data) if ibi_data is not None else []
    valid_ibi = validate_ibi_series(raw_values, min_samples=min_samples, max_ibi_ms=max_ibi_ms)
    if valid_ibi is None:
        return None

    successive_diffs = compute_successive_differences(valid_ibi)

    time_domain = compute_time_domain_metrics(valid_ibi, successive_diffs)
    geometric = compute_geometric_metrics(valid_ibi, bin_width=bin_width)
    frequency = compute_frequency_domain_metrics(valid_ibi, method=frequency_method,
                                                 sample_rate_hz=sample_rate_hz)
    poincare = analyze_poincare(valid_ibi, method=poincare_method)

    outliers = count_outliers(raw_values, valid_ibi)
    if outliers > 0:
        logger.info(f"Dropped {outliers} invalid or out-of-range IBI values")

    raw_data = {
        'ibi_values': valid_ibi,
        'successive_diffs': successive_diffs,
        'sample_count': len(valid_ibi),
        'duration_sec': round_half_up(float(np.sum(valid_ibi)) / 1000.0, 1),
        'outliers': outliers,
        'quality': rate_data_quality(len(valid_ibi)),
    }

    logger.info(f"HRV analysis: {len(valid_ibi)} intervals, RMSSD={time_domain['rmssd']:.2f} ms, "
                f"SDNN={time_domain['sdnn']:.2f} ms, frequency method={frequency['method']}")

    return HRVMetrics(
        time_domain=time_domain,
        geometric=geometric,
        frequency=frequency,
        poincare=poincare,
        raw_data=raw_data,
    )
