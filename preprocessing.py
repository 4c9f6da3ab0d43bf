#!/usr/bin/env python3
"""
IBI Preprocessing Module

Cleans raw inter-beat-interval (IBI) values read from a tabular export:
- Numeric coercion (numbers and numeric strings)
- Physiological range filtering (0 < IBI < 3000 ms)
- Minimum sample gate for analysis
- Successive difference series
"""

import logging
import numpy as np
import pandas as pd
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

MIN_IBI_SAMPLES = 10
MAX_IBI_MS = 3000.0


def _coerce_values(values: Iterable) -> np.ndarray:
    """Coerce arbitrary cell values to float, invalid tokens become NaN."""
    if values is None:
        return np.array([], dtype=float)
    raw = pd.Series(list(values), dtype=object)
    if raw.empty:
        return np.array([], dtype=float)

    # Cells exported with padding or quotes ("812", ' 790 ')
    raw = raw.map(lambda v: v.strip().strip('"').strip() if isinstance(v, str) else v)
    raw = raw.map(lambda v: np.nan if isinstance(v, (bool, np.bool_)) else v)
    return pd.to_numeric(raw, errors='coerce').to_numpy(dtype=float)


def filter_ibi_values(values: Iterable, max_ibi_ms: float = MAX_IBI_MS) -> np.ndarray:
    """
    Keep only plausible IBI values, preserving their order.

    Args:
        values: Raw cell values (numbers, numeric strings or junk)
        max_ibi_ms: Exclusive upper bound in milliseconds

    Returns:
        float64 array of accepted IBI values (may be empty)
    """
    ibi = _coerce_values(values)
    mask = np.isfinite(ibi) & (ibi > 0) & (ibi < max_ibi_ms)
    return ibi[mask]


def validate_ibi_series(values: Iterable,
                        min_samples: int = MIN_IBI_SAMPLES,
                        max_ibi_ms: float = MAX_IBI_MS) -> Optional[np.ndarray]:
    """
    Validate raw values into an IBI series ready for analysis.

    Values that are non-numeric, non-positive or >= max_ibi_ms are dropped
    silently. Too few remaining samples is a normal outcome and yields None.

    Args:
        values: Raw cell values
        min_samples: Minimum number of valid samples required
        max_ibi_ms: Exclusive upper bound in milliseconds

    Returns:
        Validated IBI series, or None when fewer than min_samples remain
    """
    ibi = filter_ibi_values(values, max_ibi_ms=max_ibi_ms)
    if len(ibi) < min_samples:
        logger.info(f"Insufficient IBI data: {len(ibi)} valid samples (need {min_samples})")
        return None
    return ibi


def count_outliers(values: Iterable, valid_ibi: Optional[np.ndarray]) -> int:
    """Number of raw values dropped during validation."""
    original_length = len(list(values)) if values is not None else 0
    valid_length = len(valid_ibi) if valid_ibi is not None else 0
    return original_length - valid_length


def compute_successive_differences(ibi: np.ndarray) -> np.ndarray:
    """Successive differences ibi[i+1] - ibi[i] (length n-1)."""
    return np.diff(np.asarray(ibi, dtype=float))
