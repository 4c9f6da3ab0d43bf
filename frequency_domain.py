#!/usr/bin/env python3
"""
Frequency-Domain HRV Module

Estimates VLF/LF/HF band power of an IBI series with one of two methods:
- 'spectral': resample onto a uniform grid, Hann-windowed periodogram,
  band integration (default)
- 'proportional': fixed 0.3/0.4/0.3 split of the series variance, kept for
  compatibility and as fallback for series too short to resolve LF and HF
"""

import logging
import numpy as np
from scipy.interpolate import interp1d
from scipy.signal import periodogram
from typing import Dict, Optional, Tuple

from preprocessing import MIN_IBI_SAMPLES
from hr_metrics import round_half_up

logger = logging.getLogger(__name__)

FREQUENCY_METHODS = ('spectral', 'proportional')

# Band limits in Hz, lower bound inclusive
FREQUENCY_BANDS = {
    'vlf': (0.003, 0.04),
    'lf': (0.04, 0.15),
    'hf': (0.15, 0.4),
}

PROPORTIONAL_SPLIT = {
    'vlf': 0.3,
    'lf': 0.4,
    'hf': 0.3,
}

DEFAULT_SAMPLE_RATE_HZ = 4.0
MIN_SPECTRAL_SAMPLES = 16


def _band_ratios(lf_power: float, hf_power: float) -> Tuple[float, float, float]:
    """LF/HF ratio and normalized LF/HF units, zero when undefined."""
    lf_hf_ratio = lf_power / hf_power if hf_power > 0 else 0.0
    lf_hf_sum = lf_power + hf_power
    lf_norm = lf_power / lf_hf_sum * 100.0 if lf_hf_sum > 0 else 0.0
    hf_norm = hf_power / lf_hf_sum * 100.0 if lf_hf_sum > 0 else 0.0
    return lf_hf_ratio, lf_norm, hf_norm


def split_total_power(total_power: float) -> Tuple[float, float, float]:
    """Unrounded (vlf, lf, hf) proportional split of total_power."""
    return (
        total_power * PROPORTIONAL_SPLIT['vlf'],
        total_power * PROPORTIONAL_SPLIT['lf'],
        total_power * PROPORTIONAL_SPLIT['hf'],
    )


def compute_proportional_frequency_metrics(ibi: np.ndarray) -> dict:
    """
    Approximate band powers as fixed fractions of the population variance.

    This does not reflect real spectral content; LF/HF is always 4/3 for a
    non-constant series.
    """
    ibi = np.asarray(ibi, dtype=float)
    total_power = float(np.var(ibi))
    vlf_power, lf_power, hf_power = split_total_power(total_power)
    lf_hf_ratio, lf_norm, hf_norm = _band_ratios(lf_power, hf_power)

    return {
        'total_power': int(round_half_up(total_power)),
        'vlf_power': int(round_half_up(vlf_power)),
        'lf_power': int(round_half_up(lf_power)),
        'hf_power': int(round_half_up(hf_power)),
        'lf_hf_ratio': round_half_up(lf_hf_ratio, 2),
        'lf_norm': round_half_up(lf_norm, 2),
        'hf_norm': round_half_up(hf_norm, 2),
        'peak_freq_lf': None,
        'peak_freq_hf': None,
        'psd_freqs': None,
        'psd_power': None,
        'sample_rate_hz': None,
        'method': 'proportional',
    }


def interpolate_ibi_series(ibi: np.ndarray,
                           sample_rate_hz: float = DEFAULT_SAMPLE_RATE_HZ) -> Tuple[np.ndarray, np.ndarray]:
    """
    Resample an IBI series onto a uniform time grid by linear interpolation.

    Each interval is placed at the cumulative time of its beat onset; the grid
    spans the whole recording and holds the last interval after the final onset.

    Args:
        ibi: IBI series in milliseconds
        sample_rate_hz: Grid sampling rate

    Returns:
        Tuple of (uniform_time_sec, interpolated_ibi_sec)
    """
    ibi = np.asarray(ibi, dtype=float)
    ibi_sec = ibi / 1000.0
    beat_times = np.concatenate([[0.0], np.cumsum(ibi_sec[:-1])])
    total_duration = float(np.sum(ibi_sec))

    n_samples = int(np.floor(total_duration * sample_rate_hz))
    uniform_time = np.arange(n_samples) / sample_rate_hz
    if n_samples == 0 or len(ibi_sec) < 2:
        return uniform_time, np.full(n_samples, ibi_sec[0] if len(ibi_sec) else np.nan)

    f = interp1d(beat_times, ibi_sec, kind='linear', bounds_error=False,
                 fill_value=(ibi_sec[0], ibi_sec[-1]))
    return uniform_time, f(uniform_time)


def compute_power_spectrum(resampled_sec: np.ndarray,
                           sample_rate_hz: float = DEFAULT_SAMPLE_RATE_HZ) -> Tuple[np.ndarray, np.ndarray]:
    """One-sided PSD (s^2/Hz) of a uniformly sampled series, Hann window, mean removed."""
    freqs, psd = periodogram(resampled_sec, fs=sample_rate_hz, window='hann',
                             detrend='constant', scaling='density')
    return freqs, psd


def _band_mask(freqs: np.ndarray, band: Tuple[float, float]) -> np.ndarray:
    low, high = band
    return (freqs >= low) & (freqs < high)


def find_peak_frequency(freqs: np.ndarray, psd: np.ndarray, band: Tuple[float, float]) -> float:
    """Frequency of maximum power inside band, 0.0 if the band has no power."""
    mask = _band_mask(freqs, band)
    if not np.any(mask) or np.max(psd[mask]) <= 0:
        return 0.0
    peak_freq = freqs[mask][np.argmax(psd[mask])]
    return round_half_up(float(peak_freq), 3)


def integrate_power_bands(freqs: np.ndarray, psd: np.ndarray) -> Dict[str, float]:
    """
    Integrate PSD over the VLF, LF and HF bands.

    Power is sum(PSD) * frequency resolution, converted from s^2 to ms^2.
    """
    if len(freqs) < 2:
        return {name: 0.0 for name in FREQUENCY_BANDS}
    freq_resolution = freqs[1] - freqs[0]
    powers = {}
    for name, band in FREQUENCY_BANDS.items():
        mask = _band_mask(freqs, band)
        powers[name] = float(np.sum(psd[mask]) * freq_resolution * 1e6)
    return powers


def is_spectral_feasible(freqs: np.ndarray) -> bool:
    """True when the frequency grid has at least one bin in both LF and HF."""
    return bool(np.any(_band_mask(freqs, FREQUENCY_BANDS['lf'])) and
                np.any(_band_mask(freqs, FREQUENCY_BANDS['hf'])))


def compute_spectral_frequency_metrics(ibi: np.ndarray,
                                       sample_rate_hz: float = DEFAULT_SAMPLE_RATE_HZ) -> dict:
    """
    Band powers from the power spectral density of the resampled IBI series.

    Falls back to the proportional estimate when the recording is too short
    for the LF and HF bands to contain any frequency bin.
    """
    _, resampled = interpolate_ibi_series(ibi, sample_rate_hz=sample_rate_hz)
    if len(resampled) < MIN_SPECTRAL_SAMPLES:
        logger.warning(f"Only {len(resampled)} resampled points; using proportional frequency estimate")
        return compute_proportional_frequency_metrics(ibi)

    freqs, psd = compute_power_spectrum(resampled, sample_rate_hz=sample_rate_hz)
    if np.ptp(resampled) == 0:
        # Constant series, detrending leaves only rounding noise
        psd = np.zeros_like(psd)
    if not is_spectral_feasible(freqs):
        logger.warning(f"Frequency resolution {freqs[1] - freqs[0]:.3f} Hz cannot resolve LF/HF; "
                       f"using proportional frequency estimate")
        return compute_proportional_frequency_metrics(ibi)

    powers = integrate_power_bands(freqs, psd)
    vlf_power, lf_power, hf_power = powers['vlf'], powers['lf'], powers['hf']
    total_power = vlf_power + lf_power + hf_power
    lf_hf_ratio, lf_norm, hf_norm = _band_ratios(lf_power, hf_power)

    return {
        'total_power': int(round_half_up(total_power)),
        'vlf_power': int(round_half_up(vlf_power)),
        'lf_power': int(round_half_up(lf_power)),
        'hf_power': int(round_half_up(hf_power)),
        'lf_hf_ratio': round_half_up(lf_hf_ratio, 2),
        'lf_norm': round_half_up(lf_norm, 2),
        'hf_norm': round_half_up(hf_norm, 2),
        'peak_freq_lf': find_peak_frequency(freqs, psd, FREQUENCY_BANDS['lf']),
        'peak_freq_hf': find_peak_frequency(freqs, psd, FREQUENCY_BANDS['hf']),
        'psd_freqs': freqs,
        'psd_power': psd,
        'sample_rate_hz': sample_rate_hz,
        'method': 'spectral',
    }


def compute_frequency_domain_metrics(ibi: np.ndarray,
                                     method: str = 'spectral',
                                     sample_rate_hz: float = DEFAULT_SAMPLE_RATE_HZ) -> Optional[dict]:
    """
    Compute frequency-domain HRV metrics with the selected method.

    Args:
        ibi: Validated IBI series in milliseconds
        method: 'spectral' or 'proportional'
        sample_rate_hz: Resampling rate for the spectral method

    Returns:
        dict with keys: 'total_power', 'vlf_power', 'lf_power', 'hf_power',
        'lf_hf_ratio', 'lf_norm', 'hf_norm', 'peak_freq_lf', 'peak_freq_hf',
        'psd_freqs', 'psd_power', 'sample_rate_hz', 'method';
        None if fewer than MIN_IBI_SAMPLES intervals are given.
    """
    if method not in FREQUENCY_METHODS:
        raise ValueError(f"Unknown frequency method '{method}'. Expected one of {FREQUENCY_METHODS}")

    ibi = np.asarray(ibi, dtype=float)
    if len(ibi) < MIN_IBI_SAMPLES:
        return None

    if method == 'proportional':
        return compute_proportional_frequency_metrics(ibi)
    return compute_spectral_frequency_metrics(ibi, sample_rate_hz=sample_rate_hz)
