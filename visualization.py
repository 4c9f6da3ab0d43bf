#!/usr/bin/env python3
"""
HRV Visualization Module

Chart data for HRV results and a matplotlib overview figure.

The generators only reshape a validated IBI series into point sets for
scatter, Poincaré, histogram and PSD charts; no statistics are computed here.
"""

from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from hr_metrics import round_half_up
from frequency_domain import FREQUENCY_BANDS

PSD_PLOT_MAX_FREQ_HZ = 0.5

BAND_COLORS = {
    'vlf': '#9C27B0',
    'lf': '#FF9800',
    'hf': '#4CAF50',
}


def generate_ibi_scatter_data(ibi) -> Optional[pd.DataFrame]:
    """Index-paired IBI values with instantaneous heart rate (1 decimal)."""
    if ibi is None or len(ibi) < 2:
        return None
    ibi = np.asarray(ibi, dtype=float)
    return pd.DataFrame({
        'x': np.arange(len(ibi)),
        'y': ibi,
        'heart_rate': [round_half_up(60000.0 / v, 1) for v in ibi],
    })


def generate_poincare_data(ibi) -> Optional[pd.DataFrame]:
    """(ibi[i], ibi[i+1]) pairs for i in 0..n-2."""
    if ibi is None or len(ibi) < 2:
        return None
    ibi = np.asarray(ibi, dtype=float)
    return pd.DataFrame({
        'x': ibi[:-1],
        'y': ibi[1:],
        'index': np.arange(len(ibi) - 1),
    })


def generate_ibi_histogram(ibi, bin_count: int = 20) -> Optional[pd.DataFrame]:
    """
    Equal-width histogram over [min(ibi), max(ibi)].

    Values equal to max(ibi) fall in the last bin. A constant series puts every
    value in the first bin.

    Returns:
        DataFrame with columns [start, end, center, count], one row per bin
    """
    if ibi is None or len(ibi) < 2:
        return None
    if bin_count < 1:
        raise ValueError(f"bin_count must be >= 1, got {bin_count}")

    ibi = np.asarray(ibi, dtype=float)
    min_val = float(np.min(ibi))
    max_val = float(np.max(ibi))
    bin_width = (max_val - min_val) / bin_count

    bin_ids = np.arange(bin_count)
    if bin_width > 0:
        indices = np.minimum(np.floor((ibi - min_val) / bin_width).astype(int), bin_count - 1)
    else:
        indices = np.zeros(len(ibi), dtype=int)
    counts = np.bincount(indices, minlength=bin_count)

    return pd.DataFrame({
        'start': min_val + bin_ids * bin_width,
        'end': min_val + (bin_ids + 1) * bin_width,
        'center': min_val + (bin_ids + 0.5) * bin_width,
        'count': counts.astype(int),
    })


def generate_psd_plot_data(frequency: Optional[dict]) -> Optional[pd.DataFrame]:
    """Frequency/power pairs up to 0.5 Hz, None when no PSD was estimated."""
    if not frequency or frequency.get('psd_freqs') is None:
        return None
    freqs = np.asarray(frequency['psd_freqs'], dtype=float)
    power = np.asarray(frequency['psd_power'], dtype=float)

    df = pd.DataFrame({
        'frequency': np.round(freqs, 3),
        'power': power,
        'log_power': np.log10(np.maximum(power, 1e-10)),
    })
    return df[df['frequency'] <= PSD_PLOT_MAX_FREQ_HZ].reset_index(drop=True)


def get_frequency_band_markers() -> list:
    """Vertical band boundary markers for PSD charts."""
    return [
        {'frequency': FREQUENCY_BANDS['lf'][0], 'label': 'VLF|LF', 'color': BAND_COLORS['vlf']},
        {'frequency': FREQUENCY_BANDS['hf'][0], 'label': 'LF|HF', 'color': BAND_COLORS['lf']},
        {'frequency': FREQUENCY_BANDS['hf'][1], 'label': 'HF End', 'color': BAND_COLORS['hf']},
    ]


def plot_hrv_overview(metrics, output_path: Path, title: str = 'HRV Analysis',
                      histogram_bins: int = 20) -> Path:
    """
    Save a 2x2 overview figure: IBI series, Poincaré plot, IBI histogram and
    PSD (or band powers for the proportional estimate).
    """
    ibi = metrics.raw_data['ibi_values']
    scatter = generate_ibi_scatter_data(ibi)
    poincare_points = generate_poincare_data(ibi)
    histogram = generate_ibi_histogram(ibi, bin_count=histogram_bins)
    psd = generate_psd_plot_data(metrics.frequency)

    fig, axes = plt.subplots(2, 2, figsize=(12, 9))
    ax_ibi, ax_poincare, ax_hist, ax_freq = axes.flatten()

    ax_ibi.plot(scatter['x'], scatter['y'], marker='o', markersize=3, linewidth=1, color='#2196F3')
    ax_ibi.set_xlabel('Beat index')
    ax_ibi.set_ylabel('IBI (ms)')
    ax_ibi.set_title(f"IBI series (mean HR {metrics.time_domain['mean_hr']} bpm)")
    ax_ibi.grid(True, alpha=0.3)

    ax_poincare.scatter(poincare_points['x'], poincare_points['y'], s=10, alpha=0.6, color='#E91E63')
    ax_poincare.set_xlabel('IBI n (ms)')
    ax_poincare.set_ylabel('IBI n+1 (ms)')
    if metrics.poincare is not None:
        ax_poincare.set_title(f"Poincaré (SD1 {metrics.poincare['sd1']}, SD2 {metrics.poincare['sd2']})")
    else:
        ax_poincare.set_title('Poincaré')
    ax_poincare.grid(True, alpha=0.3)

    ax_hist.bar(histogram['center'], histogram['count'],
                width=max(float(histogram['end'].iloc[0] - histogram['start'].iloc[0]), 1.0) * 0.9,
                color='#FF9800', alpha=0.7)
    ax_hist.set_xlabel('IBI (ms)')
    ax_hist.set_ylabel('Count')
    ax_hist.set_title(f"Histogram (triangular index {metrics.geometric['triangular_index']})")
    ax_hist.grid(True, alpha=0.3, axis='y')

    if psd is not None:
        ax_freq.plot(psd['frequency'], psd['power'], color='#333333', linewidth=1)
        for marker in get_frequency_band_markers():
            ax_freq.axvline(marker['frequency'], color=marker['color'], linestyle='--', label=marker['label'])
        ax_freq.set_xlabel('Frequency (Hz)')
        ax_freq.set_ylabel('PSD (s²/Hz)')
        ax_freq.legend(loc='upper right')
    else:
        bands = ['vlf', 'lf', 'hf']
        ax_freq.bar([b.upper() for b in bands], [metrics.frequency[f'{b}_power'] for b in bands],
                    color=[BAND_COLORS[b] for b in bands])
        ax_freq.set_ylabel('Power (ms²)')
    ax_freq.set_title(f"Frequency domain ({metrics.frequency['method']}, LF/HF {metrics.frequency['lf_hf_ratio']})")
    ax_freq.grid(True, alpha=0.3, axis='y')

    fig.suptitle(title)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    return output_path
