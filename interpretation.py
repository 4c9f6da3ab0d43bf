#!/usr/bin/env python3
"""
HRV Quality and Interpretation Module

Rule-based mapping of computed HRV metrics to categorical assessments and
wellness text. Thresholds are fixed constants.
"""

from dataclasses import dataclass, asdict
from typing import List, Optional, Union

from hr_metrics import round_half_up

ASSESSMENT_STATUSES = frozenset({
    'excellent', 'good', 'fair', 'poor', 'attention',
    'elevated', 'high', 'low', 'optimal',
})

# (lower bound, status, interpretation), checked top-down with strict '>'
RMSSD_RULES = [
    (50, 'excellent', 'High parasympathetic activity - excellent recovery capacity'),
    (30, 'good', 'Good parasympathetic activity - healthy recovery'),
    (15, 'fair', 'Moderate parasympathetic activity - consider stress management'),
]
RMSSD_DEFAULT = ('poor', 'Low parasympathetic activity - may indicate stress or fatigue')

SDNN_RULES = [
    (50, 'excellent', 'Excellent overall heart rate variability'),
    (30, 'good', 'Good overall heart rate variability'),
]
SDNN_DEFAULT = ('fair', 'Lower overall variability - focus on recovery practices')

SD1_SD2_RULES = [
    (0.5, 'good', 'Balanced short-term vs long-term variability'),
]
SD1_SD2_DEFAULT = ('attention', 'Imbalanced variability pattern - monitor stress levels')

LF_HF_RULES = [
    (4, 'high', 'High sympathetic dominance - consider stress management'),
    (1.5, 'elevated', 'Moderate sympathetic activity - monitor stress levels'),
]
LF_HF_DEFAULT = ('good', 'Balanced autonomic nervous system activity')

HF_POWER_RULES = [
    (500, 'excellent', 'Strong parasympathetic activity - excellent recovery capacity'),
    (100, 'good', 'Good parasympathetic activity'),
]
HF_POWER_DEFAULT = ('low', 'Low parasympathetic activity - focus on relaxation')

OPTIMAL_RESPIRATORY_BAND_HZ = (0.15, 0.25)
ELEVATED_HEART_RATE_BPM = 100


@dataclass(frozen=True)
class Assessment:
    """Categorical assessment of a single metric."""
    metric: str
    value: Union[float, int]
    status: str
    interpretation: str

    def to_dict(self) -> dict:
        return asdict(self)


def classify(metric: str, value: float, rules: list, default: tuple) -> Assessment:
    """Apply threshold rules (first strictly exceeded bound wins)."""
    for bound, status, text in rules:
        if value > bound:
            return Assessment(metric, value, status, text)
    status, text = default
    return Assessment(metric, value, status, text)


def assess_hrv_quality(metrics) -> Optional[List[Assessment]]:
    """
    Assess RMSSD, SDNN and (when available) the SD1/SD2 ratio.

    Args:
        metrics: HRVMetrics from calculate_hrv_metrics, or None

    Returns:
        Assessments ordered RMSSD, SDNN, SD1/SD2; None for absent metrics
    """
    if metrics is None:
        return None

    time_domain = metrics.time_domain
    poincare = metrics.poincare

    assessments = [
        classify('RMSSD', time_domain['rmssd'], RMSSD_RULES, RMSSD_DEFAULT),
        classify('SDNN', time_domain['sdnn'], SDNN_RULES, SDNN_DEFAULT),
    ]

    # A zero ratio means SD2 was zero, nothing meaningful to assess
    if poincare and poincare.get('sd1_sd2_ratio'):
        assessments.append(
            classify('SD1/SD2', poincare['sd1_sd2_ratio'], SD1_SD2_RULES, SD1_SD2_DEFAULT)
        )

    return assessments


def interpret_frequency_domain(frequency: Optional[dict]) -> Optional[List[Assessment]]:
    """
    Interpret LF/HF balance, HF power and the HF peak (respiratory rate).

    Returns:
        Assessments ordered LF/HF Ratio, HF Power, Respiratory Rate (only when
        the HF peak lies in the optimal band); None for absent metrics
    """
    if not frequency:
        return None

    interpretations = [
        classify('LF/HF Ratio', frequency['lf_hf_ratio'], LF_HF_RULES, LF_HF_DEFAULT),
        classify('HF Power', frequency['hf_power'], HF_POWER_RULES, HF_POWER_DEFAULT),
    ]

    peak_hf = frequency.get('peak_freq_hf')
    low, high = OPTIMAL_RESPIRATORY_BAND_HZ
    if peak_hf and low <= peak_hf <= high:
        breaths_per_min = int(round_half_up(peak_hf * 60))
        interpretations.append(Assessment(
            'Respiratory Rate',
            breaths_per_min,
            'optimal',
            'Respiratory rate in optimal range for HRV',
        ))

    return interpretations


def rate_data_quality(sample_count: int) -> str:
    """Coarse recording quality from the number of valid intervals."""
    if sample_count > 100:
        return 'good'
    if sample_count > 50:
        return 'fair'
    return 'poor'


def generate_wellness_insights(metrics) -> List[str]:
    """Plain-language summary sentences for the analysis screen."""
    if metrics is None:
        return []

    time_domain = metrics.time_domain
    insights = []
    if time_domain['rmssd'] > 50:
        insights.append('Your heart rate variability is high, indicating good parasympathetic activity.')
    else:
        insights.append('Your heart rate variability is low, indicating potential stress or fatigue.')

    if time_domain['sdnn'] > 50:
        insights.append('Your overall heart rate variability is high, indicating good cardiovascular fitness.')
    else:
        insights.append('Your overall heart rate variability is low, indicating potential cardiovascular risk.')

    return insights


def generate_vitals_insights(heart_rates) -> List[str]:
    """Heart-rate sentence for vitals exports (no IBI column)."""
    if heart_rates is None or len(heart_rates) == 0:
        return []
    if any(hr > ELEVATED_HEART_RATE_BPM for hr in heart_rates):
        return ['Your heart rate is elevated, indicating potential stress or physical activity.']
    return ['Your heart rate is normal, indicating good cardiovascular health.']


def assessments_to_records(assessments: Optional[List[Assessment]]) -> List[dict]:
    return [a.to_dict() for a in assessments] if assessments else []
