import matplotlib
matplotlib.use('Agg')

import numpy as np
import pytest


SCENARIO_IBI = [800, 810, 790, 805, 795, 800, 815, 790, 805, 800,
                798, 802, 796, 804, 799, 801, 797, 803, 800, 802]


def oscillating_ibi(freq_hz: float, n_beats: int = 300, base_ms: float = 1000.0,
                    amplitude_ms: float = 50.0) -> np.ndarray:
    """IBI series modulated by a sinusoid of freq_hz, sampled at beat onsets."""
    ibi = []
    t = 0.0
    for _ in range(n_beats):
        value = base_ms + amplitude_ms * np.sin(2 * np.pi * freq_hz * t)
        ibi.append(value)
        t += value / 1000.0
    return np.array(ibi)


@pytest.fixture
def scenario_ibi():
    return list(SCENARIO_IBI)


@pytest.fixture
def respiratory_ibi():
    return oscillating_ibi(0.2)


@pytest.fixture
def mayer_wave_ibi():
    return oscillating_ibi(0.1)
