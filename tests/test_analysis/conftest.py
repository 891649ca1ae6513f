"""Shared fixtures for analysis pipeline tests."""

import logging

import numpy as np
import pytest

from bandscope.core.engine import create_analysis_engine
from bandscope.core.models import SampleBuffer, Spectrum
from bandscope.utils.config import get_default_config


# ---------------------------------------------------------------------------
# Signal helpers
# ---------------------------------------------------------------------------

CLICK_SR = 22050
CLICK_WINDOW = 441  # 20 ms at 22050 Hz


def make_sine(frequency, sample_rate=22050, duration=1.0, amplitude=0.5):
    """Mono sine buffer."""
    t = np.arange(int(sample_rate * duration)) / sample_rate
    return SampleBuffer.from_array(amplitude * np.sin(2 * np.pi * frequency * t), sample_rate)


def bin_frequency(k, sample_rate=22050, fft_size=2048):
    """Frequency that falls exactly on FFT bin ``k``."""
    return k * sample_rate / fft_size


def make_click_track(n_beats=12, interval=0.4, duration=6.0, first=0.2, amplitude=0.5):
    """
    DC bursts exactly one envelope window long, aligned to window boundaries.

    Each burst produces a single envelope window of RMS ``amplitude`` with
    silent neighbours, i.e. exactly one beat per burst.
    """
    samples = np.zeros(int(CLICK_SR * duration))
    for n in range(n_beats):
        start = int(round((first + n * interval) * CLICK_SR))
        samples[start:start + CLICK_WINDOW] = amplitude
    return SampleBuffer.from_array(samples, CLICK_SR)


def flat_spectrum(level_db, sample_rate=44100, fft_size=2048):
    """Spectrum with every bin at ``level_db``."""
    return Spectrum(
        magnitudes_db=np.full(fft_size // 2, float(level_db)),
        sample_rate=sample_rate,
        fft_size=fft_size,
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def silence():
    """One second of digital silence at 44100 Hz."""
    return SampleBuffer.from_array(np.zeros(44100), 44100)


@pytest.fixture
def click_track():
    """12 beats, 0.4 s apart, in a 6 s buffer."""
    return make_click_track()


@pytest.fixture
def noise():
    """Two seconds of seeded white noise at 44100 Hz."""
    rng = np.random.default_rng(1234)
    return SampleBuffer.from_array(rng.normal(0.0, 0.1, 88200), 44100)


@pytest.fixture
def engine():
    """Engine built from the default configuration."""
    engine = create_analysis_engine(get_default_config())
    yield engine
    engine.shutdown()


@pytest.fixture
def restore_logging():
    """Undo setup_logging() changes to the root logger."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
