"""Shared fixtures for analyzer and engine tests."""

import logging

import numpy as np
import pytest

from signals import SAMPLE_RATE, buffer_of, constant, sine


@pytest.fixture
def silent_buffer():
    """One second of digital silence at 44.1 kHz."""
    return buffer_of(np.zeros(SAMPLE_RATE))


@pytest.fixture
def tone_buffer():
    """One second of a full-scale 440 Hz sine at 44.1 kHz."""
    return buffer_of(sine(440.0))


@pytest.fixture
def step_buffer():
    """Half a second of silence followed by half a second at 0.9."""
    return buffer_of(np.concatenate([np.zeros(SAMPLE_RATE // 2), constant(0.9, 0.5)]))


@pytest.fixture
def restore_root_logging():
    """Undo setup_logging() changes to the root logger."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)
