# Author: Bradley R. Kinnard
# pytest configuration and fixtures

"""
Test Configuration

Hypothesis Settings:
- Default seed: controlled via pytest-randomly or explicit seed
- Reproducibility: run with --hypothesis-seed=<seed> to reproduce
- Database: .hypothesis/ stores examples for shrinking

To reproduce a failing test:
  pytest tests/test_formula.py --hypothesis-seed=12345

Engine runs inside tests always pass an explicit seed, so a failing
trial is reproducible from the seed printed in the assertion message.
"""

import os
import random

import pytest
from hypothesis import settings, Phase

from domains.counter import COUNTER_DOMAIN, BROKEN_COUNTER_DOMAIN
from domains.todo import TODO_DOMAIN

# configure hypothesis defaults
settings.register_profile(
    "ci",
    max_examples=100,
    deadline=None,  # disable deadline in CI (slower machines)
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    print_blob=True,  # print blob for reproduction
)

settings.register_profile(
    "dev",
    max_examples=50,
    deadline=2000,  # 2s deadline for dev
)

settings.register_profile(
    "extensive",
    max_examples=500,
    deadline=None,
)

# load profile from environment or default to dev
profile = os.environ.get("HYPOTHESIS_PROFILE", "dev")
settings.load_profile(profile)


@pytest.fixture
def seeded_rng():
    """provide a seeded random generator for deterministic tests."""
    return random.Random(42)


@pytest.fixture
def counter_domain():
    return COUNTER_DOMAIN


@pytest.fixture
def broken_counter_domain():
    return BROKEN_COUNTER_DOMAIN


@pytest.fixture
def todo_domain():
    return TODO_DOMAIN


def pytest_configure(config):
    """add custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "benchmark: performance benchmarks, run with pytest tests/benchmarks.py"
    )
