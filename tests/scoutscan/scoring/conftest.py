"""Scoring fixtures — rules built from the defaults, independent of env and cache."""
import copy
from datetime import datetime, timezone

import pytest

from scoutscan.scoring.base import BaseScore
from scoutscan.scoring.rules import DEFAULT_RULES, build_rules

FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def rules():
    return build_rules(copy.deepcopy(DEFAULT_RULES))


@pytest.fixture
def fixed_now():
    return lambda: FIXED_NOW


@pytest.fixture
def make_base():
    """Factory fixture — BaseScore with sensible defaults."""
    def _make(**overrides):
        defaults = dict(
            score=40.0,
            rating='cold',
            breakdown={},
            lead_temperature='cold',
            intent_signal='engagement',
            recommended_cta='starter_kit_offer',
            industry='mlm',
            weights_used='mlm',
        )
        defaults.update(overrides)
        return BaseScore(**defaults)
    return _make
