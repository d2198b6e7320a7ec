"""Shared fixtures — a scoring engine on the default rules with a fixed clock."""
import copy
from datetime import datetime, timezone

import pytest

from scoutscan.scoring.engine import ScoutScoreEngine
from scoutscan.scoring.rules import DEFAULT_RULES, build_rules


@pytest.fixture
def rules_engine():
    rules = build_rules(copy.deepcopy(DEFAULT_RULES))
    return ScoutScoreEngine(rules, now=lambda: datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))
