"""
ScoutScoreEngine — base engine + overlays + composer behind one call.
"""
import logging
from typing import Iterable, Optional

from scoutscan.scoring.base import BaseScoringEngine, Prospect
from scoutscan.scoring.composer import ScoreComposer, ScoutScore
from scoutscan.scoring.overlays import OVERLAYS
from scoutscan.scoring.rules import ScoringRules, load_scoring_rules

logger = logging.getLogger('scoring.engine')

ALL_OVERLAYS = tuple(OVERLAYS)


class ScoutScoreEngine:

    def __init__(self, rules: Optional[ScoringRules] = None,
                 overlays: Iterable[str] = ALL_OVERLAYS, now=None):
        self.rules = rules or load_scoring_rules()
        unknown = set(overlays) - set(OVERLAYS)
        if unknown:
            raise ValueError(f"Unknown overlay(s): {sorted(unknown)}")
        self.base_engine = BaseScoringEngine(self.rules, now=now)
        # Evaluation order is fixed so composition never depends on caller ordering.
        self.overlays = [OVERLAYS[name](self.rules) for name in ALL_OVERLAYS if name in set(overlays)]
        self.composer = ScoreComposer(self.rules)

    def score(self, prospect: Prospect, active_industry: Optional[str] = None) -> ScoutScore:
        base = self.base_engine.score(prospect, active_industry)
        messages = prospect.messages()
        results = {
            overlay.name: overlay.evaluate(base, messages, prospect.last_cta)
            for overlay in self.overlays
        }
        result = self.composer.compose(base, results)
        logger.debug("ScoutScore %s: base=%.1f final=%.1f (%s) cta=%s",
                     prospect.name, base.score, result.final_score,
                     result.lead_temperature, result.recommended_cta)
        return result
