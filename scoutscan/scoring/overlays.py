"""
ScoutScore overlays — independently toggleable refinements of the base score.

Each overlay takes the BaseScore (never the raw prospect industry, so the base
engine's industry isolation holds) plus message history and returns an
OverlayResult with a 0–100 sub-score and auxiliary data.

  persona  → industry persona fit (generic persona when no industry)
  cta_fit  → was the last CTA right for this temperature, and what to send next
  emotion  → emotional state, trust score, risk flags, tone adjustment
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any

from scoutscan.scoring.base import BaseScore
from scoutscan.scoring.rules import GENERIC, ScoringRules, load_scoring_rules

logger = logging.getLogger('scoring.overlays')

RECENT_MESSAGES = 5


@dataclass
class OverlayResult:
    name: str
    score: float
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self):
        return {'name': self.name, 'score': self.score, **self.data}


def _matched(conditions, text):
    return [c for c in conditions if c.matches(text)]


class Overlay(ABC):
    name = 'overlay'

    def __init__(self, rules: Optional[ScoringRules] = None):
        self.rules = rules or load_scoring_rules()

    @abstractmethod
    def evaluate(self, base: BaseScore, messages: List[str], last_cta: Optional[str] = None) -> OverlayResult:
        """Score one prospect from its base score and recent prospect messages."""


# ── Persona ──────────────────────────────────────────────────────────────────

class PersonaOverlay(Overlay):
    """Best-matching industry persona. Fit < 30 or no industry → generic persona, fit 50."""
    name = 'persona'

    MIN_FIT = 30
    GENERIC_FIT = 50

    def evaluate(self, base, messages, last_cta=None):
        personas = self.rules.personas_for(base.industry)
        if not base.industry or not personas:
            return self._generic('no industry context' if not base.industry else 'no personas for industry')

        text = ' '.join(messages).lower()
        scored = []
        for persona in personas:
            hits = _matched(persona.conditions, text)
            fit = min(100, sum(c.weight for c in hits))
            scored.append((fit, persona, hits))
        # Stable sort keeps catalogue order on ties.
        scored.sort(key=lambda entry: entry[0], reverse=True)

        best_fit, best, hits = scored[0]
        if best_fit < self.MIN_FIT:
            return self._generic('no persona above threshold')

        fit = best_fit
        if len(scored) > 1 and scored[1][0] > self.MIN_FIT:
            fit = (best_fit + scored[1][0]) / 2

        return OverlayResult(self.name, round(fit, 1), {
            'persona': best.id,
            'description': best.description,
            'notes': list(best.notes),
            'matched': [getattr(c, 'value', None) or c.pattern for c in hits],
            'runner_up': scored[1][1].id if len(scored) > 1 and scored[1][0] > self.MIN_FIT else None,
        })

    def _generic(self, reason):
        return OverlayResult(self.name, self.GENERIC_FIT, {
            'persona': GENERIC,
            'description': 'No industry-specific persona',
            'notes': [],
            'matched': [],
            'runner_up': None,
            'reason': reason,
        })


# ── CTA fit ──────────────────────────────────────────────────────────────────

class CTAFitOverlay(Overlay):
    """Scores the last CTA against the lead temperature and suggests the next one."""
    name = 'cta_fit'

    FIT_HOT = 90
    FIT_WARM = 80
    FIT_ACCEPTABLE = 70
    FIT_AGGRESSIVE = 30
    FIT_WEAK = 40
    FIT_MISMATCH = 50
    FIT_UNKNOWN = 45
    FIT_NONE = 50

    def evaluate(self, base, messages, last_cta=None):
        temperature = base.lead_temperature
        catalogue = self.rules.ctas_for(base.industry)
        suggested = self.suggest(catalogue, temperature)

        fit, misalignment = self.fit(catalogue, temperature, last_cta)
        return OverlayResult(self.name, fit, {
            'last_cta': last_cta,
            'suggested_cta': suggested.id if suggested else None,
            'suggested_description': suggested.description if suggested else None,
            'misaligned': misalignment is not None,
            'misalignment': misalignment,
            'catalogue': base.industry if base.industry in self.rules.ctas else GENERIC,
        })

    def fit(self, catalogue, temperature, last_cta):
        if not last_cta:
            return self.FIT_NONE, None
        cta = next((c for c in catalogue if c.id == last_cta), None)
        if cta is None:
            return self.FIT_UNKNOWN, None

        if temperature in cta.when:
            if temperature == 'hot':
                return self.FIT_HOT, None
            if temperature == 'warm':
                return self.FIT_WARM, None
            return self.FIT_ACCEPTABLE, None

        if temperature == 'cold' and 'hot' in cta.when:
            return self.FIT_AGGRESSIVE, 'aggressive'
        if temperature == 'hot' and 'cold' in cta.when:
            return self.FIT_WEAK, 'weak'
        return self.FIT_MISMATCH, 'mismatch'

    @staticmethod
    def suggest(catalogue, temperature):
        """The most specific CTA for this temperature; catalogue order breaks ties."""
        appropriate = [c for c in catalogue if temperature in c.when]
        if not appropriate:
            return None
        return min(appropriate, key=lambda c: len(c.when))


# ── Emotional intent ─────────────────────────────────────────────────────────

STATE_ADJUSTMENTS = {
    'excited': 10,
    'hopeful': 5,
    'neutral': 0,
    'confused': -5,
    'anxious': -10,
    'skeptical': -15,
}

TONE_BY_STATE = {
    'anxious': 'softer',
    'skeptical': 'more_reassuring',
    'confused': 'more_clarifying',
    'excited': 'more_confident',
    'hopeful': 'none',
    'neutral': 'none',
}


class EmotionalIntentOverlay(Overlay):
    """Emotional state + trust score from the last five prospect messages."""
    name = 'emotion'

    TRUST_START = 65
    TRUST_POSITIVE = 5
    TRUST_NEGATIVE = -10
    TRUST_REPEATED_SCAM = -20

    def evaluate(self, base, messages, last_cta=None):
        recent = [m.lower() for m in messages[-RECENT_MESSAGES:]]
        text = ' '.join(recent)

        state, state_scores = self.classify(text)
        trust = self.trust(recent)
        risk_flags = [flag.id for flag in self.rules.risk_flags if _matched(flag.conditions, text)]

        tone = TONE_BY_STATE.get(state, 'none')
        if 'scam_trauma' in risk_flags and tone == 'none':
            tone = 'more_reassuring'

        score = max(0, min(100, trust + STATE_ADJUSTMENTS.get(state, 0)))
        return OverlayResult(self.name, score, {
            'emotional_state': state,
            'state_scores': state_scores,
            'trust_score': trust,
            'risk_flags': risk_flags,
            'tone_adjustment': tone,
        })

    def classify(self, text):
        state_scores = {
            state: sum(c.weight for c in _matched(conditions, text))
            for state, conditions in self.rules.emotions.items()
        }
        best = max(state_scores, key=state_scores.get) if state_scores else None
        if best is None or state_scores[best] < self.rules.emotion_min_score:
            return 'neutral', state_scores
        return best, state_scores

    def trust(self, recent):
        text = ' '.join(recent)
        trust = self.TRUST_START
        trust += self.TRUST_POSITIVE * len(_matched(self.rules.trust_positive, text))
        trust += self.TRUST_NEGATIVE * len(_matched(self.rules.trust_negative, text))
        if sum(1 for m in recent if 'scam' in m) >= 2:
            trust += self.TRUST_REPEATED_SCAM
        return max(0, min(100, trust))


OVERLAYS = {
    PersonaOverlay.name: PersonaOverlay,
    CTAFitOverlay.name: CTAFitOverlay,
    EmotionalIntentOverlay.name: EmotionalIntentOverlay,
}
