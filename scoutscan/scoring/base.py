"""
Base ScoutScore — industry-weighted component score with time decay.

Six components in 0–1 (engagement, business_interest, pain_points,
life_events, responsiveness, leadership) are combined with the industry's
weight table into a 0–100 score. When the prospect's tagged industry and the
active industry are both set and differ, neutral weights apply and the prospect
is scored as industry-less, so no overlay downstream sees the mismatched vertical.

Legacy consumers read `score`, `rating` and `breakdown` only.
"""
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Any

from scoutscan.scoring.rules import COMPONENTS, NEUTRAL, ScoringRules, load_scoring_rules

logger = logging.getLogger('scoring.base')

# Contribution of a single fresh event to engagement, by kind.
EVENT_WEIGHTS = {
    'message': 0.35,
    'reply': 0.30,
    'comment': 0.20,
    'reaction': 0.10,
    'view': 0.05,
}

# Engagement for a prospect seen once in a scan with no dated history.
SNIPPET_ENGAGEMENT = 0.2

LEADERSHIP_KEYWORDS = [
    'team', 'leader', 'lead', 'manage', 'manager', 'mentor', 'coach', 'organize',
    'founder', 'owner', 'recruit', 'network', 'grupo', 'kasama',
]

SENTIMENT_RESPONSIVENESS = {'positive': 0.6, 'neutral': 0.4, 'negative': 0.2}


@dataclass
class InteractionEvent:
    """One dated touchpoint with a prospect."""
    kind: str
    timestamp: datetime
    text: str = ''
    from_prospect: bool = True


@dataclass
class Prospect:
    """Scoring input: extracted entity + signals + optional interaction history."""
    name: str
    snippet: str = ''
    industry: Optional[str] = None
    signals: Dict[str, Any] = field(default_factory=dict)
    events: List[InteractionEvent] = field(default_factory=list)
    last_cta: Optional[str] = None

    def messages(self) -> List[str]:
        """Prospect-authored text, oldest first, snippet last."""
        texts = [e.text for e in sorted(self.events, key=lambda e: _aware(e.timestamp))
                 if e.from_prospect and e.text]
        if self.snippet:
            texts.append(self.snippet)
        return texts


@dataclass
class BaseScore:
    score: float
    rating: str
    breakdown: Dict[str, Dict[str, float]]
    lead_temperature: str
    intent_signal: str
    recommended_cta: str
    industry: Optional[str]
    weights_used: str
    industry_mismatch: bool = False

    def legacy(self) -> Dict[str, Any]:
        return {'score': self.score, 'rating': self.rating, 'breakdown': self.breakdown}


def resolve_industry(prospect_industry: Optional[str], active_industry: Optional[str]):
    """Return (industry, mismatch). A mismatch yields no industry at all."""
    if prospect_industry and active_industry and prospect_industry != active_industry:
        return None, True
    return active_industry or prospect_industry, False


def freshness(age_days: float, rules: ScoringRules) -> float:
    for max_days, multiplier in rules.decay:
        if age_days <= max_days:
            return multiplier
    return rules.decay_floor


def rate(score: float, rules: ScoringRules) -> str:
    if score >= rules.thresholds['hot']:
        return 'hot'
    if score >= rules.thresholds['warm']:
        return 'warm'
    return 'cold'


class BaseScoringEngine:

    def __init__(self, rules: Optional[ScoringRules] = None, now=None):
        self.rules = rules or load_scoring_rules()
        self._now = now

    def now(self) -> datetime:
        return self._now() if self._now else datetime.now(timezone.utc)

    def score(self, prospect: Prospect, active_industry: Optional[str] = None) -> BaseScore:
        industry, mismatch = resolve_industry(prospect.industry, active_industry)
        if mismatch:
            logger.info("Industry mismatch for %s (%s vs active %s), using neutral weights",
                        prospect.name, prospect.industry, active_industry)

        weights_key = industry if industry in self.rules.industry_weights else NEUTRAL
        weights = self.rules.industry_weights[weights_key]

        components = self.components(prospect)
        breakdown = {
            name: {
                'value': round(components[name], 3),
                'weight': weights[name],
                'contribution': round(components[name] * weights[name] * 100, 2),
            }
            for name in COMPONENTS
        }
        score = round(sum(components[n] * weights[n] for n in COMPONENTS) * 100, 1)
        rating = rate(score, self.rules)
        intent = max(COMPONENTS, key=lambda n: (breakdown[n]['contribution'], -COMPONENTS.index(n)))

        return BaseScore(
            score=score,
            rating=rating,
            breakdown=breakdown,
            lead_temperature=rating,
            intent_signal=intent,
            recommended_cta=self.rules.default_cta_for(industry),
            industry=industry,
            weights_used=weights_key,
            industry_mismatch=mismatch,
        )

    def components(self, prospect: Prospect) -> Dict[str, float]:
        signals = prospect.signals or {}
        words = set(re.findall(r"[a-z']+", ' '.join(prospect.messages()).lower()))

        return {
            'engagement': self.engagement(prospect.events),
            'business_interest': self._business_interest(signals),
            'pain_points': min(1.0, 0.4 * len(signals.get('pain_points', []))),
            'life_events': min(1.0, 0.5 * len(signals.get('life_events', []))),
            'responsiveness': self._responsiveness(prospect.events, signals),
            'leadership': min(1.0, 0.34 * sum(1 for kw in LEADERSHIP_KEYWORDS if kw in words)),
        }

    def engagement(self, events: List[InteractionEvent]) -> float:
        """Sum of event weights, each scaled by its freshness, capped at 1."""
        if not events:
            return SNIPPET_ENGAGEMENT
        now = self.now()
        total = 0.0
        for event in events:
            age_days = max(0.0, (now - _aware(event.timestamp)).total_seconds() / 86400)
            total += EVENT_WEIGHTS.get(event.kind, 0.05) * freshness(age_days, self.rules)
        return min(1.0, total)

    @staticmethod
    def _business_interest(signals) -> float:
        interests = signals.get('interests', [])
        value = 0.25 * sum(1 for i in ('business', 'extra_income') if i in interests)
        value += 0.15 * signals.get('business_keyword_hits', 0)
        if signals.get('opportunity_type') == 'business':
            value += 0.2
        return min(1.0, value)

    def _responsiveness(self, events, signals) -> float:
        sentiment = SENTIMENT_RESPONSIVENESS.get(signals.get('sentiment', 'neutral'), 0.4)
        now = self.now()
        recent = sum(
            1 for e in events
            if e.from_prospect and (now - _aware(e.timestamp)).total_seconds() <= 7 * 86400
        )
        return round(0.5 * sentiment + 0.5 * min(1.0, 0.25 * recent), 3)


def _aware(ts: datetime) -> datetime:
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)
