"""
Score composer — base + enabled overlays → one ScoutScore.

final = base·w_base + Σ overlay·w_overlay, with fixed weights from the rules
(default base 0.55, persona 0.15, cta_fit 0.10, emotion 0.20). A disabled
overlay's weight is carried by the base score, so with no overlays the final
score is the base score. A CTA suggested by the cta_fit overlay replaces the
base engine's CTA.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any

from scoutscan.scoring.base import BaseScore, rate
from scoutscan.scoring.overlays import OverlayResult
from scoutscan.scoring.rules import ScoringRules, load_scoring_rules


@dataclass
class ScoutScore:
    final_score: float
    lead_temperature: str
    base: BaseScore
    recommended_cta: str
    cta_source: str
    weights: Dict[str, float]
    overlays: Dict[str, OverlayResult] = field(default_factory=dict)

    @property
    def persona(self) -> Optional[str]:
        result = self.overlays.get('persona')
        return result.data['persona'] if result else None

    @property
    def emotional_state(self) -> Optional[str]:
        result = self.overlays.get('emotion')
        return result.data['emotional_state'] if result else None

    @property
    def risk_flags(self) -> List[str]:
        result = self.overlays.get('emotion')
        return list(result.data['risk_flags']) if result else []

    def to_dict(self, debug=False) -> Dict[str, Any]:
        emotion = self.overlays.get('emotion')
        cta = self.overlays.get('cta_fit')
        out = {
            'final_score': self.final_score,
            'lead_temperature': self.lead_temperature,
            'base_score': self.base.score,
            'persona': self.persona,
            'persona_fit': self.overlays['persona'].score if 'persona' in self.overlays else None,
            'cta_fit': cta.score if cta else None,
            'cta_misaligned': cta.data['misaligned'] if cta else False,
            'emotion_score': emotion.score if emotion else None,
            'emotional_state': self.emotional_state,
            'trust_score': emotion.data['trust_score'] if emotion else None,
            'tone_adjustment': emotion.data['tone_adjustment'] if emotion else None,
            'risk_flags': self.risk_flags,
            'recommended_cta': self.recommended_cta,
            'industry': self.base.industry,
            'intent_signal': self.base.intent_signal,
            # legacy fields
            'score': self.base.score,
            'rating': self.base.rating,
            'breakdown': self.base.breakdown,
        }
        if debug:
            out['debug'] = {
                'weights': self.weights,
                'cta_source': self.cta_source,
                'cta_temperature': self.base.lead_temperature,
                'weights_used': self.base.weights_used,
                'industry_mismatch': self.base.industry_mismatch,
                'overlays': {name: result.to_dict() for name, result in self.overlays.items()},
            }
        return out


class ScoreComposer:

    def __init__(self, rules: Optional[ScoringRules] = None):
        self.rules = rules or load_scoring_rules()

    def effective_weights(self, enabled) -> Dict[str, float]:
        configured = self.rules.composer_weights
        weights = {'base': configured['base']}
        for name in ('persona', 'cta_fit', 'emotion'):
            if name in enabled:
                weights[name] = configured[name]
            else:
                weights['base'] += configured[name]
        return {k: round(v, 4) for k, v in weights.items()}

    def compose(self, base: BaseScore, overlays: Dict[str, OverlayResult]) -> ScoutScore:
        weights = self.effective_weights(overlays)
        final = base.score * weights['base']
        for name, result in overlays.items():
            final += result.score * weights[name]
        final = round(max(0.0, min(100.0, final)), 1)

        cta_source = 'base'
        recommended = base.recommended_cta
        suggested = overlays['cta_fit'].data.get('suggested_cta') if 'cta_fit' in overlays else None
        if suggested:
            recommended = suggested
            cta_source = 'cta_fit'

        return ScoutScore(
            final_score=final,
            lead_temperature=rate(final, self.rules),
            base=base,
            recommended_cta=recommended,
            cta_source=cta_source,
            weights=weights,
            overlays=dict(overlays),
        )
