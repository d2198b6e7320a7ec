"""
Pipeline Stage 3: SCORING_PROSPECTS — signals + ScoutScore for every candidate.

Per candidate:
  1. Keyword signals from the snippet (always).
  2. OpenAI enrichment for the first OPENAI_ENRICH_LIMIT candidates when a key
     is configured. Enrichment errors fall back to keyword signals.
  3. ScoutScore with the scan's industry as the active industry.

A candidate that fails to score is dropped and reported; the stage fails only
when every candidate fails.
"""
import logging
from typing import Dict, Any, Optional

from scoutscan.config import OPENAI_ENRICH_LIMIT
from scoutscan.errors import StageError
from scoutscan.extraction.signals import analyze_snippet, merge_signals
from scoutscan.pipeline.base import StageAdapter, StageResult
from scoutscan.scoring.base import Prospect
from scoutscan.scoring.engine import ScoutScoreEngine
from scoutscan.services import openai_client

logger = logging.getLogger('pipeline.scoring')


def build_item(name: str, snippet: str, signals: Dict[str, Any], score) -> Dict[str, Any]:
    """ProcessedItem row for one scored prospect."""
    return {
        'name': name,
        'score': score.final_score,
        'snippet': snippet,
        'metadata': {
            'bucket': score.lead_temperature,
            'pain_points': signals.get('pain_points', []),
            'interests': signals.get('interests', []),
            'life_events': signals.get('life_events', []),
            'opportunity_type': signals.get('opportunity_type'),
            'sentiment': signals.get('sentiment', 'neutral'),
            'signals': {
                'business_keyword_hits': signals.get('business_keyword_hits', 0),
                'enriched': signals.get('enriched', False),
            },
            'scout_score': score.to_dict(),
        },
    }


class ProspectScoring(StageAdapter):
    step = 'SCORING_PROSPECTS'
    description = 'Scoring prospects'

    def __init__(self, engine: Optional[ScoutScoreEngine] = None, enrich_limit: int = OPENAI_ENRICH_LIMIT):
        self.engine = engine
        self.enrich_limit = enrich_limit

    def run(self, items, context) -> StageResult:
        engine = self.engine or ScoutScoreEngine()
        enrich = openai_client.is_enabled()

        scored = []
        errors = []
        for idx, candidate in enumerate(items):
            name = candidate['name']
            try:
                signals = analyze_snippet(candidate.get('snippet', ''))
                if enrich and idx < self.enrich_limit:
                    signals = self._enrich(name, candidate.get('snippet', ''), signals, context)

                prospect = Prospect(name=name, snippet=candidate.get('snippet', ''), signals=signals)
                score = engine.score(prospect, active_industry=context.industry)
                scored.append(build_item(name, candidate.get('snippet', ''), signals, score))
            except Exception as e:
                logger.error("Scoring failed for %s: %s", name, e, exc_info=True,
                             extra={'scan_id': context.scan_id, 'step': self.step})
                errors.append(f"{name}: {e}")

        if items and not scored:
            raise StageError(self.step, f"All {len(items)} prospects failed to score: {errors[0]}")

        logger.info("%d/%d prospects scored", len(scored), len(items),
                    extra={'scan_id': context.scan_id, 'step': self.step})
        return StageResult(items=scored, processed=len(items), failed=len(errors), errors=errors)

    @staticmethod
    def _enrich(name, snippet, signals, context):
        try:
            enriched = openai_client.analyze_prospect_snippet(name, snippet)
        except Exception as e:
            logger.warning("Enrichment failed for %s, using keyword signals: %s", name, e,
                           extra={'scan_id': context.scan_id})
            return signals
        if not enriched:
            return signals
        merged = merge_signals(signals, enriched)
        merged['enriched'] = True
        return merged
