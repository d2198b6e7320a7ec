"""
Pipeline Stage 2: DETECTING_NAMES — candidate prospects from the normalised text.

No candidates is not a failure: the scan completes with zero prospects.
"""
import logging

from scoutscan.extraction.entities import extract_candidates
from scoutscan.pipeline.base import StageAdapter, StageResult

logger = logging.getLogger('pipeline.detection')


class NameDetection(StageAdapter):
    step = 'DETECTING_NAMES'
    description = 'Detecting names'

    def run(self, items, context) -> StageResult:
        candidates = extract_candidates(context.text)
        logger.info("%d candidate names detected", len(candidates),
                    extra={'scan_id': context.scan_id, 'step': self.step})

        return StageResult(
            items=[{'name': c.name, 'snippet': c.snippet, 'offset': c.offset} for c in candidates],
            processed=len(candidates),
        )
