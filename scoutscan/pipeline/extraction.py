"""
Pipeline Stage 1: EXTRACTING_TEXT — normalise the submitted payload.

Pasted chat logs arrive with Windows line endings, non-breaking spaces and
zero-width characters from messenger exports; all are normalised here so the
name detector sees plain text. CSV exports are flagged for the next stage.
"""
import logging
import re

from scoutscan.errors import StageError
from scoutscan.extraction.entities import looks_like_csv
from scoutscan.pipeline.base import StageAdapter, StageResult

logger = logging.getLogger('pipeline.extraction')

_ZERO_WIDTH = re.compile('[\u200b\u200c\u200d\ufeff]')
_TRAILING_SPACE = re.compile(r'[ \t]+\n')


def normalize_text(raw: str) -> str:
    text = (raw or '').replace('\r\n', '\n').replace('\r', '\n')
    text = _ZERO_WIDTH.sub('', text).replace('\u00a0', ' ')
    return _TRAILING_SPACE.sub('\n', text).strip()


class TextExtraction(StageAdapter):
    step = 'EXTRACTING_TEXT'
    description = 'Extracting text'

    def run(self, items, context) -> StageResult:
        text = normalize_text(context.raw_text)
        if not text:
            raise StageError(self.step, f"No text could be extracted from {context.source_type} source")

        context.text = text
        context.meta['is_csv'] = looks_like_csv(text)
        logger.info("Extracted %d chars (csv=%s)", len(text), context.meta['is_csv'],
                    extra={'scan_id': context.scan_id, 'step': self.step})

        return StageResult(items=[], processed=1, meta={'chars': len(text), 'is_csv': context.meta['is_csv']})
