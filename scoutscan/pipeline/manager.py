"""
Pipeline Manager — scan orchestration using the stage adapter registry.

Drives a scan through the ordered stages:
  QUEUED → EXTRACTING_TEXT → DETECTING_NAMES → SCORING_PROSPECTS → COMPLETED

Each stage appends its status event, then its adapter runs and feeds the next
stage. Any exception appends a single FAILED event, marks the scan failed and
stops; nothing is re-raised to the worker. Stages run back to back in one RQ
job per scan.
"""
import logging
import uuid
from collections import Counter
from typing import Dict, List, Optional, Type

from scoutscan.config import SCAN_STAGES, SCAN_JOB_TIMEOUT, SOURCE_TYPES
from scoutscan.errors import ValidationError, ScanNotFoundError
from scoutscan.pipeline.base import ScanContext, StageAdapter, StageResult
from scoutscan.pipeline.detection import NameDetection
from scoutscan.pipeline.extraction import TextExtraction
from scoutscan.pipeline.scoring import ProspectScoring
from scoutscan.services.notifications import notify_scan_complete, notify_scan_failed
from scoutscan.services.scan_store import ScanStore

logger = logging.getLogger('pipeline.manager')


# ── Stage registry ────────────────────────────────────────────────────────────
# Maps step name → adapter class. Run order comes from SCAN_STAGES.

STAGE_REGISTRY: Dict[str, Type[StageAdapter]] = {
    TextExtraction.step: TextExtraction,
    NameDetection.step: NameDetection,
    ProspectScoring.step: ProspectScoring,
}


def build_stages() -> List[StageAdapter]:
    return [STAGE_REGISTRY[step]() for step, _ in SCAN_STAGES]


# ── Public API ────────────────────────────────────────────────────────────────

def launch_scan(store: ScanStore, queue, raw_text: str, user_id: str, scan_id: Optional[str] = None,
                source_type: str = 'paste', source_ref: Optional[str] = None,
                industry: Optional[str] = None):
    """
    Create the scan (with its QUEUED event) and enqueue run_scan on RQ.

    Returns the Scan as soon as the job is queued; the caller polls status.
    If the job cannot be enqueued the scan is marked failed and the error raised.
    """
    if not raw_text or not raw_text.strip():
        raise ValidationError("rawText is required")
    if source_type not in SOURCE_TYPES:
        raise ValidationError(f"Unsupported sourceType: {source_type}. Available: {SOURCE_TYPES}")

    scan_id = scan_id or str(uuid.uuid4())
    scan = store.create_scan(
        scan_id=scan_id,
        user_id=user_id,
        raw_text=raw_text,
        source_type=source_type,
        source_ref=source_ref,
        industry=industry or None,
    )

    try:
        queue.enqueue(run_scan, scan_id, job_timeout=SCAN_JOB_TIMEOUT)
    except Exception as e:
        logger.error("Failed to enqueue scan %s", scan_id, exc_info=True, extra={'scan_id': scan_id})
        store.fail_scan(scan_id, f"Could not queue scan: {e}")
        raise

    logger.info("Scan %s queued", scan_id, extra={'scan_id': scan_id})
    return scan


# ── Pipeline runner ───────────────────────────────────────────────────────────

class ScanPipeline:

    def __init__(self, session_factory, stages: Optional[List[StageAdapter]] = None, notify: bool = True):
        self.store = ScanStore(session_factory)
        self.stages = stages if stages is not None else build_stages()
        self.notify = notify

    def run(self, scan_id: str) -> Optional[str]:
        """
        Execute every stage for a scan. Returns the final scan status, or None
        when the scan does not exist.
        """
        try:
            scan = self.store.get_scan(scan_id)
        except ScanNotFoundError:
            logger.error("Scan %s not found", scan_id, extra={'scan_id': scan_id})
            return None

        if scan.status in ('completed', 'failed'):
            logger.warning("Scan %s already %s, not re-running", scan_id, scan.status,
                           extra={'scan_id': scan_id})
            return scan.status

        logger.info("Starting scan %s (source=%s, industry=%s)", scan_id, scan.source_type, scan.industry,
                    extra={'scan_id': scan_id})
        self.store.mark_processing(scan_id)
        context = ScanContext.from_scan(scan)
        items = []

        for adapter in self.stages:
            step = adapter.step
            try:
                self.store.append_event(scan_id, step, adapter.description)
                logger.info("Stage '%s' — %s — %d items in", step, adapter.__class__.__name__, len(items),
                            extra={'scan_id': scan_id, 'step': step})
                result: StageResult = adapter.run(items, context)
                for error in result.errors:
                    logger.warning("Stage '%s': %s", step, error, extra={'scan_id': scan_id, 'step': step})
                items = result.items
            except Exception as e:
                logger.error("Stage '%s' FAILED: %s", step, e, exc_info=True,
                             extra={'scan_id': scan_id, 'step': step})
                self._fail(scan_id, step, f"Stage '{step}' failed: {e}")
                return 'failed'

        try:
            counts = bucket_counts(items)
            scan = self.store.complete_scan(
                scan_id, counts,
                message=f"Found {counts['total']} prospects ({counts['hot']} hot)",
                items=items,
            )
        except Exception as e:
            logger.error("Persisting results FAILED: %s", e, exc_info=True, extra={'scan_id': scan_id})
            self._fail(scan_id, 'COMPLETED', f"Could not save results: {e}")
            return 'failed'

        logger.info("Scan %s completed — total=%d hot=%d warm=%d cold=%d", scan_id,
                    counts['total'], counts['hot'], counts['warm'], counts['cold'],
                    extra={'scan_id': scan_id})
        if self.notify:
            notify_scan_complete(scan, top_prospects=_top_prospects(items))
        return 'completed'

    def _fail(self, scan_id, step, message):
        try:
            failed = self.store.fail_scan(scan_id, message)
        except Exception:
            logger.error("Could not record failure for scan %s", scan_id, exc_info=True,
                         extra={'scan_id': scan_id})
            return
        if failed and self.notify:
            notify_scan_failed(self.store.get_scan(scan_id), step=step)


def bucket_counts(items) -> Dict[str, int]:
    buckets = Counter(item['metadata']['bucket'] for item in items)
    return {
        'hot': buckets.get('hot', 0),
        'warm': buckets.get('warm', 0),
        'cold': buckets.get('cold', 0),
        'total': len(items),
    }


def _top_prospects(items, limit=5):
    ranked = sorted(items, key=lambda item: item['score'], reverse=True)[:limit]
    return [
        {'full_name': item['name'], 'scout_score': item['score'], 'bucket': item['metadata']['bucket']}
        for item in ranked
    ]


# ── RQ entry point ────────────────────────────────────────────────────────────

_worker_session_factory = None


def run_scan(scan_id: str):
    """RQ job: run the pipeline with this worker process's session factory."""
    global _worker_session_factory
    if _worker_session_factory is None:
        from scoutscan.config import DATABASE_URL
        from scoutscan.database import session_factory_from_url, import_models

        import_models()
        _worker_session_factory = session_factory_from_url(DATABASE_URL)
    return ScanPipeline(_worker_session_factory).run(scan_id)
