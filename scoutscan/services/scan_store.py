"""
Scan persistence — scans, their append-only status log, and processed items.

Every method opens its own session from the injected session factory and
commits before returning. The status log enforces two rules on write:
no event after COMPLETED/FAILED, and no percent regression except FAILED.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Any

from sqlalchemy import func, select

from scoutscan.config import (
    STEP_PERCENTS, QUEUED_STEP, COMPLETED_STEP, FAILED_STEP, TERMINAL_STEPS,
)
from scoutscan.errors import (
    ScanNotFoundError, ScanTerminalError, ProgressRegressionError, ValidationError,
)
from scoutscan.models.scan import Scan, ScanStatusEvent
from scoutscan.models.processed_item import ProcessedItem

logger = logging.getLogger('services.scan_store')


class ScanStore:

    def __init__(self, session_factory):
        self.session_factory = session_factory

    # ── Scans ─────────────────────────────────────────────────────────────

    def create_scan(self, scan_id: str, user_id: str, raw_text: str, source_type: str = 'paste',
                    source_ref: Optional[str] = None, industry: Optional[str] = None) -> Scan:
        """INSERT the scan and its QUEUED event in one transaction."""
        session = self.session_factory()
        try:
            if session.get(Scan, scan_id) is not None:
                raise ValidationError(f"Scan '{scan_id}' already exists")
            scan = Scan(
                id=scan_id,
                user_id=user_id,
                raw_text=raw_text,
                source_type=source_type,
                source_ref=source_ref,
                industry=industry,
                status='queued',
            )
            session.add(scan)
            session.add(ScanStatusEvent(
                scan_id=scan_id,
                step=QUEUED_STEP,
                percent=STEP_PERCENTS[QUEUED_STEP],
                message='Scan queued',
            ))
            session.commit()
            session.refresh(scan)
            logger.info("Scan %s created (source=%s, industry=%s)", scan_id, source_type, industry,
                        extra={'scan_id': scan_id})
            return scan
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get_scan(self, scan_id: str) -> Scan:
        session = self.session_factory()
        try:
            scan = session.get(Scan, scan_id)
            if scan is None:
                raise ScanNotFoundError(scan_id)
            return scan
        finally:
            session.close()

    def mark_processing(self, scan_id: str):
        session = self.session_factory()
        try:
            scan = self._scan(session, scan_id)
            scan.status = 'processing'
            session.commit()
        finally:
            session.close()

    # ── Status log ────────────────────────────────────────────────────────

    def append_event(self, scan_id: str, step: str, message: str = '') -> Dict[str, Any]:
        session = self.session_factory()
        try:
            self._scan(session, scan_id)
            event = self._append(session, scan_id, step, message)
            session.commit()
            return event.to_dict()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def latest_event(self, scan_id: str) -> Optional[ScanStatusEvent]:
        session = self.session_factory()
        try:
            return self._latest(session, scan_id)
        finally:
            session.close()

    def events(self, scan_id: str) -> List[ScanStatusEvent]:
        session = self.session_factory()
        try:
            return list(session.scalars(
                select(ScanStatusEvent)
                .where(ScanStatusEvent.scan_id == scan_id)
                .order_by(ScanStatusEvent.id)
            ))
        finally:
            session.close()

    def complete_scan(self, scan_id: str, counts: Dict[str, int], message: str = '',
                      items: Optional[List[Dict[str, Any]]] = None) -> Scan:
        """
        Result items, COMPLETED event and status/counts/completed_at in one
        transaction: a scan that fails to complete keeps no result rows.
        """
        session = self.session_factory()
        try:
            scan = self._scan(session, scan_id)
            self._add_items(session, scan_id, items or [])
            self._append(session, scan_id, COMPLETED_STEP, message or 'Scan completed')
            scan.status = 'completed'
            scan.hot_leads = counts.get('hot', 0)
            scan.warm_leads = counts.get('warm', 0)
            scan.cold_leads = counts.get('cold', 0)
            scan.total_items = counts.get('total', 0)
            scan.completed_at = datetime.now(timezone.utc)
            session.commit()
            return scan
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def fail_scan(self, scan_id: str, error_message: str) -> bool:
        """
        FAILED event + status=failed. Returns False (and writes nothing) when the
        scan is already terminal, so a scan never carries two terminal events.
        """
        session = self.session_factory()
        try:
            scan = self._scan(session, scan_id)
            latest = self._latest(session, scan_id)
            if latest is not None and latest.step in TERMINAL_STEPS:
                logger.warning("Scan %s already terminal (%s), not marking failed", scan_id, latest.step,
                               extra={'scan_id': scan_id})
                return False
            self._append(session, scan_id, FAILED_STEP, error_message[:500])
            scan.status = 'failed'
            scan.error_message = error_message
            session.commit()
            return True
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ── Items ─────────────────────────────────────────────────────────────

    def add_items(self, scan_id: str, items: List[Dict[str, Any]]) -> int:
        session = self.session_factory()
        try:
            self._add_items(session, scan_id, items)
            session.commit()
            return len(items)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ── Read models ───────────────────────────────────────────────────────

    def status(self, scan_id: str) -> Dict[str, Any]:
        session = self.session_factory()
        try:
            scan = self._scan(session, scan_id)
            latest = self._latest(session, scan_id)
            updated = latest.created_at if latest is not None else scan.updated_at
            return {
                'scanId': scan.id,
                'status': scan.status,
                'step': latest.step if latest is not None else QUEUED_STEP,
                'percent': latest.percent if latest is not None else 0,
                'message': (latest.message or '') if latest is not None else '',
                'updatedAt': updated.isoformat() if updated else None,
                'hotCount': scan.hot_leads or 0,
                'warmCount': scan.warm_leads or 0,
                'coldCount': scan.cold_leads or 0,
                'totalProspects': scan.total_items or 0,
            }
        finally:
            session.close()

    def results(self, scan_id: str) -> Dict[str, Any]:
        """Summary + prospects ordered by score desc (insertion order breaks ties)."""
        session = self.session_factory()
        try:
            scan = self._scan(session, scan_id)
            items = session.scalars(
                select(ProcessedItem)
                .where(ProcessedItem.scan_id == scan_id)
                .order_by(ProcessedItem.score.desc(), ProcessedItem.id)
            )
            return {
                'scanId': scan.id,
                'status': scan.status,
                'summary': {
                    'hot': scan.hot_leads or 0,
                    'warm': scan.warm_leads or 0,
                    'cold': scan.cold_leads or 0,
                    'total': scan.total_items or 0,
                },
                'prospects': [item.to_prospect() for item in items],
            }
        finally:
            session.close()

    def hot_prospects(self, since: Optional[datetime] = None, limit: int = 20):
        """Hot-bucket prospects from completed scans, best first. Returns (prospects, scan_count)."""
        session = self.session_factory()
        try:
            scans = select(Scan.id).where(Scan.status == 'completed')
            if since is not None:
                scans = scans.where(Scan.completed_at >= since)
            scan_ids = list(session.scalars(scans))
            if not scan_ids:
                return [], 0

            items = session.scalars(
                select(ProcessedItem)
                .where(ProcessedItem.scan_id.in_(scan_ids))
                .order_by(ProcessedItem.score.desc(), ProcessedItem.id)
            )
            hot = [p for p in (item.to_prospect() for item in items) if p['bucket'] == 'hot']
            return hot[:limit], len(scan_ids)
        finally:
            session.close()

    def count_items(self, scan_id: str) -> int:
        session = self.session_factory()
        try:
            return session.scalar(
                select(func.count(ProcessedItem.id)).where(ProcessedItem.scan_id == scan_id)
            ) or 0
        finally:
            session.close()

    # ── Internals ─────────────────────────────────────────────────────────

    @staticmethod
    def _scan(session, scan_id) -> Scan:
        scan = session.get(Scan, scan_id)
        if scan is None:
            raise ScanNotFoundError(scan_id)
        return scan

    @staticmethod
    def _latest(session, scan_id) -> Optional[ScanStatusEvent]:
        return session.scalars(
            select(ScanStatusEvent)
            .where(ScanStatusEvent.scan_id == scan_id)
            .order_by(ScanStatusEvent.id.desc())
            .limit(1)
        ).first()

    def _append(self, session, scan_id, step, message) -> ScanStatusEvent:
        if step not in STEP_PERCENTS:
            raise ValueError(f"Unknown scan step '{step}'")
        percent = STEP_PERCENTS[step]

        latest = self._latest(session, scan_id)
        if latest is not None:
            if latest.step in TERMINAL_STEPS:
                raise ScanTerminalError(scan_id, latest.step)
            if step != FAILED_STEP and percent < latest.percent:
                raise ProgressRegressionError(
                    f"Scan '{scan_id}': {step} ({percent}%) would regress from {latest.step} ({latest.percent}%)"
                )

        event = ScanStatusEvent(scan_id=scan_id, step=step, percent=percent, message=message)
        session.add(event)
        session.flush()
        logger.info("Scan %s → %s (%d%%) %s", scan_id, step, percent, message,
                    extra={'scan_id': scan_id, 'step': step})
        return event

    @staticmethod
    def _add_items(session, scan_id, items):
        for item in items:
            session.add(ProcessedItem(
                scan_id=scan_id,
                item_type=item.get('item_type', 'prospect'),
                name=item['name'],
                score=item.get('score', 0.0),
                item_metadata=item.get('metadata', {}),
                snippet=item.get('snippet', ''),
            ))
        session.flush()
