"""
Generic retry queue — priority-ordered work items with bounded attempts.

Item lifecycle:
  pending → processing (claimed, attempts+1) → completed
                                             → pending   (failed, attempts left)
                                             → failed    (failed, attempts exhausted)

A claim is a conditional UPDATE keyed by id + expected status, so two
processors racing for the same batch never both run an item.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import select, update

from scoutscan.config import QUEUE_BATCH_LIMIT, QUEUE_DEFAULT_MAX_ATTEMPTS
from scoutscan.errors import UnknownJobTypeError, ValidationError
from scoutscan.models.queue_item import QueueItem

logger = logging.getLogger('services.retry_queue')

PROCESSED, ERRORED, SKIPPED = 'processed', 'errored', 'skipped'


def _now():
    return datetime.now(timezone.utc)


class RetryQueue:

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def enqueue(self, job_type: str, payload: Optional[Dict[str, Any]] = None, priority: int = 0,
                max_attempts: int = QUEUE_DEFAULT_MAX_ATTEMPTS) -> QueueItem:
        if not job_type:
            raise ValidationError("job_type is required")
        if max_attempts < 1:
            raise ValidationError("max_attempts must be at least 1")

        session = self.session_factory()
        try:
            item = QueueItem(
                job_type=job_type,
                payload=payload or {},
                priority=priority,
                max_attempts=max_attempts,
                status='pending',
                attempts=0,
                created_at=_now(),
            )
            session.add(item)
            session.commit()
            session.refresh(item)
            logger.info("Queue item %s enqueued (job_type=%s, priority=%d)", item.id, job_type, priority,
                        extra={'queue_item_id': item.id})
            return item
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get(self, item_id: int) -> Optional[QueueItem]:
        session = self.session_factory()
        try:
            return session.get(QueueItem, item_id)
        finally:
            session.close()

    def fetch_batch(self, limit: int = QUEUE_BATCH_LIMIT, priority_threshold: int = 0) -> List[QueueItem]:
        """Pending items with attempts left, priority desc then oldest first."""
        session = self.session_factory()
        try:
            return list(session.scalars(
                select(QueueItem)
                .where(
                    QueueItem.status == 'pending',
                    QueueItem.attempts < QueueItem.max_attempts,
                    QueueItem.priority >= priority_threshold,
                )
                .order_by(QueueItem.priority.desc(), QueueItem.created_at.asc(), QueueItem.id.asc())
                .limit(limit)
            ))
        finally:
            session.close()

    def claim(self, item_id: int) -> bool:
        """Atomically move a pending item to processing. False if another worker got it first."""
        session = self.session_factory()
        try:
            result = session.execute(
                update(QueueItem)
                .where(
                    QueueItem.id == item_id,
                    QueueItem.status == 'pending',
                    QueueItem.attempts < QueueItem.max_attempts,
                )
                .values(
                    status='processing',
                    attempts=QueueItem.attempts + 1,
                    started_at=_now(),
                    updated_at=_now(),
                )
            )
            session.commit()
            return result.rowcount == 1
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def complete(self, item_id: int, result: Optional[Dict[str, Any]] = None):
        session = self.session_factory()
        try:
            session.execute(
                update(QueueItem)
                .where(QueueItem.id == item_id, QueueItem.status == 'processing')
                .values(status='completed', result=result, error_message=None,
                        completed_at=_now(), updated_at=_now())
            )
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def fail(self, item_id: int, error_message: str) -> str:
        """Record a failed attempt. Returns the new status: 'pending' or 'failed'."""
        session = self.session_factory()
        try:
            item = session.get(QueueItem, item_id)
            if item is None or item.status != 'processing':
                return item.status if item is not None else 'missing'
            item.error_message = error_message[:1000]
            if item.attempts >= item.max_attempts:
                item.status = 'failed'
                item.completed_at = _now()
            else:
                item.status = 'pending'
            session.commit()
            return item.status
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


class QueueProcessor:
    """Runs a batch of queue items through handlers registered by job_type."""

    def __init__(self, queue: RetryQueue, handlers: Dict[str, Callable[[Dict[str, Any]], Any]]):
        self.queue = queue
        self.handlers = handlers

    def process_batch(self, limit: int = QUEUE_BATCH_LIMIT, priority_threshold: int = 0) -> Dict[str, int]:
        """
        Process up to `limit` items. One item's failure never stops the batch.

        Returns {processed, errors, total_items}: processed counts successful
        items, errors counts failed attempts, total_items the batch size fetched.
        """
        batch = self.queue.fetch_batch(limit=limit, priority_threshold=priority_threshold)
        processed = 0
        errors = 0

        for item in batch:
            outcome = self._run_item(item)
            if outcome == PROCESSED:
                processed += 1
            elif outcome == ERRORED:
                errors += 1

        logger.info("Queue batch done — processed=%d errors=%d total=%d", processed, errors, len(batch))
        return {'processed': processed, 'errors': errors, 'total_items': len(batch)}

    def _run_item(self, item) -> str:
        """Claim, run and settle one item. Every failure is recorded against the item."""
        try:
            claimed = self.queue.claim(item.id)
        except Exception as e:
            logger.error("Queue item %s could not be claimed: %s", item.id, e, exc_info=True,
                         extra={'queue_item_id': item.id})
            return ERRORED
        if not claimed:
            logger.info("Queue item %s already claimed, skipping", item.id,
                        extra={'queue_item_id': item.id})
            return SKIPPED

        try:
            handler = self.handlers.get(item.job_type)
            if handler is None:
                raise UnknownJobTypeError(item.job_type)
            result = handler(item.payload or {})
            self.queue.complete(item.id, result if isinstance(result, dict) else {'result': result})
        except Exception as e:
            self._record_failure(item, e)
            return ERRORED

        logger.info("Queue item %s (%s) completed", item.id, item.job_type,
                    extra={'queue_item_id': item.id})
        return PROCESSED

    def _record_failure(self, item, error):
        try:
            status = self.queue.fail(item.id, str(error) or error.__class__.__name__)
        except Exception:
            logger.error("Could not record failure for queue item %s", item.id, exc_info=True,
                         extra={'queue_item_id': item.id})
            status = 'unrecorded'
        logger.error("Queue item %s (%s) failed, now %s: %s", item.id, item.job_type, status, error,
                     exc_info=(type(error), error, error.__traceback__),
                     extra={'queue_item_id': item.id})
