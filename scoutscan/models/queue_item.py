"""
QueueItem model — one unit of retryable background work (generic, not scan-specific).
"""
from sqlalchemy import Column, Integer, Text, DateTime, JSON, Index, CheckConstraint
from sqlalchemy.sql import func

from scoutscan.database import Base


class QueueItem(Base):
    __tablename__ = 'queue_items'

    id = Column(Integer, primary_key=True, autoincrement=True)
    job_type = Column(Text, nullable=False)
    payload = Column(JSON, default=dict)
    status = Column(Text, nullable=False, default='pending')   # pending/processing/completed/failed
    priority = Column(Integer, nullable=False, default=0)       # higher first
    attempts = Column(Integer, nullable=False, default=0)
    max_attempts = Column(Integer, nullable=False, default=3)
    error_message = Column(Text, nullable=True)
    result = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index('ix_queue_items_status_priority', 'status', 'priority'),
        CheckConstraint('attempts <= max_attempts', name='ck_queue_items_attempts_bounded'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'job_type': self.job_type,
            'payload': self.payload or {},
            'status': self.status,
            'priority': self.priority,
            'attempts': self.attempts,
            'max_attempts': self.max_attempts,
            'error_message': self.error_message,
            'result': self.result,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
        }
