"""
Scan + ScanStatusEvent models.

A Scan is one submission of raw text flowing through the extraction pipeline.
ScanStatusEvent is its append-only progress log; the newest row is the current status.
"""
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Index
from sqlalchemy.sql import func

from scoutscan.database import Base


class Scan(Base):
    __tablename__ = 'scans'

    id = Column(Text, primary_key=True)
    user_id = Column(Text, nullable=False)
    source_type = Column(Text, nullable=False, default='paste')   # paste/csv/file/screenshot
    source_ref = Column(Text, nullable=True)                       # filename / upload key
    raw_text = Column(Text, nullable=False, default='')
    industry = Column(Text, nullable=True)                         # active industry for scoring
    status = Column(Text, nullable=False, default='queued')
    hot_leads = Column(Integer, default=0)
    warm_leads = Column(Integer, default=0)
    cold_leads = Column(Integer, default=0)
    total_items = Column(Integer, default=0)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'source_type': self.source_type,
            'source_ref': self.source_ref,
            'industry': self.industry,
            'status': self.status,
            'hot_leads': self.hot_leads or 0,
            'warm_leads': self.warm_leads or 0,
            'cold_leads': self.cold_leads or 0,
            'total_items': self.total_items or 0,
            'error_message': self.error_message,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
        }


class ScanStatusEvent(Base):
    __tablename__ = 'scan_status_events'

    # Autoincrement id is the ordering key — created_at can tie at second resolution.
    id = Column(Integer, primary_key=True, autoincrement=True)
    scan_id = Column(Text, ForeignKey('scans.id'), nullable=False)
    step = Column(Text, nullable=False)
    percent = Column(Integer, nullable=False, default=0)
    message = Column(Text, default='')
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index('ix_scan_status_events_scan_id', 'scan_id'),
    )

    def to_dict(self):
        return {
            'step': self.step,
            'percent': self.percent,
            'message': self.message or '',
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
