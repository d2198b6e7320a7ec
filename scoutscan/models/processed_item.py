"""
ProcessedItem model — one row per extracted prospect per scan (immutable after write).
"""
from sqlalchemy import Column, Integer, Float, Text, DateTime, JSON, ForeignKey, Index
from sqlalchemy.sql import func

from scoutscan.database import Base


class ProcessedItem(Base):
    __tablename__ = 'scan_processed_items'

    id = Column(Integer, primary_key=True, autoincrement=True)
    scan_id = Column(Text, ForeignKey('scans.id'), nullable=False)
    item_type = Column(Text, nullable=False, default='prospect')
    name = Column(Text, nullable=False)
    score = Column(Float, nullable=False, default=0.0)
    # bucket, pain_points, interests, life_events, opportunity_type, sentiment, signals, scout_score
    item_metadata = Column('metadata', JSON, default=dict)
    snippet = Column(Text, default='')
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index('ix_scan_processed_items_scan_id', 'scan_id'),
    )

    def to_prospect(self):
        """Shape used by the results endpoint."""
        meta = self.item_metadata or {}
        return {
            'full_name': self.name,
            'scout_score': self.score,
            'bucket': meta.get('bucket', 'cold'),
            'pain_points': meta.get('pain_points', []),
            'interests': meta.get('interests', []),
            'life_events': meta.get('life_events', []),
            'opportunity_type': meta.get('opportunity_type'),
            'sentiment': meta.get('sentiment', 'neutral'),
            'snippet': self.snippet or '',
        }
