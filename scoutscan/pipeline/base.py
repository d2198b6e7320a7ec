"""
Pipeline stage contracts.

Every stage adapter implements StageAdapter.run() and returns a StageResult.
The pipeline manager only sees the uniform interface; it appends the stage's
status event before calling run() and records FAILED if run() raises.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional


@dataclass
class ScanContext:
    """Per-scan state shared by the stages of one pipeline run."""
    scan_id: str
    user_id: str
    raw_text: str
    source_type: str = 'paste'
    industry: Optional[str] = None
    text: str = ''
    meta: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_scan(cls, scan):
        return cls(
            scan_id=scan.id,
            user_id=scan.user_id,
            raw_text=scan.raw_text or '',
            source_type=scan.source_type or 'paste',
            industry=scan.industry,
        )


@dataclass
class StageResult:
    """Uniform output from every pipeline stage."""
    items: List[Dict[str, Any]]
    processed: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)


class StageAdapter(ABC):
    """
    Base class for all scan stage adapters.

    The adapter receives the items produced by the previous stage and the
    ScanContext, does its work, and returns a StageResult with the items for
    the next stage. Raising (ideally StageError) fails the scan.
    """
    step: str = ''
    description: str = ''   # status event message, e.g. "Detecting names"

    @abstractmethod
    def run(self, items: List[Dict[str, Any]], context: ScanContext) -> StageResult:
        ...
