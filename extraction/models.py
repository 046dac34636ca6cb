"""
Data structures for the enrichment pipeline.

An EnrichmentTask describes one kind of refresh: what to ask the search
model, how to validate what comes back and which subject fields a record
may write. A RefreshRun holds the state of a single invocation.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Type
from uuid import uuid4

from pydantic import BaseModel, ValidationError

from portfolio_radar.utils.logging import get_logger

logger = get_logger(__name__)


class MatchMode(str, Enum):
    """How records are aligned with subjects."""
    NAME = "name"  # fuzzy containment
    IDENTIFIER = "identifier"  # strict, ISIN-like


class RunnerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


class EnrichmentTask:
    """
    Base class for refresh tasks - stateless, configured by class attributes.

    Subclasses set the prompt text, the subject and record models, the key
    fields used for matching and the enrichment fields with their defaults.
    """

    name: ClassVar[str] = "enrichment"
    role: ClassVar[str] = "You are an expert financial analyst."
    instructions: ClassVar[str] = ""
    schema: ClassVar[str] = "[]"

    subject_model: ClassVar[Type[BaseModel]] = BaseModel
    record_model: ClassVar[Type[BaseModel]] = BaseModel
    subject_key_field: ClassVar[str] = "name"
    record_key_field: ClassVar[str] = "name"
    match_mode: ClassVar[MatchMode] = MatchMode.NAME

    # Written on every match; missing values fall back to these defaults
    enrichment_defaults: ClassVar[Dict[str, Any]] = {}
    # Written only when the record provides a value
    overlay_fields: ClassVar[Tuple[str, ...]] = ()

    def subject_key(self, subject: Any) -> str:
        return getattr(subject, self.subject_key_field, None) or ""

    def subject_label(self, subject: Any) -> str:
        """Text identifying the subject in the prompt."""
        return self.subject_key(subject)

    def record_key(self, record: Any) -> str:
        return getattr(record, self.record_key_field, None) or ""

    def validate_record(self, raw: Dict[str, Any]) -> Optional[BaseModel]:
        """Validate one parsed element; invalid elements are dropped."""
        try:
            return self.record_model.model_validate(raw)
        except ValidationError as e:
            logger.debug(f"Dropping invalid {self.name} record: {e.error_count()} error(s)")
            return None

    def derived_fields(self, subject: Any, update: Dict[str, Any]) -> Dict[str, Any]:
        """Extra fields computed from the subject and the pending update."""
        return {}


@dataclass
class BatchOutcome:
    """What one batch contributed."""
    index: int
    size: int
    records: int = 0
    error: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.records > 0


@dataclass
class RefreshRun:
    """
    Unified state of one refresh invocation.

    Owns the record accumulator and the per-batch outcomes; never shared
    between invocations.
    """
    task: str
    total_batches: int
    id: str = field(default_factory=lambda: uuid4().hex[:8])
    state: RunnerState = RunnerState.IDLE
    completed_batches: int = 0
    progress: int = 0
    records: List[Any] = field(default_factory=list)
    outcomes: List[BatchOutcome] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)
    started_at: Optional[float] = None
    finished_at: Optional[float] = None

    @property
    def failed_batches(self) -> List[BatchOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at is None or self.finished_at is None:
            return None
        return self.finished_at - self.started_at
