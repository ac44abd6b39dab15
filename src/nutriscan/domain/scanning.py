"""Domain models for scan sessions and barcode confirmation."""

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import Enum
from uuid import UUID, uuid4

from nutriscan.domain.analysis import AnalysisResult
from nutriscan.domain.nutrition import NutritionRecord


class SubmitState(str, Enum):
    IDLE = "idle"
    CONFIRMING = "confirming"
    SUBMITTED = "submitted"


@dataclass(frozen=True)
class DecodeCandidate:
    """A tentatively detected barcode awaiting confirmation."""

    text: str
    first_seen_at: float


class FailureKind(str, Enum):
    ACQUISITION = "acquisition"
    NOT_FOUND = "not_found"
    AI_CONTRACT = "ai_contract"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXHAUSTED = "quota_exhausted"
    GATEWAY = "gateway"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class ScanFailure:
    """User-facing description of a failed scan."""

    kind: FailureKind
    message: str
    status_code: int
    suggestion: str | None = None


@dataclass(frozen=True)
class ScanSession:
    """Result of one scan, replaced wholesale when the user scans again."""

    id: UUID
    started_at: datetime
    barcode: str | None = None
    record: NutritionRecord | None = None
    analysis: AnalysisResult | None = None
    failure: ScanFailure | None = None

    @classmethod
    def start(cls, barcode: str | None = None) -> "ScanSession":
        return cls(id=uuid4(), started_at=datetime.now(tz=UTC), barcode=barcode)

    @property
    def succeeded(self) -> bool:
        return self.analysis is not None and self.failure is None

    def completed(
        self, record: NutritionRecord, analysis: AnalysisResult
    ) -> "ScanSession":
        return replace(self, record=record, analysis=analysis, failure=None)

    def failed(self, failure: ScanFailure) -> "ScanSession":
        return replace(self, record=None, analysis=None, failure=failure)
