"""Server-side data type definitions."""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class AggregatedFileSummary:
    """
    A file seen in one channel during an aggregation pass.

    The id is "<subject>-<category>-<message id>": message ids are only
    unique within a channel, so the subject and category make it global
    and keep it stable across passes.
    """
    id: str
    name: str
    uploaded_at: str
    subject: str
    uploaded_at_ms: int = 0
    size: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AggregatedFileSummary":
        return cls(**data)


@dataclass(frozen=True)
class AggregateResult:
    total_count: int
    subject_counts: Dict[str, int]
    recent_items: List[AggregatedFileSummary]


@dataclass(frozen=True)
class SubjectStat:
    subject: str
    file_count: int


@dataclass(frozen=True)
class DashboardStats:
    """
    Dashboard counters for one caller, cached for a short TTL.
    """
    total_files: int
    favorite_files: int
    recent_uploads: List[AggregatedFileSummary] = field(default_factory=list)
    subject_stats: List[SubjectStat] = field(default_factory=list)
    last_updated: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DashboardStats":
        return cls(
            total_files=data["total_files"],
            favorite_files=data["favorite_files"],
            recent_uploads=[AggregatedFileSummary.from_dict(item) for item in data.get("recent_uploads", [])],
            subject_stats=[SubjectStat(**stat) for stat in data.get("subject_stats", [])],
            last_updated=data.get("last_updated"),
        )


@dataclass(frozen=True)
class OwnedFile:
    """
    A file the caller uploaded, as listed by GET /files.
    """
    id: str
    message_id: int
    name: str
    size: int
    uploaded_at: str
    subject: str
    category: str
