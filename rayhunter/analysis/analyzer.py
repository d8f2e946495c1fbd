"""Events, analyzer interface and analysis report structures."""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from rayhunter.analysis.information_element import InformationElement


class Severity(enum.Enum):
    """How much a warning should worry the user.

    LOW: worth investigating alongside many other warnings.
    MEDIUM: worth investigating alongside a few other warnings.
    HIGH: worth investigating on its own.
    """

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


@dataclass(frozen=True)
class EventType:
    """Either informational (no severity) or a qualitative warning with a severity."""

    severity: Severity | None = None

    @classmethod
    def informational(cls) -> EventType:
        return cls()

    @classmethod
    def warning(cls, severity: Severity) -> EventType:
        return cls(severity)

    @property
    def is_warning(self) -> bool:
        return self.severity is not None

    def to_dict(self) -> dict[str, Any]:
        if self.severity is None:
            return {"type": "Informational"}
        return {"type": "QualitativeWarning", "severity": self.severity.value}


@dataclass(frozen=True)
class Event:
    """A user-facing signal emitted by an analyzer for one information element."""

    event_type: EventType
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"event_type": self.event_type.to_dict(), "message": self.message}


class Analyzer(abc.ABC):
    """One heuristic for detecting an IMSI catcher.

    Analyzers may keep state between elements; keep it small, since many of
    them run over long captures.
    """

    @abc.abstractmethod
    def name(self) -> str:
        """A short, user-friendly name for the heuristic."""

    @abc.abstractmethod
    def description(self) -> str:
        """What the heuristic looks for and its likely false positives."""

    @abc.abstractmethod
    def analyze_information_element(self, ie: InformationElement) -> Event | None:
        """Inspect one element, returning an event if it is relevant."""


@dataclass(frozen=True)
class AnalyzerMetadata:
    name: str
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description}


@dataclass(frozen=True)
class ReportMetadata:
    analyzers: list[AnalyzerMetadata] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"analyzers": [analyzer.to_dict() for analyzer in self.analyzers]}


@dataclass
class PacketAnalysis:
    """The events every analyzer produced for one packet, in analyzer order."""

    timestamp: datetime
    events: list[Event | None] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "events": [event.to_dict() if event else None for event in self.events],
        }


@dataclass
class AnalysisRow:
    """The result of analyzing one container of messages."""

    timestamp: datetime
    skipped_message_reasons: list[str] = field(default_factory=list)
    analysis: list[PacketAnalysis] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.skipped_message_reasons and not self.analysis

    def contains_warnings(self) -> bool:
        return any(
            event is not None and event.event_type.is_warning
            for packet in self.analysis
            for event in packet.events
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "skipped_message_reasons": list(self.skipped_message_reasons),
            "analysis": [packet.to_dict() for packet in self.analysis],
        }