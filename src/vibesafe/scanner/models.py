"""Scanner data models — severities, findings, dependency records and scan results."""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import Any


class Severity(enum.IntEnum):
    """Finding severity. The integer value is the rank used for every comparison."""

    NONE = 0
    INFO = 1
    LOW = 2
    MEDIUM = 3
    HIGH = 4
    CRITICAL = 5

    @property
    def rank(self) -> int:
        return int(self)

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def from_label(cls, label: str) -> Severity:
        """Parse ``"High"``, ``"high"`` or ``"HIGH"`` into a Severity."""
        try:
            return cls[label.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown severity: {label!r}") from None


class Category(enum.Enum):
    """Detector category. Every finding belongs to exactly one."""

    SECRET = "Secret"
    DEPENDENCY = "Dependency"
    CONFIGURATION = "Configuration"
    UPLOAD = "Upload"
    ENDPOINT = "Endpoint"
    RATE_LIMIT = "RateLimit"
    LOGGING = "Logging"
    HTTP_CLIENT = "HttpClient"

    @classmethod
    def from_label(cls, label: str) -> Category:
        normalized = label.strip().replace("_", "").replace("-", "").lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise ValueError(f"Unknown category: {label!r}")


# Stable position of each category in sorted output
CATEGORY_ORDER = {category: index for index, category in enumerate(Category)}


@dataclass(frozen=True, kw_only=True)
class Finding:
    """A single reported observation. Subclasses fix the category."""

    severity: Severity
    type: str
    message: str
    file_path: str = ""
    line: int | None = None
    details: str = ""
    category: Category = field(init=False, default=Category.SECRET)

    @property
    def location(self) -> str:
        if self.line is not None:
            return f"{self.file_path}:{self.line}"
        return self.file_path

    @property
    def location_key(self) -> str:
        """The path-like part of the location used for dedup and sorting."""
        return self.file_path

    @property
    def dedup_key(self) -> tuple[str, int, str, str]:
        return (self.location_key, self.line or 0, self.category.value, self.type)

    @property
    def sort_key(self) -> tuple:
        return (
            -self.severity.rank,
            CATEGORY_ORDER[self.category],
            self.location_key,
            self.line or 0,
            self.type,
            self.message,
            self.details,
        )

    def payload(self) -> dict[str, Any]:
        """Category-specific fields, for serialization."""
        return {}

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "category": self.category.value,
            "severity": self.severity.label,
            "type": self.type,
            "location": self.location,
            "file": self.file_path,
            "line": self.line,
            "message": self.message,
        }
        if self.details:
            data["details"] = self.details
        data.update(self.payload())
        return data


@dataclass(frozen=True, kw_only=True)
class SecretFinding(Finding):
    value: str = ""
    category: Category = field(init=False, default=Category.SECRET)

    def payload(self) -> dict[str, Any]:
        return {"value": self.value}


@dataclass(frozen=True)
class VulnerabilityRecord:
    """One advisory affecting a dependency."""

    id: str
    severity_score: float = 0.0
    summary: str = ""
    aliases: tuple[str, ...] = ()
    affected_ranges: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "severity_score": self.severity_score,
            "summary": self.summary,
            "aliases": list(self.aliases),
            "affected_ranges": list(self.affected_ranges),
        }


@dataclass(frozen=True)
class DependencyRecord:
    """A declared dependency parsed from a manifest."""

    name: str
    version: str
    package_manager: str
    manifest_source: str


@dataclass(frozen=True, kw_only=True)
class DependencyFinding(Finding):
    name: str
    version: str
    package_manager: str = ""
    vulnerabilities: tuple[VulnerabilityRecord, ...] = ()
    error: str = ""
    category: Category = field(init=False, default=Category.DEPENDENCY)

    @property
    def max_severity(self) -> Severity:
        return self.severity

    @property
    def manifest_source(self) -> str:
        return self.file_path

    @property
    def location(self) -> str:
        return f"{self.name}@{self.version}"

    @property
    def location_key(self) -> str:
        return self.location

    def payload(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "package_manager": self.package_manager,
            "manifest": self.manifest_source,
            "max_severity": self.max_severity.label,
            "vulnerabilities": [v.to_dict() for v in self.vulnerabilities],
        }
        if self.error:
            data["error"] = self.error
        return data


@dataclass(frozen=True, kw_only=True)
class ConfigFinding(Finding):
    key: str = ""
    value: Any = None
    category: Category = field(init=False, default=Category.CONFIGURATION)

    def payload(self) -> dict[str, Any]:
        return {"key": self.key, "value": self.value}


@dataclass(frozen=True, kw_only=True)
class UploadFinding(Finding):
    library: str = ""
    category: Category = field(init=False, default=Category.UPLOAD)

    def payload(self) -> dict[str, Any]:
        return {"library": self.library}


@dataclass(frozen=True, kw_only=True)
class EndpointFinding(Finding):
    path: str = ""
    category: Category = field(init=False, default=Category.ENDPOINT)

    def payload(self) -> dict[str, Any]:
        return {"path": self.path}


@dataclass(frozen=True, kw_only=True)
class RateLimitFinding(Finding):
    category: Category = field(init=False, default=Category.RATE_LIMIT)

    @property
    def location(self) -> str:
        return self.file_path or "(project)"


@dataclass(frozen=True, kw_only=True)
class LoggingFinding(Finding):
    logger_call: str = ""
    category: Category = field(init=False, default=Category.LOGGING)

    def payload(self) -> dict[str, Any]:
        return {"logger_call": self.logger_call}


@dataclass(frozen=True, kw_only=True)
class HttpClientFinding(Finding):
    library: str = ""
    category: Category = field(init=False, default=Category.HTTP_CLIENT)

    def payload(self) -> dict[str, Any]:
        return {"library": self.library}


@dataclass
class ScanSummary:
    """Counts of reported findings per severity and per category."""

    by_severity: dict[Severity, int] = field(default_factory=dict)
    by_category: dict[Category, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.by_severity.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "by_severity": {s.label: n for s, n in self.by_severity.items()},
            "by_category": {c.value: n for c, n in self.by_category.items()},
        }


@dataclass
class ScanResult:
    """Aggregate result of a static scan."""

    directory: str
    findings: list[Finding] = field(default_factory=list)
    summary: ScanSummary = field(default_factory=ScanSummary)
    files_scanned: int = 0
    files_skipped: int = 0
    dependencies_checked: int = 0
    duration: float = 0.0
    policy_name: str = ""
    integrity_faults: list[str] = field(default_factory=list)
    exit_code: int = 0
    timestamp: float = field(default_factory=time.time)
