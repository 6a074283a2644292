"""Dependency vulnerability resolver — batched OSV lookups mapped back to findings."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

import httpx

from vibesafe.scanner.dependencies.cvss import highest_score
from vibesafe.scanner.dependencies.manifests import ECOSYSTEMS, normalize_version
from vibesafe.scanner.dependencies.osv import IntegrityFault, OSVClient
from vibesafe.scanner.models import (
    DependencyFinding,
    DependencyRecord,
    Severity,
    VulnerabilityRecord,
)

logger = logging.getLogger(__name__)

VULNERABLE_DEPENDENCY_TYPE = "Vulnerable Dependency"
UNSUPPORTED_MANAGER_ERROR = "Unsupported package manager for CVE lookup"


def severity_for_score(score: float) -> Severity:
    if score >= 9.0:
        return Severity.CRITICAL
    if score >= 7.0:
        return Severity.HIGH
    if score >= 4.0:
        return Severity.MEDIUM
    if score > 0:
        return Severity.LOW
    return Severity.NONE


@dataclass
class Resolution:
    """Outcome of resolving a set of dependency records."""

    findings: list[DependencyFinding] = field(default_factory=list)
    integrity_faults: list[str] = field(default_factory=list)
    dependencies_checked: int = 0


@dataclass(frozen=True)
class _Query:
    record: DependencyRecord
    version: str
    ecosystem: str

    def to_json(self) -> dict[str, Any]:
        return {
            "package": {"name": self.record.name, "ecosystem": self.ecosystem},
            "version": self.version,
        }


class DependencyResolver:
    """Looks up every queryable dependency and reports its highest-severity advisory."""

    def __init__(self, client: OSVClient, hydrate: bool = True) -> None:
        self._client = client
        self._hydrate = hydrate

    def resolve(self, records: Iterable[DependencyRecord]) -> Resolution:
        resolution = Resolution()
        queries: list[_Query] = []
        seen: set[tuple[str, str, str]] = set()

        for record in records:
            key = (record.name, record.version, record.package_manager)
            if key in seen:
                continue
            seen.add(key)

            ecosystem = ECOSYSTEMS.get(record.package_manager)
            if ecosystem is None:
                resolution.findings.append(_error_finding(record, record.version, UNSUPPORTED_MANAGER_ERROR))
                continue
            version = normalize_version(record.version)
            if version is None:
                logger.debug("No concrete version for %s (%r), not queried", record.name, record.version)
                continue
            queries.append(_Query(record, version, ecosystem))

        resolution.dependencies_checked = len(queries)
        if not queries:
            return resolution

        for batch in self._client.batches(queries):
            resolution.findings.extend(self._resolve_batch(batch, resolution))
        return resolution

    def _resolve_batch(self, batch: Sequence[_Query], resolution: Resolution) -> list[DependencyFinding]:
        try:
            results = self._client.query_batch([q.to_json() for q in batch])
        except IntegrityFault as e:
            logger.error("Integrity fault in vulnerability lookup: %s", e)
            resolution.integrity_faults.append(str(e))
            return [_error_finding(q.record, q.version, f"Integrity fault: {e}") for q in batch]
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("CVE lookup failed for %d dependencies: %s", len(batch), e)
            return [_error_finding(q.record, q.version, f"CVE lookup failed: {e}") for q in batch]

        # results[i] answers batch[i]
        return [self._finding(query, vulns) for query, vulns in zip(batch, results)]

    def _finding(self, query: _Query, vulns: list[dict[str, Any]]) -> DependencyFinding:
        records = tuple(self._vulnerability(query.record.name, v) for v in vulns)
        score = max((r.severity_score for r in records), default=0.0)
        severity = severity_for_score(score)
        if records and severity is Severity.NONE:
            severity = Severity.LOW

        if records:
            ids = ", ".join(r.id for r in records[:5])
            message = (
                f"{len(records)} known vulnerabilit{'y' if len(records) == 1 else 'ies'} "
                f"in {query.record.name}@{query.version}"
            )
            details = f"Max CVSS {score:.1f}. Advisories: {ids}{' ...' if len(records) > 5 else ''}"
        else:
            message = f"No known vulnerabilities in {query.record.name}@{query.version}"
            details = ""

        return DependencyFinding(
            file_path=query.record.manifest_source,
            type=VULNERABLE_DEPENDENCY_TYPE,
            severity=severity,
            message=message,
            details=details,
            name=query.record.name,
            version=query.version,
            package_manager=query.record.package_manager,
            vulnerabilities=records,
        )

    def _vulnerability(self, package: str, vuln: dict[str, Any]) -> VulnerabilityRecord:
        vuln_id = str(vuln.get("id", ""))
        full = vuln
        if self._hydrate and not vuln.get("severity") and vuln_id:
            full = self._client.get_vulnerability(vuln_id) or vuln
        return VulnerabilityRecord(
            id=vuln_id,
            severity_score=highest_score(full.get("severity")),
            summary=str(full.get("summary") or ""),
            aliases=tuple(full.get("aliases") or ()),
            affected_ranges=_affected_ranges(package, full),
        )


def _affected_ranges(package: str, vuln: dict[str, Any]) -> tuple[str, ...]:
    ranges = []
    for affected in vuln.get("affected") or ():
        if affected.get("package", {}).get("name") not in (None, package):
            continue
        for entry in affected.get("ranges") or ():
            events = [f"{k} {v}" for event in entry.get("events") or () for k, v in event.items()]
            if events:
                ranges.append(", ".join(events))
    return tuple(ranges)


def _error_finding(record: DependencyRecord, version: str, error: str) -> DependencyFinding:
    return DependencyFinding(
        file_path=record.manifest_source,
        type=VULNERABLE_DEPENDENCY_TYPE,
        severity=Severity.NONE,
        message=f"Could not check {record.name}@{version} for vulnerabilities",
        details=error,
        name=record.name,
        version=version,
        package_manager=record.package_manager,
        error=error,
    )
