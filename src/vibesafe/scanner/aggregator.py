"""Finding aggregator — thread-safe merge, canonical ordering, dedup and thresholds."""

from __future__ import annotations

import threading
from collections import Counter
from collections.abc import Iterable

from vibesafe.policy.evaluator import PolicyEvaluator
from vibesafe.scanner.models import (
    CATEGORY_ORDER,
    DependencyFinding,
    Finding,
    ScanSummary,
    Severity,
)


class FindingAggregator:
    """Collects findings from concurrent detectors.

    ``add`` only appends; ordering and de-duplication happen once in
    ``collect`` so the output does not depend on the order detectors
    finished in.
    """

    def __init__(self) -> None:
        self._findings: list[Finding] = []
        self._lock = threading.Lock()

    def add(self, findings: Iterable[Finding]) -> None:
        batch = list(findings)
        with self._lock:
            self._findings.extend(batch)

    def __len__(self) -> int:
        with self._lock:
            return len(self._findings)

    def collect(self) -> list[Finding]:
        """Sorted, de-duplicated findings.

        Severity None is never reported, except dependency findings that
        carry a lookup error.
        """
        with self._lock:
            findings = list(self._findings)

        reportable = [f for f in findings if f.severity > Severity.NONE or _is_lookup_error(f)]
        reportable.sort(key=lambda f: f.sort_key)

        seen: set[tuple] = set()
        unique: list[Finding] = []
        for finding in reportable:
            # First occurrence wins; sorting put the highest severity first
            if finding.dedup_key in seen:
                continue
            seen.add(finding.dedup_key)
            unique.append(finding)
        return unique


def filter_findings(findings: Iterable[Finding], evaluator: PolicyEvaluator | None) -> list[Finding]:
    if evaluator is None:
        return list(findings)
    return [f for f in findings if evaluator.keeps(f)]


def exit_code(findings: Iterable[Finding], evaluator: PolicyEvaluator | None) -> int:
    if evaluator is None:
        return 0
    return 1 if any(evaluator.triggers_exit(f) for f in findings) else 0


def summarize(findings: Iterable[Finding]) -> ScanSummary:
    findings = list(findings)
    by_severity = Counter(f.severity for f in findings)
    by_category = Counter(f.category for f in findings)
    return ScanSummary(
        by_severity={s: by_severity[s] for s in sorted(by_severity, reverse=True)},
        by_category={c: by_category[c] for c in sorted(by_category, key=CATEGORY_ORDER.__getitem__)},
    )


def _is_lookup_error(finding: Finding) -> bool:
    return isinstance(finding, DependencyFinding) and bool(finding.error)
