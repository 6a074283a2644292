"""Report rendering — JSON document and Markdown report from a ScanResult."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from vibesafe import __version__
from vibesafe.scanner.models import DependencyFinding, Finding, ScanResult

_DETAIL_WIDTH = 100


def to_document(result: ScanResult) -> dict[str, Any]:
    return {
        "tool": "vibesafe",
        "version": __version__,
        "directory": result.directory,
        "policy": result.policy_name or None,
        "timestamp": datetime.fromtimestamp(result.timestamp, tz=timezone.utc).isoformat(),
        "stats": {
            "files_scanned": result.files_scanned,
            "files_skipped": result.files_skipped,
            "dependencies_checked": result.dependencies_checked,
            "duration": round(result.duration, 3),
        },
        "summary": result.summary.to_dict(),
        "integrity_faults": list(result.integrity_faults),
        "findings": [f.to_dict() for f in result.findings],
    }


def render_json(result: ScanResult) -> str:
    return json.dumps(to_document(result), indent=2, default=str)


def render_markdown(result: ScanResult) -> str:
    """Markdown report: summary line, then one table row per finding."""
    lines = ["# VibeSafe Report", "", "## Summary", "", _summary_line(result), ""]

    if result.integrity_faults:
        lines += ["## Integrity Faults", ""]
        lines += [f"- **{fault}**" for fault in result.integrity_faults]
        lines.append("")

    lines += ["## Details", ""]
    if not result.findings:
        lines.append("No findings.")
    else:
        lines.append("| Category | Severity | Location | Details |")
        lines.append("| -------- | -------- | -------- | ------- |")
        for finding in result.findings:
            lines.append(
                f"| {finding.category.value} | {finding.severity.label} "
                f"| {_cell(finding.location)} | {_cell(_describe(finding))} |"
            )

    lines += [
        "",
        f"_Scanned {result.files_scanned} files ({result.files_skipped} skipped), "
        f"{result.dependencies_checked} dependencies checked._",
    ]
    return "\n".join(lines) + "\n"


def _summary_line(result: ScanResult) -> str:
    counts = ", ".join(
        f"{count} {severity.label}"
        for severity, count in result.summary.by_severity.items()
        if count
    )
    return f"Total Issues: {result.summary.total}" + (f" ({counts})" if counts else "")


def _describe(finding: Finding) -> str:
    if isinstance(finding, DependencyFinding):
        if finding.error:
            return f"Error: {finding.error}"
        ids = ", ".join(v.id for v in finding.vulnerabilities)
        return f"{len(finding.vulnerabilities)} vulnerabilities ({ids})"

    text = f"{finding.type}: {finding.message}"
    if finding.details:
        details = finding.details[:_DETAIL_WIDTH]
        text += f" ({details}{'...' if len(finding.details) > _DETAIL_WIDTH else ''})"
    return text


def _cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")
