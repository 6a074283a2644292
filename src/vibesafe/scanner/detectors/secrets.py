"""Secret detector — regex rules plus a high-entropy string fallback."""

from __future__ import annotations

import posixpath

from vibesafe.scanner.models import SecretFinding, Severity
from vibesafe.scanner.patterns import (
    BINARY_FILE_EXTENSIONS,
    ENTROPY_CANDIDATE_REGEX,
    SECRET_PATTERNS,
    is_env_file,
    shannon_entropy,
)
from vibesafe.scanner.technologies import DetectedTechnologies

DEFAULT_ENTROPY_THRESHOLD = 4.0
DEFAULT_MIN_ENTROPY_LENGTH = 20

ENV_SECRET_TYPE = "Local Environment Secret"
HIGH_ENTROPY_TYPE = "High Entropy String"


def scan_secrets(
    file_path: str,
    content: str,
    tech: DetectedTechnologies | None = None,
    *,
    entropy_threshold: float = DEFAULT_ENTROPY_THRESHOLD,
    min_entropy_length: int = DEFAULT_MIN_ENTROPY_LENGTH,
) -> list[SecretFinding]:
    """Scan file content for hardcoded secrets.

    Matches inside env files are reported as ``Local Environment Secret``
    at Info severity, and entropy scanning is skipped for them since env
    files legitimately hold random-looking values.
    """
    if posixpath.splitext(file_path)[1].lower() in BINARY_FILE_EXTENSIONS:
        return []

    env_file = is_env_file(file_path)
    findings: list[SecretFinding] = []

    for line_num, line in enumerate(content.splitlines(), start=1):
        matched_spans: list[tuple[int, int]] = []

        for pattern in SECRET_PATTERNS:
            for match in pattern.regex.finditer(line):
                value = match.group(0)
                if pattern.validate is not None and not pattern.validate(value):
                    continue
                matched_spans.append(match.span())
                findings.append(
                    SecretFinding(
                        file_path=file_path,
                        line=line_num,
                        type=ENV_SECRET_TYPE if env_file else pattern.name,
                        severity=Severity.INFO if env_file else pattern.severity,
                        message=(
                            f"{pattern.name} found in environment file."
                            if env_file
                            else f"Potential {pattern.name} found."
                        ),
                        details=(
                            "Ensure this file is listed in .gitignore and never committed."
                            if env_file
                            else ""
                        ),
                        value=value,
                    )
                )

        if env_file:
            continue

        for match in ENTROPY_CANDIDATE_REGEX.finditer(line):
            candidate = match.group(0)
            if len(candidate) < min_entropy_length:
                continue
            if _overlaps(match.span(), matched_spans):
                continue
            entropy = shannon_entropy(candidate)
            if entropy < entropy_threshold:
                continue
            findings.append(
                SecretFinding(
                    file_path=file_path,
                    line=line_num,
                    type=HIGH_ENTROPY_TYPE,
                    severity=Severity.LOW,
                    message="High entropy string may be a hardcoded credential.",
                    details=f"Shannon entropy {entropy:.2f} over {len(candidate)} characters.",
                    value=candidate,
                )
            )

    return findings


def _overlaps(span: tuple[int, int], spans: list[tuple[int, int]]) -> bool:
    start, end = span
    return any(start < s_end and s_start < end for s_start, s_end in spans)
