"""CVSS v3 base score calculation from vector strings."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from typing import Any

logger = logging.getLogger(__name__)

_WEIGHTS = {
    "AV": {"N": 0.85, "A": 0.62, "L": 0.55, "P": 0.2},
    "AC": {"L": 0.77, "H": 0.44},
    "PR": {"N": 0.85, "L": 0.62, "H": 0.27},
    "UI": {"N": 0.85, "R": 0.62},
    "C": {"N": 0.0, "L": 0.22, "H": 0.56},
    "I": {"N": 0.0, "L": 0.22, "H": 0.56},
    "A": {"N": 0.0, "L": 0.22, "H": 0.56},
}

# Privileges Required weighs more when scope changes
_PR_SCOPE_CHANGED = {"N": 0.85, "L": 0.68, "H": 0.5}

_REQUIRED = ("AV", "AC", "PR", "UI", "S", "C", "I", "A")


def _roundup(value: float) -> float:
    """Round up to one decimal, avoiding float artefacts like 9.800000001."""
    scaled = round(value * 100_000)
    if scaled % 10_000 == 0:
        return scaled / 100_000
    return (math.floor(scaled / 10_000) + 1) / 10.0


def parse_vector(vector: str) -> dict[str, str]:
    metrics: dict[str, str] = {}
    for part in vector.strip().split("/"):
        key, sep, value = part.partition(":")
        if sep and key != "CVSS":
            metrics[key] = value
    missing = [key for key in _REQUIRED if key not in metrics]
    if missing:
        raise ValueError(f"CVSS vector missing metrics {missing}: {vector!r}")
    return metrics


def base_score(vector: str) -> float:
    """Base score for a vector like ``CVSS:3.1/AV:N/AC:L/PR:N/UI:N/S:U/C:H/I:H/A:H``."""
    m = parse_vector(vector)
    try:
        changed = m["S"] == "C"
        pr = (_PR_SCOPE_CHANGED if changed else _WEIGHTS["PR"])[m["PR"]]
        exploitability = 8.22 * _WEIGHTS["AV"][m["AV"]] * _WEIGHTS["AC"][m["AC"]] * pr * _WEIGHTS["UI"][m["UI"]]
        iss = 1 - (
            (1 - _WEIGHTS["C"][m["C"]]) * (1 - _WEIGHTS["I"][m["I"]]) * (1 - _WEIGHTS["A"][m["A"]])
        )
    except KeyError as e:
        raise ValueError(f"Invalid CVSS metric value {e}: {vector!r}") from None

    if changed:
        impact = 7.52 * (iss - 0.029) - 3.25 * pow(iss - 0.02, 15)
    else:
        impact = 6.42 * iss

    if impact <= 0:
        return 0.0
    if changed:
        return _roundup(min(1.08 * (impact + exploitability), 10.0))
    return _roundup(min(impact + exploitability, 10.0))


def highest_score(severities: Iterable[dict[str, Any]] | None) -> float:
    """Highest CVSS v3 score among OSV severity entries, numeric or vector."""
    best = 0.0
    for entry in severities or ():
        if entry.get("type") != "CVSS_V3":
            continue
        raw = str(entry.get("score", ""))
        try:
            score = float(raw)
        except ValueError:
            try:
                score = base_score(raw)
            except ValueError as e:
                logger.debug("Ignoring unparsable CVSS score: %s", e)
                continue
        best = max(best, score)
    return best
