"""Policy data models — immutable threshold rules for reporting and exit status."""

from __future__ import annotations

from dataclasses import dataclass, field

from vibesafe.scanner.models import Category, Severity


@dataclass(frozen=True)
class Rule:
    """Overrides the default threshold for findings it matches.

    ``match`` is a glob on the finding type; ``category`` narrows the rule
    to one detector category.
    """

    match: str = "*"
    category: Category | None = None
    min_severity: Severity = Severity.NONE
    reason: str = ""


@dataclass(frozen=True)
class PolicyDefaults:
    """Thresholds applied when no rule matches."""

    min_severity: Severity = Severity.NONE
    # None disables the failing exit status
    exit_severity: Severity | None = None


@dataclass(frozen=True)
class Policy:
    """A complete threshold policy."""

    name: str
    rules: tuple[Rule, ...] = ()
    defaults: PolicyDefaults = field(default_factory=PolicyDefaults)
    description: str = ""
    exit_exempt: frozenset[Category] = frozenset()
    inherit: tuple[str, ...] = ()

    @property
    def is_threshold(self) -> bool:
        return self.defaults.min_severity > Severity.NONE or self.defaults.exit_severity is not None
