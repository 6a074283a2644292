"""Policy evaluator — decides which findings are reported and which fail the scan."""

from __future__ import annotations

import fnmatch
import re
from dataclasses import dataclass

from vibesafe.policy.models import Policy, Rule
from vibesafe.scanner.models import Finding, Severity


@dataclass(frozen=True)
class Verdict:
    """Result of evaluating a finding against a policy."""

    keep: bool
    threshold: Severity
    matched_rule: Rule | None
    is_default: bool


@dataclass
class _CompiledRule:
    """A rule with its type glob pre-compiled."""

    rule: Rule
    type_regex: re.Pattern[str]


class PolicyEvaluator:
    """Evaluates findings against a compiled policy. First-match-wins."""

    def __init__(self, policy: Policy) -> None:
        self.policy = policy
        self._compiled = [
            _CompiledRule(rule=rule, type_regex=re.compile(fnmatch.translate(rule.match), re.IGNORECASE))
            for rule in policy.rules
        ]

    def evaluate(self, finding: Finding) -> Verdict:
        """Check a finding against the rules in order, then the policy defaults."""
        for cr in self._compiled:
            if cr.rule.category is not None and cr.rule.category is not finding.category:
                continue
            if cr.type_regex.match(finding.type):
                return Verdict(
                    keep=finding.severity >= cr.rule.min_severity,
                    threshold=cr.rule.min_severity,
                    matched_rule=cr.rule,
                    is_default=False,
                )

        threshold = self.policy.defaults.min_severity
        return Verdict(
            keep=finding.severity >= threshold,
            threshold=threshold,
            matched_rule=None,
            is_default=True,
        )

    def keeps(self, finding: Finding) -> bool:
        return self.evaluate(finding).keep

    def triggers_exit(self, finding: Finding) -> bool:
        """True when a reported finding should fail the scan."""
        exit_severity = self.policy.defaults.exit_severity
        if exit_severity is None or finding.category in self.policy.exit_exempt:
            return False
        return finding.severity >= exit_severity
