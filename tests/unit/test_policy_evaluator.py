"""Tests for threshold policy evaluation."""

from vibesafe.policy.evaluator import PolicyEvaluator
from vibesafe.policy.models import Policy, PolicyDefaults
from vibesafe.scanner.models import (
    Category,
    LoggingFinding,
    RateLimitFinding,
    SecretFinding,
    Severity,
    UploadFinding,
)


def _upload(severity: Severity = Severity.MEDIUM) -> UploadFinding:
    return UploadFinding(
        file_path="server.js", line=7, type="Missing Upload Size Limit", severity=severity,
        message="m", library="multer",
    )


def _secret(type_: str, severity: Severity) -> SecretFinding:
    return SecretFinding(file_path="app.js", line=1, type=type_, severity=severity, message="m")


def test_category_rule_keeps_medium(upload_policy):
    verdict = PolicyEvaluator(upload_policy).evaluate(_upload())
    assert verdict.keep
    assert not verdict.is_default
    assert verdict.matched_rule.category is not None


def test_default_threshold_applies(upload_policy):
    verdict = PolicyEvaluator(upload_policy).evaluate(_secret("Generic API Key", Severity.MEDIUM))
    assert not verdict.keep
    assert verdict.is_default
    assert verdict.threshold is Severity.HIGH


def test_type_glob_is_case_insensitive(upload_policy):
    evaluator = PolicyEvaluator(upload_policy)
    assert evaluator.keeps(_secret("high entropy string", Severity.LOW))


def test_category_rule_drops_below_its_threshold(upload_policy):
    evaluator = PolicyEvaluator(upload_policy)
    assert not evaluator.keeps(_upload(Severity.LOW))


def test_high_only_pii_logging(high_only_policy):
    evaluator = PolicyEvaluator(high_only_policy)
    pii = LoggingFinding(
        file_path="a.js", line=1, type="Potential PII Logging", severity=Severity.MEDIUM, message="m",
    )
    raw = LoggingFinding(
        file_path="a.js", line=2, type="Potential Unsanitized Error Logging", severity=Severity.LOW, message="m",
    )
    assert evaluator.keeps(pii)
    assert not evaluator.keeps(raw)


def test_triggers_exit(high_only_policy):
    evaluator = PolicyEvaluator(high_only_policy)
    assert evaluator.triggers_exit(_secret("AWS Access Key ID", Severity.HIGH))
    assert not evaluator.triggers_exit(_upload())


def test_exit_exempt_category():
    policy = Policy(
        name="exempt",
        defaults=PolicyDefaults(exit_severity=Severity.LOW),
        exit_exempt=frozenset({Category.RATE_LIMIT}),
    )
    advisory = RateLimitFinding(type="Project-Level Rate Limit Advisory", severity=Severity.LOW, message="m")
    evaluator = PolicyEvaluator(policy)
    assert evaluator.keeps(advisory)
    assert not evaluator.triggers_exit(advisory)


def test_no_exit_severity():
    evaluator = PolicyEvaluator(Policy(name="report-only"))
    assert not evaluator.triggers_exit(_secret("AWS Access Key ID", Severity.CRITICAL))
