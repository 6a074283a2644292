"""Tests for the error and PII logging detector."""

from __future__ import annotations

from pathlib import Path

from vibesafe.scanner.detectors.error_logging import (
    PII_LOGGING_TYPE,
    UNSANITIZED_ERROR_TYPE,
    scan_logging,
)
from vibesafe.scanner.models import Severity


class TestJavaScript:
    def test_fixture(self, fixtures_dir: Path):
        content = (fixtures_dir / "logging-test.js").read_text()
        findings = scan_logging("logging-test.js", content)
        unsanitized = sorted(f.line for f in findings if f.type == UNSANITIZED_ERROR_TYPE)
        pii = sorted(f.line for f in findings if f.type == PII_LOGGING_TYPE)
        assert unsanitized == [10, 11, 24]
        assert pii == [19, 20]

    def test_severities(self):
        content = "console.error(err);\nconsole.log('User email:', user.email);\n"
        findings = scan_logging("app.js", content)
        assert {f.type: f.severity for f in findings} == {
            UNSANITIZED_ERROR_TYPE: Severity.LOW,
            PII_LOGGING_TYPE: Severity.MEDIUM,
        }

    def test_logger_call_recorded(self):
        findings = scan_logging("app.js", "logger.warn(err.stack);\n")
        assert findings[0].logger_call == "logger.warn"
        assert "err.stack" in findings[0].message

    def test_catch_handler(self):
        findings = scan_logging("app.js", "loadUsers().catch(console.error);\n")
        assert [(f.type, f.logger_call) for f in findings] == [(UNSANITIZED_ERROR_TYPE, "console.error")]

    def test_sanitized_logging_not_flagged(self):
        content = (
            "console.error('Failed:', err.message);\n"
            "console.log('Processed user', user.id);\n"
        )
        assert scan_logging("app.js", content) == []

    def test_frontend_only_project_skipped(self, frontend_tech):
        assert scan_logging("app.js", "console.error(err);\n", frontend_tech) == []


class TestPython:
    def test_error_object_logged(self):
        content = (
            "import logging\n"
            "try:\n"
            "    run()\n"
            "except Exception as e:\n"
            "    logging.error(e)\n"
        )
        findings = scan_logging("job.py", content)
        assert [(f.line, f.type) for f in findings] == [(5, UNSANITIZED_ERROR_TYPE)]

    def test_pii_in_keyword_argument(self):
        content = "logger.info('login', extra={'password': password})\n"
        findings = scan_logging("auth.py", content)
        assert [f.type for f in findings] == [PII_LOGGING_TYPE]

    def test_log_level_argument_skipped(self):
        content = "logger.log(logging.ERROR, err)\n"
        findings = scan_logging("job.py", content)
        assert [f.type for f in findings] == [UNSANITIZED_ERROR_TYPE]

    def test_unrelated_calls(self):
        assert scan_logging("job.py", "print(error)\nlogger.info('done %s', count)\n") == []
