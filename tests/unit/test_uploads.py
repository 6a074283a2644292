"""Tests for the upload detector."""

from __future__ import annotations

from pathlib import Path

from vibesafe.scanner.detectors.uploads import (
    GENERIC_UPLOAD_TYPE,
    MISSING_FILTER_TYPE,
    MISSING_SIZE_TYPE,
    scan_uploads,
)
from vibesafe.scanner.models import Severity


def test_multer_fixture(fixtures_dir: Path):
    content = (fixtures_dir / "multer-test.js").read_text()
    findings = scan_uploads("multer-test.js", content)
    assert sorted((f.line, f.type) for f in findings) == [
        (7, MISSING_FILTER_TYPE),
        (7, MISSING_SIZE_TYPE),
    ]
    assert all(f.severity == Severity.MEDIUM for f in findings)
    assert all(f.library == "multer" for f in findings)


def test_multer_without_options():
    content = "const multer = require('multer');\nconst upload = multer();\n"
    types = {f.type for f in scan_uploads("upload.js", content)}
    assert types == {MISSING_SIZE_TYPE, MISSING_FILTER_TYPE}


def test_options_resolved_from_variable():
    content = (
        "import multer from 'multer';\n"
        "const options = { limits: { fileSize: 1000 }, fileFilter };\n"
        "const upload = multer(options);\n"
    )
    assert scan_uploads("upload.ts", content) == []


def test_formidable_missing_filter_only():
    content = (
        "const formidable = require('formidable');\n"
        "const form = formidable({ maxFileSize: 1024 });\n"
    )
    findings = scan_uploads("form.js", content)
    assert [(f.line, f.type) for f in findings] == [(2, MISSING_FILTER_TYPE)]


def test_express_fileupload_missing_limits():
    content = (
        "const fileUpload = require('express-fileupload');\n"
        "app.use(fileUpload());\n"
    )
    findings = scan_uploads("server.js", content)
    assert [f.type for f in findings] == [MISSING_SIZE_TYPE]


def test_generic_form_data():
    findings = scan_uploads("client.js", "const data = new FormData();\n")
    assert [(f.type, f.severity) for f in findings] == [(GENERIC_UPLOAD_TYPE, Severity.LOW)]


def test_generic_file_input():
    findings = scan_uploads("index.html", '<form><input type="file" name="avatar"></form>')
    assert [f.type for f in findings] == [GENERIC_UPLOAD_TYPE]


def test_frontend_only_project_skipped(frontend_tech):
    content = "const multer = require('multer');\nconst upload = multer();\n"
    assert scan_uploads("upload.js", content, frontend_tech) == []
