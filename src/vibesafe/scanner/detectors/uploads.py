"""Upload detector — upload library initialisation without size or type limits."""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass

from vibesafe.scanner.models import Severity, UploadFinding
from vibesafe.scanner.technologies import DetectedTechnologies

UPLOAD_SOURCE_EXTENSIONS = {
    ".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs",
    ".html", ".htm", ".vue", ".svelte",
}

MISSING_SIZE_TYPE = "Missing Upload Size Limit"
MISSING_FILTER_TYPE = "Missing Upload File Filter"
GENERIC_UPLOAD_TYPE = "Generic File Upload Pattern"


@dataclass(frozen=True)
class UploadLibrary:
    """How a library is initialised and which options bound uploads."""

    package: str
    default_bindings: tuple[str, ...]
    size_keys: tuple[str, ...]
    filter_keys: tuple[str, ...] = ()
    # Callables reachable as <binding>.<name> or imported by name
    constructors: tuple[str, ...] = ()


UPLOAD_LIBRARIES: tuple[UploadLibrary, ...] = (
    UploadLibrary(
        package="multer",
        default_bindings=("multer",),
        size_keys=("limits",),
        filter_keys=("fileFilter",),
    ),
    UploadLibrary(
        package="formidable",
        default_bindings=("formidable",),
        size_keys=("maxFileSize", "maxTotalFileSize"),
        filter_keys=("filter",),
        constructors=("IncomingForm", "Formidable"),
    ),
    UploadLibrary(
        package="express-fileupload",
        default_bindings=("fileUpload", "fileupload", "expressUpload"),
        size_keys=("limits",),
    ),
    UploadLibrary(
        package="busboy",
        default_bindings=("busboy", "Busboy"),
        size_keys=("limits",),
    ),
)

_REQUIRE_BINDING = re.compile(
    r"(?:const|let|var)\s+(\w+)\s*=\s*require\(\s*['\"]([@\w/\-]+)['\"]\s*\)"
)
_REQUIRE_DESTRUCTURED = re.compile(
    r"(?:const|let|var)\s*\{([^}]*)\}\s*=\s*require\(\s*['\"]([@\w/\-]+)['\"]\s*\)"
)
_IMPORT_DEFAULT = re.compile(
    r"import\s+(?:\*\s+as\s+)?(\w+)\s*(?:,\s*\{[^}]*\})?\s*from\s+['\"]([@\w/\-]+)['\"]"
)
_IMPORT_NAMED = re.compile(
    r"import\s+(?:\w+\s*,\s*)?\{([^}]*)\}\s*from\s+['\"]([@\w/\-]+)['\"]"
)
_ANY_IMPORT = re.compile(
    r"require\(\s*['\"]([@\w/\-]+)['\"]\s*\)|from\s+['\"]([@\w/\-]+)['\"]|import\s+['\"]([@\w/\-]+)['\"]"
)

_NEW_FORMDATA = re.compile(r"new\s+FormData\s*\(")
_INPUT_TYPE_FILE = re.compile(r"<input\b[^>]*?\btype\s*=\s*[\"']?file\b[^>]*>", re.IGNORECASE)


def scan_uploads(
    file_path: str,
    content: str,
    tech: DetectedTechnologies | None = None,
) -> list[UploadFinding]:
    """Scan source for upload handling that lacks size limits or type filters."""
    if tech is not None and tech.is_frontend_only:
        return []
    if posixpath.splitext(file_path)[1].lower() not in UPLOAD_SOURCE_EXTENSIONS:
        return []

    findings: list[UploadFinding] = []
    seen: set[tuple[int, str]] = set()

    def _add(finding: UploadFinding) -> None:
        key = (finding.line or 0, finding.type)
        if key not in seen:
            seen.add(key)
            findings.append(finding)

    for library, bindings in _detect_libraries(content).items():
        for match in _init_regex(library, bindings).finditer(content):
            line = _line_of(content, match.start())
            options = _resolve_options(content, _enclosed(content, match.end() - 1, first_only=True))
            if options is None:
                continue
            snippet = _snippet(content, match.start())

            if not _has_any_key(options, library.size_keys):
                _add(
                    UploadFinding(
                        file_path=file_path,
                        line=line,
                        type=MISSING_SIZE_TYPE,
                        severity=Severity.MEDIUM,
                        message=f"Potential missing file size limit in {library.package} configuration.",
                        details=(
                            f"Consider adding {' or '.join(library.size_keys)}. "
                            f"Found: {snippet}"
                        ),
                        library=library.package,
                    )
                )
            if library.filter_keys and not _has_any_key(options, library.filter_keys):
                _add(
                    UploadFinding(
                        file_path=file_path,
                        line=line,
                        type=MISSING_FILTER_TYPE,
                        severity=Severity.MEDIUM,
                        message=f"Potential missing file type filter in {library.package} configuration.",
                        details=(
                            f"Consider adding {' or '.join(library.filter_keys)}. "
                            f"Found: {snippet}"
                        ),
                        library=library.package,
                    )
                )

    flagged_lines = {f.line for f in findings}
    for regex, message in (
        (_NEW_FORMDATA, "Found `new FormData()`, which is often used for file uploads."),
        (_INPUT_TYPE_FILE, 'Found `<input type="file">`, indicating a file upload form element.'),
    ):
        for match in regex.finditer(content):
            line = _line_of(content, match.start())
            if line in flagged_lines:
                continue
            flagged_lines.add(line)
            _add(
                UploadFinding(
                    file_path=file_path,
                    line=line,
                    type=GENERIC_UPLOAD_TYPE,
                    severity=Severity.LOW,
                    message=message,
                    details="Ensure server-side validation of upload size and type is implemented.",
                )
            )

    return findings


def _detect_libraries(content: str) -> dict[UploadLibrary, set[str]]:
    """Map each imported upload library to the identifiers it is bound to."""
    imported: set[str] = set()
    for match in _ANY_IMPORT.finditer(content):
        imported.add(next(g for g in match.groups() if g))

    detected: dict[UploadLibrary, set[str]] = {}
    for library in UPLOAD_LIBRARIES:
        if library.package not in imported:
            continue
        bindings = set(library.default_bindings)
        for regex in (_REQUIRE_BINDING, _IMPORT_DEFAULT):
            for match in regex.finditer(content):
                if match.group(2) == library.package:
                    bindings.add(match.group(1))
        for regex in (_REQUIRE_DESTRUCTURED, _IMPORT_NAMED):
            for match in regex.finditer(content):
                if match.group(2) == library.package:
                    bindings.update(_destructured_names(match.group(1)))
        detected[library] = bindings
    return detected


def _destructured_names(text: str) -> list[str]:
    names = []
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        # { IncomingForm as Form } or { IncomingForm: Form }
        alias = re.split(r"\s+as\s+|\s*:\s*", part)
        names.append(alias[-1].strip())
    return names


def _init_regex(library: UploadLibrary, bindings: set[str]) -> re.Pattern[str]:
    names = set(bindings)
    for binding in bindings:
        names.update(f"{binding}.{ctor}" for ctor in library.constructors)
    names.update(library.constructors)
    alternation = "|".join(re.escape(n) for n in sorted(names, key=len, reverse=True))
    return re.compile(rf"(?<![\w.$])(?:new\s+)?(?:{alternation})\s*\(")


def _enclosed(content: str, open_index: int, first_only: bool = False) -> str:
    """Text between the bracket at open_index and its match.

    With ``first_only`` the text stops at the first top-level comma, giving
    the first argument of a call.
    """
    depth = 0
    quote = ""
    start = open_index + 1
    i = open_index
    while i < len(content):
        c = content[i]
        if quote:
            if c == "\\":
                i += 2
                continue
            if c == quote:
                quote = ""
        elif c in "'\"`":
            quote = c
        elif c in "([{":
            depth += 1
        elif c in ")]}":
            depth -= 1
            if depth == 0:
                return content[start:i].strip()
        elif c == "," and depth == 1 and first_only:
            return content[start:i].strip()
        i += 1
    return content[start:].strip()


def _resolve_options(content: str, argument: str) -> str | None:
    """Options text for an init call, or None when it cannot be determined.

    An identifier argument is resolved to a same-file object literal
    assignment.
    """
    if not re.fullmatch(r"[A-Za-z_$][\w$]*", argument):
        return argument
    assignment = re.search(
        rf"(?:const|let|var)\s+{re.escape(argument)}\s*=\s*\{{", content
    )
    if assignment is None:
        return None
    return "{" + _enclosed(content, assignment.end() - 1) + "}"


def _has_any_key(options: str, keys: tuple[str, ...]) -> bool:
    return any(re.search(rf"\b{re.escape(key)}\b", options) for key in keys)


def _line_of(content: str, offset: int) -> int:
    return content.count("\n", 0, offset) + 1


def _snippet(content: str, offset: int, width: int = 60) -> str:
    text = " ".join(content[offset : offset + width].split())
    return text + "..." if len(content) - offset > width else text
