"""Tests for the endpoint detector."""

from __future__ import annotations

from vibesafe.scanner.detectors.endpoints import EXPOSED_ENDPOINT_TYPE, infer_route, scan_endpoints
from vibesafe.scanner.models import Severity


class TestRoutePatterns:
    def test_route_registration_is_medium(self):
        findings = scan_endpoints("server.js", "app.get('/admin', handler);\n")
        assert len(findings) == 1
        assert findings[0].type == EXPOSED_ENDPOINT_TYPE
        assert findings[0].severity == Severity.MEDIUM
        assert findings[0].path == "/admin"
        assert findings[0].line == 1

    def test_string_literal_is_low(self):
        findings = scan_endpoints("client.js", "const url = '/metrics';\n")
        assert [(f.severity, f.path) for f in findings] == [(Severity.LOW, "/metrics")]

    def test_python_route_decorator(self):
        content = "@app.route('/debug/vars')\ndef debug_vars():\n    return {}\n"
        findings = scan_endpoints("app.py", content)
        assert [(f.severity, f.path) for f in findings] == [(Severity.MEDIUM, "/debug")]

    def test_one_finding_per_line(self):
        findings = scan_endpoints("server.js", "router.use('/admin', adminRouter); // '/status'\n")
        assert len(findings) == 1

    def test_unrelated_routes_ignored(self):
        assert scan_endpoints("server.js", "app.get('/users/:id', handler);\n") == []

    def test_frontend_only_project_skipped(self, frontend_tech):
        assert scan_endpoints("server.js", "app.get('/admin', handler);\n", frontend_tech) == []


class TestPathConvention:
    def test_infer_route(self):
        assert infer_route("pages/api/status/[id].ts") == (["api", "status", "[id]"], True)
        assert infer_route("app/(dashboard)/metrics/page.js") == (["metrics"], False)
        assert infer_route("src/lib/util.ts") is None

    def test_api_route_from_file_path(self):
        findings = scan_endpoints("pages/api/status/[id].ts", "export default handler;\n")
        assert len(findings) == 1
        assert findings[0].severity == Severity.MEDIUM
        assert findings[0].path == "/status"
        assert findings[0].line is None

    def test_page_route_from_file_path(self):
        findings = scan_endpoints("app/(dashboard)/metrics/page.js", "export default Page;\n")
        assert [(f.severity, f.path) for f in findings] == [(Severity.LOW, "/metrics")]

    def test_non_sensitive_route(self):
        assert scan_endpoints("pages/api/users.ts", "export default handler;\n") == []

    def test_python_package_named_app_is_not_a_router(self):
        assert infer_route("app/admin.py") is None
        assert scan_endpoints("app/admin.py", "def index(request):\n    return None\n") == []
        assert scan_endpoints("app/config.py", "SECRET_KEY_NAME = 'x'\n") == []
