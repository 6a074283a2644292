"""Technology detection — infers project architecture flags from dependency names."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

FRONTEND_PACKAGES = frozenset(
    {
        "react",
        "@angular/core",
        "vue",
        "svelte",
        "next",
        "nuxt",
        "gatsby",
        "remix",
        "solid-js",
        "preact",
        "@emotion/react",
        "styled-components",
        "jquery",
    }
)

BACKEND_PACKAGES = frozenset(
    {
        "express",
        "fastify",
        "koa",
        "@hapi/hapi",
        "hapi",
        "@nestjs/core",
        "sails",
        "@adonisjs/core",
        "loopback",
        "polka",
        "restify",
        "connect",
        "meteor-base",
        "next",
        # Python web frameworks
        "flask",
        "django",
        "fastapi",
        "starlette",
        "aiohttp",
    }
)

# Frameworks that serve both the UI and API routes from one codebase
FULLSTACK_PACKAGES = frozenset(
    {
        "next",
        "nuxt",
        "remix",
        "@remix-run/node",
        "@remix-run/react",
        "@sveltejs/kit",
    }
)

AUTH_PACKAGES = frozenset(
    {
        "passport",
        "jsonwebtoken",
        "bcrypt",
        "bcryptjs",
        "@hapi/basic",
        "express-session",
        "cookie-session",
        "@fastify/session",
        "@fastify/jwt",
        "next-auth",
        "node-jose",
        "oidc-provider",
        "keycloak-connect",
        "auth0",
    }
)

MIDDLEWARE_PACKAGES = frozenset(
    {
        "helmet",
        "body-parser",
        "morgan",
        "compression",
        "express-validator",
        "cookie-parser",
        "csurf",
        "connect-timeout",
        "response-time",
        "rate-limiter-flexible",
        "express-rate-limit",
        "@fastify/rate-limit",
        "@fastify/helmet",
        "@fastify/cookie",
        "pino-http",
    }
)

HTTP_CLIENT_PACKAGES = frozenset(
    {
        "axios",
        "node-fetch",
        "got",
        "superagent",
        "request",
        "needle",
        "ky",
        "undici",
        "@actions/http-client",
        "requests",
        "httpx",
    }
)

CORS_PACKAGES = frozenset({"cors", "@fastify/cors", "@koa/cors", "flask-cors", "django-cors-headers"})

FILE_UPLOAD_PACKAGES = frozenset(
    {
        "multer",
        "busboy",
        "formidable",
        "express-fileupload",
        "@fastify/multipart",
        "connect-busboy",
    }
)


@dataclass(frozen=True)
class DetectedTechnologies:
    """Read-only snapshot of the scanned project's architecture."""

    has_backend: bool = False
    has_frontend: bool = False
    is_fullstack_framework: bool = False
    has_auth: bool = False
    has_middleware: bool = False
    has_http_client: bool = False
    has_cors: bool = False
    has_file_upload: bool = False

    @property
    def is_frontend_only(self) -> bool:
        """True for UI-only projects, where server-side checks are irrelevant."""
        return self.has_frontend and not self.has_backend and not self.is_fullstack_framework


def detect_technologies(dependency_names: Iterable[str]) -> DetectedTechnologies:
    """Build the technology snapshot from dependency package names."""
    names = {n.lower() for n in dependency_names}
    return DetectedTechnologies(
        has_backend=bool(names & BACKEND_PACKAGES),
        has_frontend=bool(names & FRONTEND_PACKAGES),
        is_fullstack_framework=bool(names & FULLSTACK_PACKAGES),
        has_auth=bool(names & AUTH_PACKAGES) or any(n.startswith("@clerk/") for n in names),
        has_middleware=bool(names & MIDDLEWARE_PACKAGES),
        has_http_client=bool(names & HTTP_CLIENT_PACKAGES),
        has_cors=bool(names & CORS_PACKAGES),
        has_file_upload=bool(names & FILE_UPLOAD_PACKAGES),
    )
