"""Route classifier tests."""

import pytest

from lunay.auth.routes import RouteClass, classify, redirect_authenticated_away_from


@pytest.mark.parametrize(
    "path",
    [
        "/",
        "/auth/login",
        "/auth/register",
        "/subscription",
        "/try-luna",
        "/_next/static/chunk.js",
        "/images/logo.png",
        "/static/app.css",
        "/favicon.ico",
        "/api/v1/agents",
        "/docs",
    ],
)
def test_public_paths(path):
    assert classify(path) is RouteClass.PUBLIC


@pytest.mark.parametrize("path", ["/dashboard", "/agents/123", "/settings", "/teams"])
def test_protected_paths(path):
    assert classify(path) is RouteClass.AUTH_REQUIRED


def test_auth_only_pages():
    assert redirect_authenticated_away_from("/auth/login")
    assert redirect_authenticated_away_from("/auth/register?next=/x")
    assert not redirect_authenticated_away_from("/auth/forgot-password")
    assert not redirect_authenticated_away_from("/dashboard")
