# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import Mock
from typing import Generator

from main import create_app
from core.rate_limiter import reset_rate_limits
from core.recaptcha import RecaptchaResult
from dependencies.clients import get_mailer, get_recaptcha, get_supabase
from tests.fakes import FakeSupabase


@pytest.fixture
def supabase() -> FakeSupabase:
    """Fresh in-memory Supabase per test."""
    return FakeSupabase()


@pytest.fixture
def mailer():
    """SMTP relay double; `send` records calls and can be made to fail."""
    mock_mailer = Mock()
    mock_mailer.from_name = "Futura Homes"
    return mock_mailer


@pytest.fixture
def recaptcha():
    """reCAPTCHA verifier double that passes by default."""
    mock_verifier = Mock()
    mock_verifier.validate.return_value = RecaptchaResult(
        valid=True, score=0.9, message="reCAPTCHA verification successful"
    )
    return mock_verifier


@pytest.fixture(scope="function")
def app(supabase, mailer, recaptcha):
    """Create a test FastAPI application wired to the doubles."""
    application = create_app()

    # The route gate reads app.state directly; handlers go through Depends
    application.state.supabase = supabase
    application.state.mailer = mailer
    application.state.recaptcha = recaptcha

    application.dependency_overrides[get_supabase] = lambda: supabase
    application.dependency_overrides[get_mailer] = lambda: mailer
    application.dependency_overrides[get_recaptcha] = lambda: recaptcha

    yield application

    application.dependency_overrides = {}


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


# -------------------------------------------------
# Users
# -------------------------------------------------
@pytest.fixture
def admin(supabase):
    return supabase.add_user("admin@futura.test", "admin", token="admin-token", first_name="Ada")


@pytest.fixture
def cs_user(supabase):
    return supabase.add_user("cs@futura.test", "Customer Service", token="cs-token")


@pytest.fixture
def sales_user(supabase):
    return supabase.add_user("sales@futura.test", "sales representative", token="sales-token")


@pytest.fixture
def collection_user(supabase):
    return supabase.add_user("collection@futura.test", "collection", token="collection-token")


@pytest.fixture
def homeowner(supabase):
    return supabase.add_user("owner@example.com", "home owner", token="owner-token")


@pytest.fixture(autouse=True)
def reset_limits():
    """Reset the per-email rate limiter before each test."""
    reset_rate_limits()
    yield
    reset_rate_limits()
