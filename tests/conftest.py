import pytest
from fastapi.testclient import TestClient

from main import app
from messenger_inbox.config import settings
from messenger_inbox.dependencies import get_optional_supabase_client
from tests.fake_supabase import FakeSupabaseClient

VERIFY_TOKEN = "test-verify-token"


@pytest.fixture
def fake_supabase():
    return FakeSupabaseClient()


@pytest.fixture
def test_settings(monkeypatch):
    # Never reach a real project, Redis or the Graph API from tests
    monkeypatch.setattr(settings, "SUPABASE_URL", "")
    monkeypatch.setattr(settings, "REDIS_ENABLED", False)
    monkeypatch.setattr(settings, "FB_VERIFY_TOKEN", VERIFY_TOKEN)
    monkeypatch.setattr(settings, "FB_APP_SECRET", None)
    monkeypatch.setattr(settings, "FB_PAGE_ACCESS_TOKEN", None)
    return settings


@pytest.fixture
def client(test_settings, fake_supabase):
    app.dependency_overrides[get_optional_supabase_client] = lambda: fake_supabase
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def unconfigured_client(test_settings):
    """App without any Supabase client"""
    with TestClient(app) as test_client:
        yield test_client
