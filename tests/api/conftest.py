import pytest
from fastapi.testclient import TestClient

from server.config import config as server_config
from server.dependencies import get_channel, get_classifier, get_store
from server.main import app
from server.schemas import ChatIntent


@pytest.fixture
def classifier():
    def classify(text, now, tz):
        return ChatIntent(action="CHAT")
    return classify


@pytest.fixture
def api_client(store, channel, classifier, monkeypatch):
    monkeypatch.setattr(server_config, "CRON_SECRET", None)
    # No context manager: startup hooks (table creation, scheduler) stay off
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_channel] = lambda: channel
    app.dependency_overrides[get_classifier] = lambda: classifier
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
