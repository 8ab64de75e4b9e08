"""Tests for the Flask application factory."""

from contextlib import contextmanager
import json
from pathlib import Path
import sys

import pytest
from nacl.signing import SigningKey

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:  # pragma: no cover
    sys.path.insert(0, str(ROOT))

import app as app_module  # noqa: E402
from interaction_router import config  # noqa: E402
from interaction_router.db import get_engine, get_session_factory  # noqa: E402
from interaction_router.errors import RestError  # noqa: E402
from interaction_router.interactions import HandlerRegistry  # noqa: E402
from interaction_router.security import SIGNATURE_HEADER, TIMESTAMP_HEADER  # noqa: E402

SIGNING_KEY = SigningKey(b"\x05" * 32)
TIMESTAMP = "1700000000"


class RecordingRest:
    def __init__(self, token, fail_with=None):
        self.token = token
        self.calls = []
        self.fail_with = fail_with

    async def add_role(self, guild_id, member_id, role_id):
        if self.fail_with:
            raise RestError(self.fail_with, status_code=403)
        self.calls.append(("add", guild_id, member_id, role_id))

    async def remove_role(self, guild_id, member_id, role_id):
        self.calls.append(("remove", guild_id, member_id, role_id))

    async def close(self):
        pass


@pytest.fixture
def settings_env(monkeypatch, tmp_path):
    monkeypatch.setenv("DISCORD_PUBLIC_KEY", SIGNING_KEY.verify_key.encode().hex())
    monkeypatch.setenv("DISCORD_BOT_TOKEN", "bot-token")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    config.get_settings.cache_clear()
    get_engine.cache_clear()
    get_session_factory.cache_clear()
    yield tmp_path
    config.get_settings.cache_clear()
    get_engine.cache_clear()
    get_session_factory.cache_clear()


def _signed_post(client, payload, path="/interactions"):
    body = json.dumps(payload).encode()
    signature = SIGNING_KEY.sign(TIMESTAMP.encode() + body).signature.hex()
    return client.post(
        path,
        data=body,
        content_type="application/json",
        headers={SIGNATURE_HEADER: signature, TIMESTAMP_HEADER: TIMESTAMP},
    )


def _interaction(kind, data=None, roles=()):
    payload = {
        "id": "1",
        "application_id": "2",
        "type": kind,
        "token": "interaction-token",
        "guild_id": "G1",
        "member": {"user": {"id": "U1"}, "roles": list(roles)},
    }
    if data is not None:
        payload["data"] = data
    return payload


def test_ping_round_trip(settings_env):
    flask_app = app_module.create_app()

    response = _signed_post(flask_app.test_client(), _interaction(1))

    assert response.status_code == 200
    assert response.get_json() == {"type": 1}


def test_missing_signature_returns_unauthorised(settings_env):
    flask_app = app_module.create_app()

    response = flask_app.test_client().post("/interactions", data=b"{}", content_type="application/json")

    assert response.status_code == 401
    assert response.get_data(as_text=True) == "Invalid token"


def test_unsupported_kind_returns_bad_request(settings_env):
    flask_app = app_module.create_app()

    response = _signed_post(flask_app.test_client(), _interaction(5, data={"custom_id": "m"}))

    assert response.status_code == 400
    assert response.get_data(as_text=True) == "Missing implementation"


def test_ping_command_replies_ephemerally(settings_env):
    flask_app = app_module.create_app()

    response = _signed_post(flask_app.test_client(), _interaction(2, data={"id": "9", "name": "ping"}))

    assert response.status_code == 200
    assert response.get_json() == {"type": 4, "data": {"content": "Pong!", "flags": 64}}


def test_unregistered_command_is_still_success(settings_env):
    flask_app = app_module.create_app(HandlerRegistry())

    response = _signed_post(flask_app.test_client(), _interaction(2, data={"id": "9", "name": "ping"}))

    assert response.status_code == 200
    assert response.get_json()["data"]["content"] == "This command is not registered"


def test_role_button_adds_missing_role(settings_env):
    clients = []

    def rest_factory(token):
        clients.append(RecordingRest(token))
        return clients[-1]

    flask_app = app_module.create_app(rest_factory=rest_factory)

    response = _signed_post(
        flask_app.test_client(),
        _interaction(3, data={"custom_id": "role:R9", "component_type": 2}),
    )

    assert response.get_json()["data"] == {"content": "Added <@&R9>.", "flags": 64}
    assert clients[0].calls == [("add", "G1", "U1", "R9")]
    assert clients[0].token == "bot-token"


def test_role_button_removes_held_role(settings_env):
    clients = []

    def rest_factory(token):
        clients.append(RecordingRest(token))
        return clients[-1]

    flask_app = app_module.create_app(rest_factory=rest_factory)

    response = _signed_post(
        flask_app.test_client(),
        _interaction(3, data={"custom_id": "role:R9", "component_type": 2}, roles=["R9"]),
    )

    assert response.get_json()["data"]["content"] == "Removed <@&R9>."
    assert clients[0].calls == [("remove", "G1", "U1", "R9")]


def test_role_button_api_failure_is_shown_to_user(settings_env):
    flask_app = app_module.create_app(
        rest_factory=lambda token: RecordingRest(token, fail_with="Missing Permissions")
    )

    response = _signed_post(
        flask_app.test_client(),
        _interaction(3, data={"custom_id": "role:R9", "component_type": 2}),
    )

    assert response.status_code == 200
    assert response.get_json()["data"]["content"] == "An error occurred: Missing Permissions"


def test_custom_interactions_path(settings_env, monkeypatch):
    monkeypatch.setenv("INTERACTIONS_PATH", "/discord")
    config.get_settings.cache_clear()
    flask_app = app_module.create_app()

    response = _signed_post(flask_app.test_client(), _interaction(1), path="/discord")

    assert response.status_code == 200


def test_health_endpoint_returns_ok(settings_env):
    flask_app = app_module.create_app()

    with flask_app.test_client() as client:
        response = client.get("/healthz")
        assert response.status_code == 200
        data = response.get_json()
        assert data["ok"] is True
        assert data["config"] == "valid"
        assert data["db"] == "up"
        assert data["commands"] == 1
        assert data["components"] == 1
        assert "version" in data


def test_health_endpoint_reports_db_down(settings_env, monkeypatch):
    flask_app = app_module.create_app()

    @contextmanager
    def failing_session_scope():
        raise RuntimeError("db down")
        yield

    monkeypatch.setattr(app_module, "session_scope", failing_session_scope)

    with flask_app.test_client() as client:
        response = client.get("/healthz")
        data = response.get_json()
        assert response.status_code == 503
        assert data["ok"] is False
        assert data["db"] == "down"
        assert "db_error" in data
