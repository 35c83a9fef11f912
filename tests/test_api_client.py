"""
Unit tests for the remote API client.

requests.Session is replaced with a MagicMock; responses are MagicMocks
carrying status_code, content and json().
"""

import logging

import pytest
import requests
from unittest.mock import MagicMock

from core.api_client import RemoteAPIClient
from core.auth import AuthContext, UserIdentity
from core.exceptions import RemoteAPIError, RemoteTimeoutError
from models.printer import PrinterDescriptor


# Fixtures

def make_response(status_code=200, payload=None, content=b"{}"):
    response = MagicMock()
    response.status_code = status_code
    response.content = content
    response.json.return_value = payload
    return response


@pytest.fixture
def logger():
    """Create a test logger."""
    return logging.getLogger("test")


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def auth():
    context = AuthContext()
    context.login(UserIdentity(id="u1", role="ADMIN"), "secret-token")
    return context


@pytest.fixture
def client(session, auth, logger):
    return RemoteAPIClient(
        "https://api.example.com/", auth_context=auth, timeout_seconds=30,
        session=session, logger=logger,
    )


class TestConstruction:

    def test_requires_base_url(self):
        with pytest.raises(ValueError):
            RemoteAPIClient("")

    def test_strips_trailing_slash(self, client):
        assert client.base_url == "https://api.example.com"
        assert client.timeout_seconds == 30.0


class TestListPrinters:

    def test_bare_list(self, client, session):
        session.request.return_value = make_response(payload=[
            {"id": 1, "name": "Kitchen"},
            {"id": 2, "name": "Front", "isDefault": True},
        ])

        printers = client.list_printers()

        assert [p.id for p in printers] == ["1", "2"]
        assert printers[1].is_default
        assert printers[0].connected is None

    def test_wrapped_list(self, client, session):
        session.request.return_value = make_response(
            payload={"printers": [{"id": "a", "name": "A"}]}
        )
        assert [p.name for p in client.list_printers()] == ["A"]

    def test_sends_bearer_token_and_timeout(self, client, session):
        session.request.return_value = make_response(payload=[])

        client.list_printers()

        args, kwargs = session.request.call_args
        assert args == ("GET", "https://api.example.com/printer")
        assert kwargs["headers"]["Authorization"] == "Bearer secret-token"
        assert kwargs["timeout"] == 30.0

    def test_no_token_after_logout(self, client, session, auth):
        auth.logout()
        session.request.return_value = make_response(payload=[])

        client.list_printers()

        assert "Authorization" not in session.request.call_args.kwargs["headers"]

    def test_unexpected_payload(self, client, session):
        session.request.return_value = make_response(payload="nope")
        with pytest.raises(RemoteAPIError):
            client.list_printers()


class TestErrors:

    def test_timeout(self, client, session):
        session.request.side_effect = requests.Timeout("slow")

        with pytest.raises(RemoteTimeoutError) as exc_info:
            client.list_printers()
        assert exc_info.value.timeout_seconds == 30.0

    def test_connection_error(self, client, session):
        session.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(RemoteAPIError) as exc_info:
            client.get_printer_status("p1")
        assert exc_info.value.path == "/printer/p1/status"

    def test_http_error(self, client, session):
        session.request.return_value = make_response(status_code=503)

        with pytest.raises(RemoteAPIError) as exc_info:
            client.get_printer_status("p1")
        assert exc_info.value.status_code == 503

    def test_invalid_json(self, client, session):
        response = make_response()
        response.json.side_effect = ValueError("bad json")
        session.request.return_value = response

        with pytest.raises(RemoteAPIError):
            client.get_printer_status("p1")


class TestRegisterDevices:

    def test_payload(self, client, session):
        session.request.return_value = make_response(payload={"success": True, "message": "ok"})

        result = client.register_devices(
            "comp_1", [PrinterDescriptor(name="EPSON", extra={"port": "USB001"})]
        )

        assert result == {"success": True, "message": "ok"}
        args, kwargs = session.request.call_args
        assert args == ("POST", "https://api.example.com/printer/register-devices")
        assert kwargs["json"] == {
            "computerId": "comp_1",
            "printers": [{"port": "USB001", "name": "EPSON"}],
        }

    def test_empty_body(self, client, session):
        session.request.return_value = make_response(content=b"")

        result = client.register_devices("comp_1", [])

        assert result["success"] is False


class TestGetCompany:

    def test_returns_record(self, client, session):
        session.request.return_value = make_response(payload={"id": "c1", "name": "Loja"})

        assert client.get_company() == {"id": "c1", "name": "Loja"}
        assert session.request.call_args.args == ("GET", "https://api.example.com/company")

    def test_non_object_payload(self, client, session):
        session.request.return_value = make_response(payload=[])
        assert client.get_company() == {}
