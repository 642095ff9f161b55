"""Tests for breakouts.w3c -- W3C account lookups."""

import pytest
import requests
from factories import make_response

from breakouts.errors import AuthenticationError, PermanentError, TransientError
from breakouts.w3c import W3CClient


@pytest.fixture
def client(http_session):
    return W3CClient("secret", session=http_session)


class TestW3CClient:
    @pytest.mark.unit
    def test_api_key_required(self):
        with pytest.raises(AuthenticationError, match="W3C_API_KEY"):
            W3CClient("")

    @pytest.mark.unit
    def test_api_key_header(self, client, http_session):
        assert http_session.headers["Authorization"] == 'W3C-API apikey="secret"'

    @pytest.mark.unit
    def test_account_found(self, client, http_session):
        http_session.get.return_value = make_response({"id": 41, "name": "Alice", "email": "alice@example.org"})
        account = client.fetch_account(7)
        assert (account.github_id, account.w3c_id, account.name, account.email) == (7, 41, "Alice", "alice@example.org")
        http_session.get.assert_called_once_with(
            "https://api.w3.org/users/connected/github/7", timeout=30.0
        )

    @pytest.mark.unit
    def test_account_not_found(self, client, http_session):
        http_session.get.return_value = make_response(status_code=404)
        assert client.fetch_account(7) is None

    @pytest.mark.unit
    def test_lookups_are_cached(self, client, http_session):
        http_session.get.return_value = make_response(status_code=404)
        client.fetch_account(7)
        client.fetch_account(7)
        assert http_session.get.call_count == 1

    @pytest.mark.unit
    def test_invalid_api_key(self, client, http_session):
        http_session.get.return_value = make_response(status_code=403)
        with pytest.raises(AuthenticationError):
            client.fetch_account(7)

    @pytest.mark.unit
    def test_server_error_retried(self, client, http_session, no_sleep):
        http_session.get.side_effect = [
            make_response(status_code=503),
            make_response({"id": 41, "name": "Alice"}),
        ]
        assert client.fetch_account(7).w3c_id == 41
        assert http_session.get.call_count == 2

    @pytest.mark.unit
    def test_connection_error(self, client, http_session, no_sleep):
        http_session.get.side_effect = requests.ConnectionError("unreachable")
        with pytest.raises(TransientError):
            client.fetch_account(7)
        assert http_session.get.call_count == 3

    @pytest.mark.unit
    def test_unexpected_status(self, client, http_session):
        http_session.get.return_value = make_response(status_code=418)
        with pytest.raises(PermanentError, match="418"):
            client.fetch_account(7)
