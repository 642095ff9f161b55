"""Tests for breakouts.github -- GraphQL client."""

import pytest
import requests
from factories import make_response

from breakouts.errors import (
    AuthenticationError,
    InvalidProjectError,
    PermanentError,
    RateLimitError,
    TransientError,
)
from breakouts.github import GRAPHQL_URL, GitHubClient


def _not_found_user(login):
    """GraphQL reply for user(login:) when the login does not exist."""
    return {
        "data": {"user": None},
        "errors": [
            {
                "type": "NOT_FOUND",
                "path": ["user"],
                "locations": [{"line": 2, "column": 3}],
                "message": f"Could not resolve to a User with the login of '{login}'.",
            }
        ],
    }


def _project_page(numbers, has_next=False, cursor=None):
    return {
        "organization": {
            "projectV2": {
                "id": "PVT_1",
                "title": "TPAC 2023 breakout sessions",
                "url": "https://github.com/orgs/w3c/projects/42",
                "shortDescription": "meeting: TPAC 2023\ndate: 2023-09-13\ntimezone: Europe/Madrid",
                "room": {"options": [{"id": "r1", "name": "Patio"}]},
                "slot": {"options": [{"id": "s1", "name": "9:30 - 10:30"}]},
                "items": {
                    "pageInfo": {"hasNextPage": has_next, "endCursor": cursor},
                    "nodes": [
                        {
                            "content": {
                                "id": f"I_{number}",
                                "repository": {"nameWithOwner": "w3c/tpac2023-breakouts"},
                                "number": number,
                                "title": f"Session {number}",
                                "body": "",
                                "labels": {"nodes": []},
                                "author": {"databaseId": 1, "login": "alice"},
                            },
                            "fieldValues": {"nodes": []},
                        }
                        for number in numbers
                    ],
                },
            }
        }
    }


def _labels_page():
    return {
        "repository": {
            "id": "R_1",
            "labels": {
                "pageInfo": {"hasNextPage": False, "endCursor": None},
                "nodes": [{"id": "L1", "name": "session", "description": "Breakout", "color": "C2E0C6"}],
            },
        }
    }


@pytest.fixture
def client(http_session):
    return GitHubClient("token", session=http_session)


class TestGitHubClientInit:
    @pytest.mark.unit
    def test_token_required(self):
        with pytest.raises(AuthenticationError, match="GRAPHQL_TOKEN"):
            GitHubClient("")

    @pytest.mark.unit
    def test_auth_header(self, client, http_session):
        assert http_session.headers["Authorization"] == "bearer token"


class TestGraphQL:
    @pytest.mark.unit
    def test_returns_data(self, client, http_session):
        http_session.post.return_value = make_response({"data": {"user": {"login": "alice"}}})
        assert client.graphql("query", {"login": "alice"}) == {"user": {"login": "alice"}}
        http_session.post.assert_called_once_with(
            GRAPHQL_URL,
            json={"query": "query", "variables": {"login": "alice"}},
            timeout=30.0,
        )

    @pytest.mark.unit
    def test_graphql_errors(self, client, http_session):
        http_session.post.return_value = make_response({"errors": [{"message": "Field 'x' doesn't exist"}]})
        with pytest.raises(PermanentError, match="Field 'x' doesn't exist"):
            client.graphql("query")
        assert http_session.post.call_count == 1

    @pytest.mark.unit
    def test_bad_credentials_not_retried(self, client, http_session, no_sleep):
        http_session.post.return_value = make_response(status_code=401)
        with pytest.raises(AuthenticationError):
            client.graphql("query")
        assert http_session.post.call_count == 1

    @pytest.mark.unit
    def test_server_error_retried(self, client, http_session, no_sleep):
        http_session.post.side_effect = [
            make_response(status_code=502),
            make_response({"data": {"ok": True}}),
        ]
        assert client.graphql("query") == {"ok": True}
        assert http_session.post.call_count == 2

    @pytest.mark.unit
    def test_timeout_gives_up_after_three_attempts(self, client, http_session, no_sleep):
        http_session.post.side_effect = requests.Timeout("read timed out")
        with pytest.raises(TransientError):
            client.graphql("query")
        assert http_session.post.call_count == 3

    @pytest.mark.unit
    def test_rate_limit(self, client, http_session, no_sleep):
        http_session.post.return_value = make_response(status_code=429)
        with pytest.raises(RateLimitError):
            client.graphql("query")
        assert http_session.post.call_count == 3

    @pytest.mark.unit
    def test_unexpected_status(self, client, http_session):
        http_session.post.return_value = make_response(status_code=404)
        with pytest.raises(PermanentError, match="404"):
            client.graphql("query")


class TestFetchProject:
    @pytest.mark.unit
    def test_paginates_and_loads_labels(self, client, http_session):
        http_session.post.side_effect = [
            make_response({"data": _project_page([1, 2], has_next=True, cursor="c1")}),
            make_response({"data": _project_page([3])}),
            make_response({"data": _labels_page()}),
        ]
        project = client.fetch_project("w3c", 42)

        assert [session.number for session in project.sessions] == [1, 2, 3]
        assert [label.name for label in project.labels] == ["session"]
        assert project.metadata.timezone == "Europe/Madrid"
        second_call = http_session.post.call_args_list[1]
        assert second_call.kwargs["json"]["variables"]["cursor"] == "c1"
        labels_call = http_session.post.call_args_list[2]
        assert labels_call.kwargs["json"]["variables"]["name"] == "tpac2023-breakouts"

    @pytest.mark.unit
    def test_user_project_query(self, client, http_session):
        http_session.post.return_value = make_response({"data": {"user": {"projectV2": None}}})
        with pytest.raises(InvalidProjectError):
            client.fetch_project("alice", 1, owner_type="user")
        assert "user(login: $login)" in http_session.post.call_args.kwargs["json"]["query"]

    @pytest.mark.unit
    def test_project_not_found(self, client, http_session):
        http_session.post.return_value = make_response({"data": {"organization": {"projectV2": None}}})
        with pytest.raises(InvalidProjectError, match="w3c/42"):
            client.fetch_project("w3c", 42)

    @pytest.mark.unit
    def test_unknown_owner_type(self, client):
        with pytest.raises(ValueError):
            client.fetch_project("w3c", 42, owner_type="team")


class TestRepositoryLabels:
    @pytest.mark.unit
    def test_fetch_repository_labels(self, client, http_session):
        http_session.post.return_value = make_response({"data": _labels_page()})
        repository_id, labels = client.fetch_repository_labels("w3c", "tpac2023-breakouts")
        assert repository_id == "R_1"
        assert labels[0].color == "C2E0C6"

    @pytest.mark.unit
    def test_repository_not_found(self, client, http_session):
        http_session.post.return_value = make_response({"data": {"repository": None}})
        with pytest.raises(PermanentError, match="w3c/nope"):
            client.fetch_repository_labels("w3c", "nope")


class TestMutations:
    @pytest.mark.unit
    def test_add_labels(self, client, http_session):
        http_session.post.return_value = make_response(
            {"data": {"addLabelsToLabelable": {"labelable": {"id": "I_1"}}}}
        )
        client.add_labels("I_1", ["L1", "L2"])
        variables = http_session.post.call_args.kwargs["json"]["variables"]
        assert variables == {"labelableId": "I_1", "labelIds": ["L1", "L2"]}

    @pytest.mark.unit
    def test_remove_labels_failure(self, client, http_session):
        http_session.post.return_value = make_response({"data": {"removeLabelsFromLabelable": None}})
        with pytest.raises(PermanentError, match="could not remove labels"):
            client.remove_labels("I_1", ["L1"])

    @pytest.mark.unit
    def test_create_label(self, client, http_session):
        http_session.post.return_value = make_response({"data": {"createLabel": {"label": {"id": "L9"}}}})
        assert client.create_label("R_1", "error: format", "B60205", "Format") == "L9"

    @pytest.mark.unit
    def test_delete_label(self, client, http_session):
        http_session.post.return_value = make_response({"data": {"deleteLabel": {"clientMutationId": None}}})
        client.delete_label("L9")

    @pytest.mark.unit
    def test_fetch_user(self, client, http_session):
        user = {"databaseId": 7, "login": "alice", "avatarUrl": "https://a.png"}
        http_session.post.return_value = make_response({"data": {"user": user}})
        assert client.fetch_user("alice") == user

    @pytest.mark.unit
    def test_fetch_unknown_user(self, client, http_session):
        http_session.post.return_value = make_response(_not_found_user("ghost"))
        assert client.fetch_user("ghost") is None

    @pytest.mark.unit
    def test_not_found_raises_outside_user_lookup(self, client, http_session):
        http_session.post.return_value = make_response(_not_found_user("ghost"))
        with pytest.raises(PermanentError, match="Could not resolve to a User"):
            client.graphql("query { user(login: \"ghost\") { login } }")

    @pytest.mark.unit
    def test_fetch_user_other_errors_raise(self, client, http_session):
        http_session.post.return_value = make_response(
            {
                "data": {"user": None},
                "errors": [{"type": "FORBIDDEN", "path": ["user"], "message": "Resource not accessible"}],
            }
        )
        with pytest.raises(PermanentError, match="Resource not accessible"):
            client.fetch_user("ghost")
