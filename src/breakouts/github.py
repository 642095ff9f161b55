"""GitHub GraphQL client for the breakouts project board and repository labels.

Authenticates with a personal access token (classic) that has the ``project``
and ``public_repo`` scopes. Network failures and 5xx responses are retried;
anything else surfaces immediately.
"""

import requests
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from breakouts.errors import (
    AuthenticationError,
    PermanentError,
    RateLimitError,
    TransientError,
)
from breakouts.logging import get_logger
from breakouts.models import Label, Project
from breakouts.project import build_project

logger = get_logger(__name__)

GRAPHQL_URL = "https://api.github.com/graphql"

OWNER_TYPES = ("organization", "user")

PROJECT_QUERY = """
query($login: String!, $number: Int!, $cursor: String) {
  %(owner_type)s(login: $login) {
    projectV2(number: $number) {
      id
      title
      url
      shortDescription
      room: field(name: "Room") {
        ... on ProjectV2SingleSelectField {
          id
          name
          options { id name }
        }
      }
      slot: field(name: "Slot") {
        ... on ProjectV2SingleSelectField {
          id
          name
          options { id name }
        }
      }
      items(first: 100, after: $cursor) {
        pageInfo { hasNextPage endCursor }
        nodes {
          content {
            ... on Issue {
              id
              repository { nameWithOwner }
              number
              title
              body
              labels(first: 20) { nodes { name } }
              author {
                ... on User { databaseId }
                login
                avatarUrl
              }
              createdAt
              updatedAt
              lastEditedAt
            }
          }
          fieldValues(first: 10) {
            nodes {
              ... on ProjectV2ItemFieldSingleSelectValue {
                name
                field {
                  ... on ProjectV2SingleSelectField { name }
                }
              }
            }
          }
        }
      }
    }
  }
}
"""

LABELS_QUERY = """
query($owner: String!, $name: String!, $cursor: String) {
  repository(owner: $owner, name: $name) {
    id
    labels(first: 100, after: $cursor) {
      pageInfo { hasNextPage endCursor }
      nodes { id name description color }
    }
  }
}
"""

USER_QUERY = """
query($login: String!) {
  user(login: $login) { databaseId login avatarUrl }
}
"""

ADD_LABELS_MUTATION = """
mutation($labelableId: ID!, $labelIds: [ID!]!) {
  addLabelsToLabelable(input: {labelableId: $labelableId, labelIds: $labelIds}) {
    labelable { ... on Issue { id } }
  }
}
"""

REMOVE_LABELS_MUTATION = """
mutation($labelableId: ID!, $labelIds: [ID!]!) {
  removeLabelsFromLabelable(input: {labelableId: $labelableId, labelIds: $labelIds}) {
    labelable { ... on Issue { id } }
  }
}
"""

CREATE_LABEL_MUTATION = """
mutation($repositoryId: ID!, $name: String!, $color: String!, $description: String) {
  createLabel(input: {repositoryId: $repositoryId, name: $name, color: $color, description: $description}) {
    label { id }
  }
}
"""

UPDATE_LABEL_MUTATION = """
mutation($id: ID!, $name: String!, $color: String!, $description: String) {
  updateLabel(input: {id: $id, name: $name, color: $color, description: $description}) {
    label { id }
  }
}
"""

DELETE_LABEL_MUTATION = """
mutation($id: ID!) {
  deleteLabel(input: {id: $id}) { clientMutationId }
}
"""


class GitHubClient:
    """Thin wrapper around the GitHub GraphQL endpoint."""

    def __init__(
        self,
        token: str,
        *,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        if not token:
            raise AuthenticationError("No GRAPHQL_TOKEN found in environment or .env file")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"bearer {token}",
                "Content-Type": "application/json",
            }
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(TransientError),
        reraise=True,
    )
    def graphql(self, query: str, variables: dict | None = None, *, allow_not_found: bool = False) -> dict:
        """Send a GraphQL request and return its ``data`` payload.

        With ``allow_not_found``, a payload whose errors are all ``NOT_FOUND``
        (e.g. ``user(login:)`` for an unknown login) returns its partial data,
        where the missing node is null.

        Raises:
            TransientError: On network failures and 5xx responses.
            AuthenticationError: If the token is rejected.
            PermanentError: On other HTTP errors and GraphQL errors.
        """
        try:
            resp = self.session.post(
                GRAPHQL_URL,
                json={"query": query, "variables": variables or {}},
                timeout=self.timeout,
            )
        except (requests.Timeout, requests.ConnectionError) as e:
            logger.warning("graphql_request_failed", error=str(e))
            raise TransientError(f"GraphQL request failed: {e}") from e

        if resp.status_code == 429:
            raise RateLimitError("GraphQL rate limit exceeded")
        if resp.status_code >= 500:
            raise TransientError(f"GraphQL server error, {resp.status_code} status received")
        if resp.status_code in (401, 403):
            raise AuthenticationError(
                f"GraphQL server reports that the API key is invalid, {resp.status_code} status received"
            )
        if resp.status_code != 200:
            raise PermanentError(f"GraphQL server returned an unexpected HTTP status {resp.status_code}")

        payload = resp.json()
        errors = payload.get("errors")
        if errors and allow_not_found and all(error.get("type") == "NOT_FOUND" for error in errors):
            logger.debug("graphql_not_found", paths=[error.get("path") for error in errors])
        elif errors:
            messages = "; ".join(error.get("message", "") for error in payload["errors"])
            logger.error("graphql_errors", errors=messages)
            raise PermanentError(f"GraphQL error: {messages}")
        return payload.get("data") or {}

    # -----------------------------------------------------------------------
    # Project snapshot
    # -----------------------------------------------------------------------
    def fetch_project(
        self,
        login: str,
        number: int,
        *,
        owner_type: str = "organization",
        repository: str | None = None,
    ) -> Project:
        """Retrieve the project board, its sessions and the repository labels.

        Args:
            login: Organization or user that owns the project.
            number: Project number.
            owner_type: "organization" or "user".
            repository: "owner/name" of the sessions repository. Defaults to
                the repository of the first session.

        Raises:
            InvalidProjectError: If the project or its "Room"/"Slot" fields
                cannot be found.
        """
        if owner_type not in OWNER_TYPES:
            raise ValueError(f"Unknown owner type {owner_type!r}. Valid: {list(OWNER_TYPES)}")

        query = PROJECT_QUERY % {"owner_type": owner_type}
        raw_project = None
        items: list[dict] = []
        cursor = None
        while True:
            data = self.graphql(query, {"login": login, "number": number, "cursor": cursor})
            raw_project = (data.get(owner_type) or {}).get("projectV2")
            if raw_project is None:
                break
            page = raw_project["items"]
            items.extend(page["nodes"])
            if not page["pageInfo"]["hasNextPage"]:
                break
            cursor = page["pageInfo"]["endCursor"]

        if repository is None:
            repository = next(
                (
                    item["content"]["repository"]["nameWithOwner"]
                    for item in items
                    if (item.get("content") or {}).get("repository")
                ),
                None,
            )
        labels: list[Label] = []
        if raw_project is not None and repository:
            owner, name = repository.split("/", 1)
            _, labels = self.fetch_repository_labels(owner, name)

        project = build_project(raw_project, items, labels, reference=f"{login}/{number}")
        logger.info(
            "project_fetched",
            project=project.title,
            sessions=len(project.sessions),
            rooms=len(project.rooms),
            slots=len(project.slots),
            labels=len(project.labels),
        )
        return project

    def fetch_repository_labels(self, owner: str, name: str) -> tuple[str, list[Label]]:
        """Return the repository node id and all labels defined on it."""
        labels: list[Label] = []
        cursor = None
        while True:
            data = self.graphql(LABELS_QUERY, {"owner": owner, "name": name, "cursor": cursor})
            repository = data.get("repository")
            if repository is None:
                raise PermanentError(f"Repository {owner}/{name} could not be found")
            page = repository["labels"]
            labels.extend(
                Label(
                    id=node["id"],
                    name=node["name"],
                    description=node.get("description") or "",
                    color=node.get("color") or "",
                )
                for node in page["nodes"]
            )
            if not page["pageInfo"]["hasNextPage"]:
                return repository["id"], labels
            cursor = page["pageInfo"]["endCursor"]

    def fetch_user(self, login: str) -> dict | None:
        """Return ``{databaseId, login, avatarUrl}`` for a GitHub login, or None."""
        return self.graphql(USER_QUERY, {"login": login}, allow_not_found=True).get("user")

    # -----------------------------------------------------------------------
    # Label mutations
    # -----------------------------------------------------------------------
    def add_labels(self, labelable_id: str, label_ids: list[str]) -> None:
        data = self.graphql(ADD_LABELS_MUTATION, {"labelableId": labelable_id, "labelIds": label_ids})
        if not ((data.get("addLabelsToLabelable") or {}).get("labelable") or {}).get("id"):
            raise PermanentError("GraphQL error, could not add labels")

    def remove_labels(self, labelable_id: str, label_ids: list[str]) -> None:
        data = self.graphql(
            REMOVE_LABELS_MUTATION, {"labelableId": labelable_id, "labelIds": label_ids}
        )
        if not ((data.get("removeLabelsFromLabelable") or {}).get("labelable") or {}).get("id"):
            raise PermanentError("GraphQL error, could not remove labels")

    def create_label(self, repository_id: str, name: str, color: str, description: str) -> str:
        data = self.graphql(
            CREATE_LABEL_MUTATION,
            {"repositoryId": repository_id, "name": name, "color": color, "description": description},
        )
        label_id = ((data.get("createLabel") or {}).get("label") or {}).get("id")
        if not label_id:
            raise PermanentError(f"GraphQL error, could not create label {name}")
        return label_id

    def update_label(self, label_id: str, name: str, color: str, description: str) -> None:
        data = self.graphql(
            UPDATE_LABEL_MUTATION,
            {"id": label_id, "name": name, "color": color, "description": description},
        )
        if not ((data.get("updateLabel") or {}).get("label") or {}).get("id"):
            raise PermanentError(f"GraphQL error, could not update label {name}")

    def delete_label(self, label_id: str) -> None:
        data = self.graphql(DELETE_LABEL_MUTATION, {"id": label_id})
        if "deleteLabel" not in data:
            raise PermanentError(f"GraphQL error, could not delete label {label_id}")
