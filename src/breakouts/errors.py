"""Error hierarchy for breakout session tooling.

Two families live here. Transient vs permanent failures classify calls to the
GitHub and W3C APIs so tenacity retry decorators only retry what may succeed
on a second attempt:

    @retry(retry=retry_if_exception_type(TransientError), stop=stop_after_attempt(3))
    def graphql(self, query):
        ...

Structural faults (invalid project snapshot, unknown session, label missing
from the repository catalog) are permanent and always surface to the caller.
Validation findings are never raised: they are returned as ValidationIssue
records.
"""


class BreakoutsError(Exception):
    """Base exception for all breakout tooling errors."""

    pass


class TransientError(BreakoutsError):
    """Temporary failure that may succeed on retry.

    Examples: network timeouts, 502/503 from api.github.com or api.w3.org.
    """

    pass


class RateLimitError(TransientError):
    """Rate limit exceeded - needs longer backoff.

    Inherits from TransientError so tenacity will retry it.
    """

    pass


class PermanentError(BreakoutsError):
    """Failure that won't succeed on retry.

    Examples: malformed GraphQL query, unexpected HTTP status, bad input data.
    """

    pass


class AuthenticationError(PermanentError):
    """Token or API key missing, expired or rejected."""

    pass


class InvalidProjectError(PermanentError):
    """The project snapshot is structurally invalid.

    Carries every problem found so they can be reported at once.
    """

    def __init__(self, title: str, errors: list[str]) -> None:
        self.title = title
        self.errors = list(errors)
        details = "\n".join(f"- {error}" for error in self.errors)
        super().__init__(f'Project "{title}" is invalid:\n{details}')


class UnknownSessionError(PermanentError):
    """A session number does not resolve to a session in the project."""

    def __init__(self, number: int, title: str) -> None:
        self.number = number
        super().__init__(f'Session #{number} is not in project "{title}"')


class UnknownLabelError(PermanentError):
    """A label name has no entry in the repository label catalog.

    The catalog is provisioned by scripts/manage_repo_labels.py and must be
    kept in sync with the labels the validation engine may emit.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'Label "{name}" is not defined in the repository')


class SessionBodyError(PermanentError):
    """A session issue body does not follow the session template."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("Invalid session body: " + "; ".join(self.errors))
