"""Session chairs resolution and validation.

Chairs are the issue author plus the additional chairs declared in the
session body. Each chair needs a W3C account: found through the W3C API for
GitHub accounts connected to W3C, or through a configured mapping for the
others (login or name -> W3C account id).
"""

from typing import Callable, Protocol

from breakouts.logging import get_logger
from breakouts.models import Chair, Session, SessionDescription
from breakouts.w3c import W3CAccount

logger = get_logger(__name__)

ChairResolver = Callable[[Session, SessionDescription], list[Chair]]


class UserLookup(Protocol):
    def fetch_user(self, login: str) -> dict | None: ...


class AccountLookup(Protocol):
    def fetch_account(self, database_id: int) -> W3CAccount | None: ...


def _with_w3c_account(chair: Chair, account: W3CAccount | None, chairs_to_w3c_id: dict[str, int]) -> Chair:
    if account is not None:
        return chair.model_copy(
            update={"w3c_id": account.w3c_id, "name": account.name, "email": account.email}
        )
    if chair.login and chair.login in chairs_to_w3c_id:
        return chair.model_copy(
            update={"w3c_id": chairs_to_w3c_id[chair.login], "name": chair.name or chair.login}
        )
    return chair


def fetch_session_chairs(
    session: Session,
    description: SessionDescription,
    *,
    github: UserLookup,
    w3c: AccountLookup,
    chairs_to_w3c_id: dict[str, int] | None = None,
) -> list[Chair]:
    """Return the session chairs, author first, with their accounts resolved.

    Chairs whose accounts cannot be found are returned as is; see
    validate_session_chairs for the resulting errors.
    """
    mapping = chairs_to_w3c_id or {}
    chairs = []

    if session.author is not None:
        author = Chair(
            login=session.author.login,
            database_id=session.author.database_id,
            avatar_url=session.author.avatar_url,
        )
        account = w3c.fetch_account(author.database_id) if author.database_id else None
        chairs.append(_with_w3c_account(author, account, mapping))

    for declared in description.chairs:
        chair = declared
        if chair.login:
            user = github.fetch_user(chair.login)
            if user and user.get("databaseId"):
                chair = chair.model_copy(
                    update={"database_id": user["databaseId"], "avatar_url": user.get("avatarUrl")}
                )
                chair = _with_w3c_account(chair, w3c.fetch_account(chair.database_id), mapping)
        elif chair.name in mapping:
            chair = chair.model_copy(update={"w3c_id": mapping[chair.name]})
        chairs.append(chair)

    logger.debug(
        "session_chairs_fetched",
        session=session.number,
        chairs=[chair.login or chair.name for chair in chairs],
    )
    return chairs


def make_chair_resolver(
    github: UserLookup,
    w3c: AccountLookup,
    chairs_to_w3c_id: dict[str, int] | None = None,
) -> ChairResolver:
    """Bind API clients to fetch_session_chairs for use in a ValidationContext."""

    def resolve(session: Session, description: SessionDescription) -> list[Chair]:
        return fetch_session_chairs(
            session, description, github=github, w3c=w3c, chairs_to_w3c_id=chairs_to_w3c_id
        )

    return resolve


def validate_session_chairs(chairs: list[Chair]) -> list[str]:
    """Return one error per chair that cannot be tied to a W3C account.

    Raises:
        ValueError: If a chair has neither a login nor a name.
    """
    errors = []
    for chair in chairs:
        if chair.login:
            if chair.database_id is None:
                errors.append(f'No GitHub account associated with "@{chair.login}"')
            elif chair.w3c_id is None:
                errors.append(f'No W3C account linked to the "@{chair.login}" GitHub account')
        elif chair.name:
            if chair.w3c_id is None:
                errors.append(f'No W3C account linked to "{chair.name}"')
        else:
            raise ValueError("Invalid chair object received in the list to validate")
    return errors
