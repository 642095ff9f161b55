"""Project snapshot building and structural checks.

The snapshot combines the project board (rooms and slots are the options of
the "Room" and "Slot" single select fields, sessions are the issues linked to
the board) with the label catalog of the sessions repository.
"""

from collections import Counter
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import ValidationError

from breakouts.errors import InvalidProjectError
from breakouts.models import Author, Label, Project, ProjectMetadata, Room, Session, Slot


def _field_value(item: dict, field_name: str) -> str | None:
    for value in (item.get("fieldValues") or {}).get("nodes", []):
        if (value.get("field") or {}).get("name") == field_name:
            return value.get("name")
    return None


def _build_session(item: dict) -> Session:
    content = item["content"]
    author = content.get("author")
    return Session(
        id=content.get("id"),
        repository=content["repository"]["nameWithOwner"],
        number=content["number"],
        title=content.get("title") or "",
        body=content.get("body") or "",
        labels=[label["name"] for label in content["labels"]["nodes"]],
        author=(
            Author(
                database_id=author.get("databaseId"),
                login=author["login"],
                avatar_url=author.get("avatarUrl") or "",
            )
            if author
            else None
        ),
        created_at=content.get("createdAt"),
        updated_at=content.get("updatedAt"),
        last_edited_at=content.get("lastEditedAt"),
        room=_field_value(item, "Room"),
        slot=_field_value(item, "Slot"),
    )


def build_project(
    raw_project: dict | None,
    items: list[dict],
    labels: list[Label],
    *,
    reference: str = "",
) -> Project:
    """Build a Project from GraphQL ``projectV2`` data.

    Args:
        raw_project: The ``projectV2`` object (None if the project was not found).
        items: All project item nodes, across pages.
        labels: Label catalog of the sessions repository.
        reference: "owner/number", used in error messages.

    Raises:
        InvalidProjectError: If the project, its "Room" or "Slot" field is
            missing, or if a slot option cannot be parsed.
    """
    if raw_project is None:
        raise InvalidProjectError(reference, ["Project could not be found"])

    title = raw_project.get("title") or reference
    errors = []
    for key, field_name in (("room", "Room"), ("slot", "Slot")):
        if not isinstance((raw_project.get(key) or {}).get("options"), list):
            errors.append(f'No "{field_name}" custom field in project')
    if errors:
        raise InvalidProjectError(title, errors)

    slots = []
    for option in raw_project["slot"]["options"]:
        try:
            slots.append(Slot.from_name(option["name"]))
        except ValueError as e:
            errors.append(str(e))
    try:
        metadata = ProjectMetadata.from_description(raw_project.get("shortDescription"))
    except ValidationError as e:
        errors.append(f"Invalid project metadata: {e.errors()[0]['msg']}")
    if errors:
        raise InvalidProjectError(title, errors)

    return Project(
        title=title,
        url=raw_project.get("url") or "",
        rooms=[Room.from_name(option["name"]) for option in raw_project["room"]["options"]],
        slots=slots,
        labels=labels,
        metadata=metadata,
        # Draft items and pull requests have no issue number
        sessions=[
            _build_session(item)
            for item in items
            if (item.get("content") or {}).get("number") is not None
        ],
    )


def _duplicates(names: list[str]) -> list[str]:
    return sorted(name for name, count in Counter(names).items() if count > 1)


def validate_project(project: Project) -> list[str]:
    """Return the list of structural problems in a project snapshot."""
    errors = []
    for kind, names in (
        ("room", [room.name for room in project.rooms]),
        ("slot", [slot.name for slot in project.slots]),
        ("label", [label.name for label in project.labels]),
    ):
        for name in _duplicates(names):
            errors.append(f'Duplicate {kind} "{name}"')
    for name in _duplicates([str(session.number) for session in project.sessions]):
        errors.append(f"Duplicate session #{name}")

    metadata = project.metadata
    if not metadata.meeting:
        errors.append("No meeting name in project metadata")
    if metadata.date is None:
        errors.append("No event date in project metadata")
    if not metadata.timezone:
        errors.append("No timezone in project metadata")
    else:
        try:
            ZoneInfo(metadata.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            errors.append(f'Unknown timezone "{metadata.timezone}" in project metadata')

    rooms = {room.name for room in project.rooms}
    slots = {slot.name for slot in project.slots}
    for session in project.sessions:
        if session.room and session.room not in rooms:
            errors.append(f'Session #{session.number} is in unknown room "{session.room}"')
        if session.slot and session.slot not in slots:
            errors.append(f'Session #{session.number} is in unknown slot "{session.slot}"')
    return errors


def ensure_valid_project(project: Project) -> None:
    """Raise InvalidProjectError if the snapshot is structurally invalid."""
    errors = validate_project(project)
    if errors:
        raise InvalidProjectError(project.title, errors)
