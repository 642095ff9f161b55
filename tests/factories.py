"""Builders for session bodies, sessions and project snapshots used in tests."""

from datetime import date, datetime, timezone
from unittest.mock import Mock

import requests

from breakouts.models import Author, Chair, Label, Project, ProjectMetadata, Room, Session, Slot
from breakouts.repo_labels import REPO_LABELS

# Far enough from the event that no agenda or minutes warning fires
NOW = datetime(2023, 8, 1, 12, 0, tzinfo=timezone.utc)

SECTION_TITLES = {
    "description": "Session description",
    "goal": "Session goal",
    "chairs": "Additional session chairs (Optional)",
    "shortname": "IRC channel (Optional)",
    "attendance": "Who can attend",
    "duration": "Estimated duration",
    "conflicts": "Other sessions where we should avoid scheduling conflicts (Optional)",
    "capacity": "Estimated number of in-person attendees",
    "materials": "Meeting materials",
    "comments": "Comments for meeting planners (Optional)",
}

DEFAULT_SECTIONS = {
    "description": "Let's talk about privacy on the web.",
    "goal": "Agree on next steps for the privacy principles.",
    "chairs": None,
    "shortname": None,
    "attendance": "Anyone may attend (Default)",
    "duration": "60 minutes (Default)",
    "conflicts": None,
    "capacity": "Don't know (Default)",
    "materials": "- Agenda: @@\n- Slides: @@\n- Minutes: @@",
    "comments": None,
}

ROOMS = ["Salon Ecija (30)", "Salon Sevilla (15)", "Patio"]
SLOTS = ["9:30 - 10:30", "11:00 - 12:00", "14:00 - 14:30"]
TRACK_LABELS = ["track: privacy", "track: media"]


def make_body(omit=(), **sections) -> str:
    """Render an issue body the way GitHub renders the session issue form.

    Sections default to DEFAULT_SECTIONS; None renders as "_No response_" and
    section ids listed in ``omit`` are left out entirely.
    """
    values = {**DEFAULT_SECTIONS, **sections}
    chunks = []
    for section_id, title in SECTION_TITLES.items():
        if section_id in omit:
            continue
        value = values[section_id]
        chunks.append(f"### {title}\n\n{value if value else '_No response_'}")
    return "\n\n".join(chunks) + "\n"


def make_session(
    number: int,
    *,
    body: str | None = None,
    room: str | None = None,
    slot: str | None = None,
    labels: list[str] | None = None,
    title: str | None = None,
) -> Session:
    return Session(
        id=f"I_{number}",
        repository="w3c/tpac2023-breakouts",
        number=number,
        title=title or f"Session {number}",
        body=make_body() if body is None else body,
        labels=["session"] if labels is None else labels,
        author=Author(database_id=number * 100, login=f"chair{number}"),
        room=room,
        slot=slot,
    )


def make_catalog() -> list[Label]:
    names = [definition.name for definition in REPO_LABELS] + TRACK_LABELS
    return [Label(id=f"L_{name}", name=name) for name in names]


def make_project(*sessions: Session, metadata: ProjectMetadata | None = None) -> Project:
    if metadata is None:
        metadata = ProjectMetadata(meeting="TPAC 2023", date=date(2023, 9, 13), timezone="Europe/Madrid")
    return Project(
        title="TPAC 2023 breakout sessions",
        url="https://github.com/orgs/w3c/projects/42",
        rooms=[Room.from_name(name) for name in ROOMS],
        slots=[Slot.from_name(name) for name in SLOTS],
        labels=make_catalog(),
        metadata=metadata,
        sessions=list(sessions),
    )


def resolved_chairs(session: Session, description) -> list[Chair]:
    """Chair resolver where every chair has a W3C account."""
    chairs = [
        Chair(
            login=session.author.login,
            database_id=session.author.database_id,
            w3c_id=1000 + session.number,
        )
    ]
    for chair in description.chairs:
        if chair.login:
            chairs.append(chair.model_copy(update={"database_id": 1, "w3c_id": 1}))
        else:
            chairs.append(chair.model_copy(update={"w3c_id": 2}))
    return chairs


def make_response(json_data=None, status_code=200):
    """Mock requests.Response with a JSON payload."""
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.json.return_value = json_data if json_data is not None else {}
    return response
