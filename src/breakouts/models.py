"""Pydantic models for breakout session data.

All data structures use Pydantic v2 for validation, serialization, and type safety.
Project snapshot records mirror what the GitHub project board exposes; derived
records (SessionDescription, Chair) are computed once per run and cached in a
ValidationContext, never written back onto the snapshot.
"""

import datetime as dt
import re
from enum import Enum
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, model_validator

from breakouts.severity import Severity, format_label_name

# "Salon Ecija (30)" -> label "Salon Ecija", capacity 30
ROOM_NAME_PATTERN = re.compile(r"^(.*) \((\d+)\)$")
DEFAULT_ROOM_CAPACITY = 30

# "9:30 - 10:30"
SLOT_NAME_PATTERN = re.compile(r"^(\d+):(\d+)\s*-\s*(\d+):(\d+)$")

# Material values that mean "not provided yet"
PLACEHOLDER_MATERIALS: frozenset[str] = frozenset({"@", "@@", "@@@", "TBD", "TODO"})


def is_placeholder(value: str | None) -> bool:
    """True if a material value is missing or a placeholder such as "TBD"."""
    return not value or value.strip().upper() in PLACEHOLDER_MATERIALS


class Room(BaseModel):
    """A room option of the project's "Room" field."""

    model_config = ConfigDict(frozen=True)

    name: str  # Exact option name, e.g. "Salon Ecija (30)"
    label: str  # Room name without capacity, e.g. "Salon Ecija"
    capacity: int = Field(default=DEFAULT_ROOM_CAPACITY, ge=0)

    @classmethod
    def from_name(cls, name: str) -> "Room":
        """Build a room from a field option name that may encode capacity."""
        match = ROOM_NAME_PATTERN.match(name)
        if match is None:
            return cls(name=name, label=name, capacity=DEFAULT_ROOM_CAPACITY)
        return cls(name=name, label=match.group(1), capacity=int(match.group(2)))


class Slot(BaseModel):
    """A time slot option of the project's "Slot" field."""

    model_config = ConfigDict(frozen=True)

    name: str  # Exact option name, e.g. "9:30 - 10:30"
    start: str  # "9:30"
    end: str  # "10:30"
    duration: int  # Minutes

    @classmethod
    def from_name(cls, name: str) -> "Slot":
        """Build a slot from a field option name.

        Raises:
            ValueError: If the name does not look like "H:MM - H:MM".
        """
        match = SLOT_NAME_PATTERN.match(name.strip())
        if match is None:
            raise ValueError(f'Slot "{name}" does not follow the "H:MM - H:MM" format')
        start_h, start_m, end_h, end_m = (int(part) for part in match.groups())
        return cls(
            name=name,
            start=f"{match.group(1)}:{match.group(2)}",
            end=f"{match.group(3)}:{match.group(4)}",
            duration=(end_h * 60 + end_m) - (start_h * 60 + start_m),
        )


class Label(BaseModel):
    """A label defined on the sessions repository."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    color: str = ""


class ProjectMetadata(BaseModel):
    """Event-level information read from the project's short description.

    The short description holds one "key: value" pair per line:

        meeting: TPAC 2023
        date: 2023-09-13
        timezone: Europe/Madrid
    """

    meeting: str | None = None
    date: dt.date | None = None
    timezone: str | None = None

    @classmethod
    def from_description(cls, text: str | None) -> "ProjectMetadata":
        values: dict[str, str] = {}
        for line in (text or "").splitlines():
            key, sep, value = line.partition(":")
            if sep and value.strip():
                values[key.strip().lower()] = value.strip()
        return cls.model_validate(
            {key: values[key] for key in ("meeting", "date", "timezone") if key in values}
        )

    def event_start(self) -> dt.datetime:
        """Start of the event day in the event's timezone."""
        return dt.datetime.combine(self.date, dt.time.min, tzinfo=ZoneInfo(self.timezone))


class Author(BaseModel):
    """GitHub identity of an issue author."""

    model_config = ConfigDict(frozen=True)

    database_id: int | None = None
    login: str
    avatar_url: str = ""


class Session(BaseModel):
    """A breakout session, i.e. an issue linked to the project.

    Sessions are read-only for the duration of a run. Room and slot come
    from the project board's custom fields and are None when unassigned.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None  # GraphQL node id, needed for label mutations
    repository: str = ""  # "owner/name"
    number: int
    title: str = ""
    body: str = ""
    labels: list[str] = Field(default_factory=list)
    author: Author | None = None
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None
    last_edited_at: dt.datetime | None = None
    room: str | None = None
    slot: str | None = None

    @property
    def scheduled(self) -> bool:
        return bool(self.room and self.slot)

    @property
    def url(self) -> str:
        return f"https://github.com/{self.repository}/issues/{self.number}"

    def shortname(self, description: "SessionDescription | None" = None) -> str:
        """Short identifier used to derive the session's IRC channel name.

        The declared shortname wins; otherwise it is derived from the title.
        """
        if description is not None and description.shortname:
            return description.shortname
        name = self.title.lower()
        name = re.sub(r"\([^)]*\)", "", name)
        name = re.sub(r"[^a-z0-9\-\s]", "", name)
        return re.sub(r"\s+", "-", name.strip())


class Project(BaseModel):
    """Snapshot of the project board for one run."""

    title: str
    url: str = ""
    rooms: list[Room] = Field(default_factory=list)
    slots: list[Slot] = Field(default_factory=list)
    labels: list[Label] = Field(default_factory=list)
    metadata: ProjectMetadata = Field(default_factory=ProjectMetadata)
    sessions: list[Session] = Field(default_factory=list)

    def find_session(self, number: int) -> Session | None:
        return next((s for s in self.sessions if s.number == number), None)

    def find_room(self, name: str) -> Room | None:
        return next((r for r in self.rooms if r.name == name), None)

    def find_slot(self, name: str) -> Slot | None:
        return next((s for s in self.slots if s.name == name), None)

    def find_label(self, name: str) -> Label | None:
        return next((label for label in self.labels if label.name == name), None)


class Attendance(str, Enum):
    PUBLIC = "public"
    RESTRICTED = "restricted"


class Chair(BaseModel):
    """A session chair.

    Either a GitHub identity (login, plus database_id and avatar_url once
    the account is found) or a bare name for chairs without a GitHub
    account. w3c_id, name and email are set once the W3C account is known.
    """

    login: str | None = None
    database_id: int | None = None
    avatar_url: str | None = None
    name: str | None = None
    w3c_id: int | None = None
    email: str | None = None

    @model_validator(mode="after")
    def _check_identity(self) -> "Chair":
        if not self.login and not self.name:
            raise ValueError("A chair needs a GitHub login or a name")
        return self


class SessionDescription(BaseModel):
    """Structured content of a session issue body."""

    model_config = ConfigDict(frozen=True)

    description: str | None = None
    goal: str | None = None
    chairs: list[Chair] = Field(default_factory=list)  # Additional chairs, author excluded
    shortname: str | None = None
    attendance: Attendance = Attendance.PUBLIC
    duration: int = 60
    capacity: int = 0  # 0 means "don't know"
    conflicts: list[int] = Field(default_factory=list)
    materials: dict[str, str] = Field(default_factory=dict)  # "agenda" -> URL
    comments: str | None = None

    def is_material_missing(self, kind: str) -> bool:
        return is_placeholder(self.materials.get(kind))


class ValidationIssue(BaseModel):
    """A validation finding for a session.

    Never persisted as such: only its label name is, through label
    reconciliation.
    """

    model_config = ConfigDict(frozen=True)

    session: int
    severity: Severity
    type: str
    messages: list[str] = Field(default_factory=list)

    @property
    def label_name(self) -> str:
        return format_label_name(self.severity, self.type)


class LabelChanges(BaseModel):
    """Label ids to add to and remove from a session issue."""

    model_config = ConfigDict(frozen=True)

    to_add: frozenset[str] = frozenset()
    to_remove: frozenset[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_remove


class BodyChange(BaseModel):
    """Previous value of an issue body, as reported in a GitHub issue event."""

    model_config = ConfigDict(populate_by_name=True)

    previous: str | None = Field(default=None, alias="from")


class IssueChanges(BaseModel):
    """The ``github.event.changes`` payload of an "issues: edited" event."""

    body: BodyChange | None = None

    @property
    def previous_body(self) -> str | None:
        return self.body.previous if self.body else None
