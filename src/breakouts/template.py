"""Session issue body parsing, driven by the issue form template.

Session issues are created from a GitHub issue form (``session.yml``). GitHub
renders each form field as a ``### Field label`` section in the issue body, with
``_No response_`` for fields left empty:

    ### Session description

    Let's talk about privacy.

    ### Additional session chairs (Optional)

    _No response_

The template defines which sections exist, whether they are required and, for
dropdowns, the allowed values. Section specific rules (what a valid list of
conflicting sessions looks like, how a capacity option maps to a number...)
live in one handler class per section id in SECTION_HANDLERS.
"""

import re
from enum import Enum
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import AnyUrl, BaseModel, ConfigDict, TypeAdapter, ValidationError

from breakouts.errors import PermanentError, SessionBodyError
from breakouts.logging import get_logger
from breakouts.models import Attendance, Chair, SessionDescription, is_placeholder

log = get_logger(__name__)

OPTIONAL_SUFFIX = " (Optional)"
NO_RESPONSE = "No response"

_URL_ADAPTER = TypeAdapter(AnyUrl)


class SectionId(str, Enum):
    DESCRIPTION = "description"
    GOAL = "goal"
    CHAIRS = "chairs"
    SHORTNAME = "shortname"
    ATTENDANCE = "attendance"
    DURATION = "duration"
    CONFLICTS = "conflicts"
    CAPACITY = "capacity"
    MATERIALS = "materials"
    COMMENTS = "comments"


class SectionSpec(BaseModel):
    """A form field of the issue template."""

    model_config = ConfigDict(frozen=True)

    id: SectionId
    title: str  # Form label, without the " (Optional)" suffix
    kind: str  # "textarea", "input" or "dropdown"
    required: bool = False
    options: tuple[str, ...] = ()


class Section(BaseModel):
    """A ``### Title`` section found in an issue body."""

    title: str
    value: str | None = None


def _split_list(value: str) -> list[str]:
    return [token for token in re.split(r"[\s,]+", value) if token]


class SectionHandler:
    """Validate and parse the raw value of one section.

    The default contract comes from the form field type: dropdown values
    must be one of the options, input values must fit on one line.
    """

    def __init__(self, spec: SectionSpec) -> None:
        self.spec = spec

    def validate(self, value: str) -> bool:
        if self.spec.kind == "dropdown":
            return value in self.spec.options
        if self.spec.kind == "input":
            return "\n" not in value
        return True

    def parse(self, value: str) -> Any:
        return value


class TextSection(SectionHandler):
    pass


class ChairsSection(SectionHandler):
    """GitHub identities ("@login", space or comma separated), or one name per line."""

    LOGIN_PATTERN = re.compile(r"^@[A-Za-z0-9][A-Za-z0-9\-]+$")

    def validate(self, value: str) -> bool:
        for line in self._lines(value):
            if line.startswith("@"):
                if not all(self.LOGIN_PATTERN.match(nick) for nick in _split_list(line)):
                    return False
            elif "@" in line:
                return False
        return True

    def parse(self, value: str) -> list[Chair]:
        chairs = []
        for line in self._lines(value):
            if line.startswith("@"):
                chairs.extend(Chair(login=nick[1:]) for nick in _split_list(line))
            else:
                chairs.append(Chair(name=line))
        return chairs

    @staticmethod
    def _lines(value: str) -> list[str]:
        return [line.strip() for line in value.splitlines() if line.strip()]


class ShortnameSection(SectionHandler):
    PATTERN = re.compile(r"^#?[A-Za-z0-9\-_]+$")

    def validate(self, value: str) -> bool:
        return bool(self.PATTERN.match(value))

    def parse(self, value: str) -> str:
        return value.lstrip("#")


class AttendanceSection(SectionHandler):
    RESTRICTED = "Restricted to TPAC registrants"

    def parse(self, value: str) -> Attendance:
        return Attendance.RESTRICTED if value == self.RESTRICTED else Attendance.PUBLIC


class DurationSection(SectionHandler):
    def parse(self, value: str) -> int:
        return 30 if value == "30 minutes" else 60


class ConflictsSection(SectionHandler):
    """Issue numbers prefixed with "#", space or comma separated."""

    PATTERN = re.compile(r"^#\d+$")

    def validate(self, value: str) -> bool:
        return all(self.PATTERN.match(issue) for issue in _split_list(value))

    def parse(self, value: str) -> list[int]:
        return [int(issue[1:]) for issue in _split_list(value)]


class CapacitySection(SectionHandler):
    CAPACITIES = {
        "Don't know (Default)": 0,
        "Small (fewer than 20 people)": 15,
        "Large (20-45 people)": 30,
        "Really quite large (more than 45 people)": 50,
    }

    def parse(self, value: str) -> int:
        return self.CAPACITIES.get(value, 0)


class MaterialsSection(SectionHandler):
    """One "- Kind: link" line per material, link may be a placeholder."""

    LINE_PATTERN = re.compile(r"^-\s+(Agenda|Slides|Minutes|Calendar):\s*(.*)$")

    def validate(self, value: str) -> bool:
        for line in self._lines(value):
            match = self.LINE_PATTERN.match(line)
            if match is None:
                return False
            link = match.group(2).strip()
            if is_placeholder(link):
                continue
            try:
                _URL_ADAPTER.validate_python(link)
            except ValidationError:
                return False
        return True

    def parse(self, value: str) -> dict[str, str]:
        materials = {}
        for line in self._lines(value):
            match = self.LINE_PATTERN.match(line)
            if match:
                materials[match.group(1).lower()] = match.group(2).strip()
        return materials

    @staticmethod
    def _lines(value: str) -> list[str]:
        return [line.strip() for line in value.splitlines() if line.strip()]


SECTION_HANDLERS: dict[SectionId, type[SectionHandler]] = {
    SectionId.DESCRIPTION: TextSection,
    SectionId.GOAL: TextSection,
    SectionId.CHAIRS: ChairsSection,
    SectionId.SHORTNAME: ShortnameSection,
    SectionId.ATTENDANCE: AttendanceSection,
    SectionId.DURATION: DurationSection,
    SectionId.CONFLICTS: ConflictsSection,
    SectionId.CAPACITY: CapacitySection,
    SectionId.MATERIALS: MaterialsSection,
    SectionId.COMMENTS: TextSection,
}


def split_into_sections(body: str) -> list[Section]:
    """Split an issue body into its ``### Title`` sections."""
    sections = []
    for chunk in re.split(r"^### ", body or "", flags=re.MULTILINE):
        if not chunk.strip():
            continue
        lines = chunk.splitlines()
        title = lines[0].strip()
        if title.endswith(OPTIONAL_SUFFIX):
            title = title[: -len(OPTIONAL_SUFFIX)]
        value = "\n".join(lines[1:]).strip()
        if re.sub(r"^_(.*)_$", r"\1", value) == NO_RESPONSE:
            value = ""
        sections.append(Section(title=title, value=value or None))
    return sections


class SessionTemplate:
    """Session body validator and parser built from an issue form template."""

    def __init__(self, specs: list[SectionSpec]) -> None:
        self.handlers: list[SectionHandler] = [SECTION_HANDLERS[spec.id](spec) for spec in specs]
        self._by_title = {handler.spec.title: handler for handler in self.handlers}

    @classmethod
    def from_dict(cls, template: dict) -> "SessionTemplate":
        """Build from a parsed issue form.

        Raises:
            PermanentError: If the form has a field id with no known handler.
        """
        specs = []
        for field in template.get("body", []):
            if not field.get("id"):
                continue
            try:
                section_id = SectionId(field["id"])
            except ValueError:
                raise PermanentError(f'Unknown section id "{field["id"]}" in session template')
            attributes = field.get("attributes", {})
            title = attributes.get("label", "")
            if title.endswith(OPTIONAL_SUFFIX):
                title = title[: -len(OPTIONAL_SUFFIX)]
            specs.append(
                SectionSpec(
                    id=section_id,
                    title=title,
                    kind=field.get("type", "textarea"),
                    required=bool((field.get("validations") or {}).get("required")),
                    options=tuple(attributes.get("options") or ()),
                )
            )
        return cls(specs)

    @classmethod
    def from_file(cls, path: str | Path) -> "SessionTemplate":
        with open(path, encoding="utf-8") as f:
            template = yaml.safe_load(f)
        log.debug("session_template_loaded", path=str(path))
        return cls.from_dict(template)

    def find_handler(self, title: str) -> SectionHandler | None:
        return self._by_title.get(title)

    def validate_body(self, body: str) -> list[str]:
        """Return the list of format errors in a session body (empty if fine)."""
        errors = []
        seen = set()
        for section in split_into_sections(body):
            handler = self.find_handler(section.title)
            if handler is None:
                errors.append(f'Unexpected section "{section.title}"')
                continue
            seen.add(handler.spec.id)
            if not section.value:
                if handler.spec.required:
                    errors.append(f'Unexpected empty section "{section.title}"')
                continue
            if not handler.validate(section.value):
                errors.append(f'Invalid content in section "{section.title}"')
        for handler in self.handlers:
            if handler.spec.required and handler.spec.id not in seen:
                errors.append(f'Missing required section "{handler.spec.title}"')
        return errors

    def parse_body(self, body: str) -> SessionDescription:
        """Parse a session body into a SessionDescription.

        Raises:
            SessionBodyError: If the body does not follow the template.
        """
        errors = self.validate_body(body)
        if errors:
            raise SessionBodyError(errors)
        values = {}
        for section in split_into_sections(body):
            if section.value:
                handler = self.find_handler(section.title)
                values[handler.spec.id.value] = handler.parse(section.value)
        return SessionDescription(**values)


@lru_cache(maxsize=None)
def default_template() -> SessionTemplate:
    """The session template bundled with the package."""
    path = resources.files("breakouts") / "templates" / "session.yml"
    return SessionTemplate.from_dict(yaml.safe_load(path.read_text(encoding="utf-8")))


def load_template(path: str | Path | None = None) -> SessionTemplate:
    """Load a session template, defaulting to the bundled one."""
    if path is None:
        return default_template()
    return SessionTemplate.from_file(path)
