"""Session validation engine.

validate_session() runs every rule against one session and returns the
findings as ValidationIssue records, in rule order:

    error: format       body does not follow the session template (stops here)
    error: chairs       a chair has no W3C account
    error: conflict     declared conflicting sessions are invalid
    error: scheduling   another session has the same room and slot
    warning: capacity   room is smaller than requested capacity
    warning: duration   slot is shorter than requested duration
    warning: conflict   same slot as a declared conflicting session
    warning: track      same slot as another session in the same track
    check: comments     body has comments for meeting planners
    warning: agenda     no agenda link and the event is less than 2 days away
    warning: minutes    no minutes link and the event is more than 2 days old

Findings are data, never exceptions. Exceptions are reserved for structural
faults: invalid project snapshot and unknown session number.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

from breakouts.chairs import ChairResolver, make_chair_resolver, validate_session_chairs
from breakouts.config import get_config
from breakouts.errors import UnknownSessionError
from breakouts.github import GitHubClient
from breakouts.logging import get_logger
from breakouts.models import Chair, Project, Session, SessionDescription, ValidationIssue
from breakouts.project import ensure_valid_project
from breakouts.severity import Severity
from breakouts.template import SessionTemplate, load_template
from breakouts.w3c import W3CClient

logger = get_logger(__name__)

TRACK_PREFIX = "track: "
MATERIALS_DEADLINE = timedelta(hours=48)


class ValidationContext:
    """Per-run memoization of derived session data.

    Parsing a body and resolving chairs (API calls) is done at most once per
    session and run. Entries are keyed by session number and only written by
    the validation of that session.
    """

    def __init__(
        self,
        template: SessionTemplate | None = None,
        resolve_chairs: ChairResolver | None = None,
    ) -> None:
        self.template = template or load_template()
        self._resolve_chairs = resolve_chairs
        self.descriptions: dict[int, SessionDescription] = {}
        self.format_errors: dict[int, list[str]] = {}
        self.chairs: dict[int, list[Chair]] = {}

    def description_for(self, session: Session) -> SessionDescription | None:
        """Parsed body of the session, or None if the body is malformed."""
        if session.number not in self.descriptions and session.number not in self.format_errors:
            errors = self.template.validate_body(session.body)
            if errors:
                self.format_errors[session.number] = errors
            else:
                self.descriptions[session.number] = self.template.parse_body(session.body)
        return self.descriptions.get(session.number)

    def chair_resolver(self) -> ChairResolver:
        """Resolver given at construction, or the configured API-backed one.

        Built once and shared by every session of the run, so its W3C lookup
        cache is shared too. Call before fanning out to worker threads.
        """
        if self._resolve_chairs is None:
            self._resolve_chairs = default_chair_resolver()
        return self._resolve_chairs

    def chairs_for(self, session: Session, description: SessionDescription) -> list[Chair]:
        if session.number not in self.chairs:
            self.chairs[session.number] = self.chair_resolver()(session, description)
        return self.chairs[session.number]


def default_chair_resolver() -> ChairResolver:
    """Chair resolver backed by the GitHub and W3C APIs, from configuration."""
    config = get_config()
    return make_chair_resolver(
        GitHubClient(config.graphql_token, timeout=config.http_timeout),
        W3CClient(config.w3c_api_key, timeout=config.http_timeout),
        config.chairs_to_w3c_id,
    )


def _issue(session: Session, severity: Severity, issue_type: str, messages: list[str] | None = None) -> ValidationIssue:
    return ValidationIssue(
        session=session.number,
        severity=severity,
        type=issue_type,
        messages=messages or [],
    )


def _conflict_errors(session: Session, description: SessionDescription, project: Project) -> list[str]:
    errors = []
    for number in description.conflicts:
        if number == session.number:
            errors.append("Session cannot conflict with itself")
        elif project.find_session(number) is None:
            errors.append(f"Conflicting session {number} is not in the project")
    return errors


def _scheduling_errors(session: Session, project: Project) -> list[str]:
    return [
        f'Session scheduled in same room ({other.room}) and same slot ({other.slot}) '
        f'as session "{other.title}" ({other.number})'
        for other in project.sessions
        if other.number != session.number and other.room == session.room and other.slot == session.slot
    ]


def _conflict_warnings(session: Session, description: SessionDescription, project: Project) -> list[str]:
    warnings = []
    for number in description.conflicts:
        other = project.find_session(number)
        if other.slot == session.slot:
            warnings.append(
                f'Same slot "{session.slot}" as conflicting session "{other.title}" (#{other.number})'
            )
    return warnings


def _track_warnings(session: Session, project: Project) -> list[str]:
    warnings = []
    tracks = [label for label in session.labels if label.startswith(TRACK_PREFIX)]
    for track in tracks:
        for other in project.sessions:
            if other.number == session.number or track not in other.labels:
                continue
            if other.slot == session.slot:
                warnings.append(
                    f'Same slot "{session.slot}" as session in same track "{track}": '
                    f'"{other.title}" (#{other.number})'
                )
    return warnings


def _check_session(
    session: Session,
    project: Project,
    context: ValidationContext,
    now: datetime,
) -> list[ValidationIssue]:
    issues = []

    description = context.description_for(session)
    if description is None:
        # Other rules need a parsed body
        return [_issue(session, Severity.ERROR, "format", context.format_errors[session.number])]

    chairs_errors = validate_session_chairs(context.chairs_for(session, description))
    if chairs_errors:
        issues.append(_issue(session, Severity.ERROR, "chairs", chairs_errors))

    conflict_errors = _conflict_errors(session, description, project)
    if conflict_errors:
        issues.append(_issue(session, Severity.ERROR, "conflict", conflict_errors))

    if session.scheduled:
        scheduling_errors = _scheduling_errors(session, project)
        if scheduling_errors:
            issues.append(_issue(session, Severity.ERROR, "scheduling", scheduling_errors))

    if session.room and description.capacity:
        room = project.find_room(session.room)
        if room.capacity < description.capacity:
            issues.append(_issue(session, Severity.WARNING, "capacity"))

    if session.slot:
        slot = project.find_slot(session.slot)
        if slot.duration < description.duration:
            issues.append(
                _issue(
                    session,
                    Severity.WARNING,
                    "duration",
                    [
                        f"Session scheduled in a {slot.duration} minutes slot "
                        f"but {description.duration} minutes were requested"
                    ],
                )
            )

    # A broken list of conflicting sessions cannot be trusted for warnings
    if session.slot and description.conflicts and not conflict_errors:
        conflict_warnings = _conflict_warnings(session, description, project)
        if conflict_warnings:
            issues.append(_issue(session, Severity.WARNING, "conflict", conflict_warnings))

    if session.slot:
        track_warnings = _track_warnings(session, project)
        if track_warnings:
            issues.append(_issue(session, Severity.WARNING, "track", track_warnings))

    if description.comments:
        issues.append(_issue(session, Severity.CHECK, "comments", ["Session contains comments"]))

    if session.scheduled:
        event_start = project.metadata.event_start()
        if description.is_material_missing("agenda") and event_start - now < MATERIALS_DEADLINE:
            issues.append(
                _issue(session, Severity.WARNING, "agenda", ["Session needs a link to an agenda"])
            )
        if description.is_material_missing("minutes") and now - event_start > MATERIALS_DEADLINE:
            issues.append(
                _issue(session, Severity.WARNING, "minutes", ["Session needs a link to the minutes"])
            )

    return issues


def validate_session(
    session_number: int,
    project: Project,
    context: ValidationContext | None = None,
    *,
    now: datetime | None = None,
) -> list[ValidationIssue]:
    """Validate one session of the project.

    Args:
        session_number: Issue number of the session.
        project: Project snapshot.
        context: Per-run cache of parsed bodies and chairs. A fresh one is
            created when omitted.
        now: Reference time for the agenda and minutes rules (aware datetime,
            defaults to the current time).

    Raises:
        InvalidProjectError: If the project snapshot is structurally invalid.
        UnknownSessionError: If the session is not in the project.
    """
    ensure_valid_project(project)
    session = project.find_session(session_number)
    if session is None:
        raise UnknownSessionError(session_number, project.title)

    context = context or ValidationContext()
    issues = _check_session(session, project, context, now or datetime.now(timezone.utc))
    logger.info(
        "session_validated",
        session=session_number,
        issues=[issue.label_name for issue in issues],
    )
    return issues


def validate_grid(
    project: Project,
    context: ValidationContext | None = None,
    *,
    now: datetime | None = None,
    max_workers: int = 8,
) -> list[ValidationIssue]:
    """Validate every session of the project.

    Sessions are validated in parallel. Each task only fills the context
    entries of its own session, so session numbers are de-duplicated first.
    The chair resolver is built before the fan-out and shared by all tasks.

    Returns:
        All findings, ordered by session number then rule order.
    """
    ensure_valid_project(project)
    context = context or ValidationContext()
    now = now or datetime.now(timezone.utc)

    numbers = sorted({session.number for session in project.sessions})
    sessions = [project.find_session(number) for number in numbers]
    context.chair_resolver()
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        results = executor.map(lambda s: _check_session(s, project, context, now), sessions)
        issues = [issue for session_issues in results for issue in session_issues]

    logger.info(
        "grid_validated",
        sessions=len(sessions),
        errors=sum(1 for issue in issues if issue.severity == Severity.ERROR),
        warnings=sum(1 for issue in issues if issue.severity == Severity.WARNING),
        checks=sum(1 for issue in issues if issue.severity == Severity.CHECK),
    )
    return issues
