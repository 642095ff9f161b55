"""Label reconciliation between validation findings and session issue labels.

Validation labels ("error: *", "warning: *", "check: *") on a session issue
must match the findings of the last validation run exactly. All other labels
("session", "track: *"...) are managed by humans and never touched.

Computing the changes is pure (reconcile_labels). Applying them is two
idempotent GraphQL mutations (apply_label_changes); a partially applied
change is fixed by the next run.
"""

from collections.abc import Iterable

from pydantic import BaseModel, Field

from breakouts.errors import SessionBodyError, UnknownLabelError
from breakouts.logging import get_logger
from breakouts.models import IssueChanges, Label, LabelChanges, Project, Session, ValidationIssue
from breakouts.severity import Severity, format_label_name, is_validation_label
from breakouts.template import SessionTemplate, load_template
from breakouts.validate import ValidationContext, validate_session

logger = get_logger(__name__)

SESSION_LABEL = "session"
COMMENTS_LABEL = format_label_name(Severity.CHECK, "comments")


class LabelSyncReport(BaseModel):
    """Outcome of a label update for one session."""

    session: int
    issues: list[ValidationIssue] = Field(default_factory=list)
    have: list[str] = Field(default_factory=list)
    want: list[str] = Field(default_factory=list)
    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    dry_run: bool = False


def comments_changed(
    body: str,
    previous_body: str | None,
    template: SessionTemplate,
) -> bool:
    """Tell whether the comments section differs from the previous body.

    Anything uncertain counts as a change: no previous body, or a previous
    body that cannot be parsed.
    """
    if previous_body is None:
        logger.debug("comments_check", result="changed", reason="no_previous_body")
        return True
    try:
        previous = template.parse_body(previous_body)
        current = template.parse_body(body)
    except SessionBodyError:
        logger.debug("comments_check", result="changed", reason="unparsable_body")
        return True
    return previous.comments != current.comments


def _label_id(catalog: dict[str, str], name: str) -> str:
    try:
        return catalog[name]
    except KeyError:
        raise UnknownLabelError(name) from None


def reconcile_labels(
    session: Session,
    issues: list[ValidationIssue],
    catalog: Iterable[Label],
    *,
    changes: IssueChanges | None = None,
    template: SessionTemplate | None = None,
) -> LabelChanges:
    """Compute the label ids to add to and remove from a session.

    Args:
        session: The session, with its current labels.
        issues: Findings from validate_session().
        catalog: Labels defined on the repository.
        changes: Body change of the issue event that triggered the run, if any.
        template: Session template used to compare comments sections.

    Raises:
        UnknownLabelError: If a label to add or remove is not in the catalog.
    """
    have = sorted({label for label in session.labels if is_validation_label(label)})
    want = sorted({issue.label_name for issue in issues})

    # "check: comments" is cleared by organizers once they have read the
    # comments. Only flag again when the comments themselves changed.
    if COMMENTS_LABEL in want and COMMENTS_LABEL not in have and changes is not None:
        if not comments_changed(session.body, changes.previous_body, template or load_template()):
            logger.info("comments_label_skipped", session=session.number, reason="comments_unchanged")
            want.remove(COMMENTS_LABEL)

    by_name = {label.name: label.id for label in catalog}
    to_add = [name for name in want if name not in have]
    to_remove = [name for name in have if name not in want and name != SESSION_LABEL]

    result = LabelChanges(
        to_add=frozenset(_label_id(by_name, name) for name in to_add),
        to_remove=frozenset(_label_id(by_name, name) for name in to_remove),
    )
    logger.debug(
        "labels_reconciled",
        session=session.number,
        have=have,
        want=want,
        add=to_add,
        remove=to_remove,
    )
    return result


def apply_label_changes(github, session: Session, changes: LabelChanges) -> None:
    """Apply label changes to the session issue: add first, then remove.

    Empty sets are skipped.
    """
    if changes.to_add:
        github.add_labels(session.id, sorted(changes.to_add))
        logger.info("labels_added", session=session.number, label_ids=sorted(changes.to_add))
    if changes.to_remove:
        github.remove_labels(session.id, sorted(changes.to_remove))
        logger.info("labels_removed", session=session.number, label_ids=sorted(changes.to_remove))


def update_session_labels(
    session_number: int,
    project: Project,
    *,
    github=None,
    context: ValidationContext | None = None,
    changes: IssueChanges | None = None,
    dry_run: bool = False,
    now=None,
) -> LabelSyncReport:
    """Validate a session and update its validation labels accordingly.

    Args:
        session_number: Issue number of the session.
        project: Project snapshot, including the repository label catalog.
        github: Client exposing add_labels/remove_labels. Required unless
            dry_run is set.
        context: Per-run validation cache.
        changes: Body change of the triggering issue event, if any.
        dry_run: Compute the changes without applying them.
        now: Reference time for time-relative validation rules.

    Raises:
        InvalidProjectError, UnknownSessionError, UnknownLabelError
    """
    context = context or ValidationContext()
    issues = validate_session(session_number, project, context, now=now)
    session = project.find_session(session_number)

    label_changes = reconcile_labels(
        session, issues, project.labels, changes=changes, template=context.template
    )
    names_by_id = {label.id: label.name for label in project.labels}
    have = {label for label in session.labels if is_validation_label(label)}
    added = {names_by_id[label_id] for label_id in label_changes.to_add}
    removed = {names_by_id[label_id] for label_id in label_changes.to_remove}
    report = LabelSyncReport(
        session=session_number,
        issues=issues,
        have=sorted(have),
        want=sorted((have - removed) | added),
        added=sorted(added),
        removed=sorted(removed),
        dry_run=dry_run,
    )

    if label_changes.is_empty:
        logger.info("labels_up_to_date", session=session_number)
    elif dry_run:
        logger.info("labels_dry_run", session=session_number, add=report.added, remove=report.removed)
    else:
        if github is None:
            raise ValueError("A GitHub client is needed to apply label changes")
        apply_label_changes(github, session, label_changes)
    return report
