"""Repository label catalog provisioning.

The validation engine can only flag a session with labels that exist on the
repository. REPO_LABELS lists them; compute_repo_label_diff() compares it with
the labels actually defined and apply_repo_label_diff() creates, updates and
deletes labels accordingly. "track: *" labels are created by organizers and
are never deleted.
"""

from pydantic import BaseModel, ConfigDict

from breakouts.logging import get_logger
from breakouts.models import Label

logger = get_logger(__name__)

TRACK_PREFIX = "track: "

ERROR_COLOR = "B60205"
WARNING_COLOR = "FBCA04"
CHECK_COLOR = "1D76DB"


class LabelDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    color: str


REPO_LABELS: tuple[LabelDefinition, ...] = (
    LabelDefinition(
        name="check: comments",
        description="Proposal has comments for meeting planners. Remove label once they have been checked.",
        color=CHECK_COLOR,
    ),
    LabelDefinition(
        name="check: instructions",
        description="Proposal has instructions for meeting planners. Remove label once they have been checked.",
        color=CHECK_COLOR,
    ),
    LabelDefinition(
        name="error: chair conflict",
        description="Session scheduled at the same time as another session with an overlapping chair",
        color=ERROR_COLOR,
    ),
    LabelDefinition(
        name="error: chairs",
        description="Cannot retrieve the W3C account of a session chair",
        color=ERROR_COLOR,
    ),
    LabelDefinition(
        name="error: conflict",
        description="Conflicting issue is not a breakout session proposal",
        color=ERROR_COLOR,
    ),
    LabelDefinition(
        name="error: format",
        description="Issue cannot be parsed by automatic job due to some formatting issue",
        color=ERROR_COLOR,
    ),
    LabelDefinition(
        name="error: scheduling",
        description="Session scheduled in same room and at the same time as another session",
        color=ERROR_COLOR,
    ),
    LabelDefinition(
        name="session",
        description="Breakout session proposal",
        color="C2E0C6",
    ),
    LabelDefinition(
        name="warning: agenda",
        description="No agenda link whereas session is around the corner (or past already)",
        color=WARNING_COLOR,
    ),
    LabelDefinition(
        name="warning: capacity",
        description="Session room is smaller than requested capacity",
        color=WARNING_COLOR,
    ),
    LabelDefinition(
        name="warning: conflict",
        description="Session scheduled at the same time as another session identified as conflicting",
        color=WARNING_COLOR,
    ),
    LabelDefinition(
        name="warning: duration",
        description="Session scheduled during a 30mn slot but 60mn was preferred",
        color=WARNING_COLOR,
    ),
    LabelDefinition(
        name="warning: minutes",
        description="No link to the minutes whereas session is past",
        color=WARNING_COLOR,
    ),
    LabelDefinition(
        name="warning: minutes origin",
        description="Minutes are not stored on www.w3.org",
        color=WARNING_COLOR,
    ),
    LabelDefinition(
        name="warning: track",
        description="Session scheduled at the same time as another session in the same track",
        color=WARNING_COLOR,
    ),
)


class RepoLabelDiff(BaseModel):
    """Label operations needed to align a repository with the definitions."""

    to_create: list[LabelDefinition] = []
    to_delete: list[Label] = []
    to_update: list[tuple[Label, LabelDefinition]] = []

    @property
    def is_empty(self) -> bool:
        return not (self.to_create or self.to_delete or self.to_update)


def compute_repo_label_diff(
    existing: list[Label],
    definitions: tuple[LabelDefinition, ...] = REPO_LABELS,
) -> RepoLabelDiff:
    """Compare repository labels with label definitions.

    Identity key: label name. A label whose description or color differs
    (case-insensitive color) is updated in place.
    """
    wanted = {definition.name: definition for definition in definitions}
    existing_by_name = {label.name: label for label in existing}

    to_create = [d for name, d in sorted(wanted.items()) if name not in existing_by_name]
    to_delete = [
        label
        for name, label in sorted(existing_by_name.items())
        if name not in wanted and not name.startswith(TRACK_PREFIX)
    ]
    to_update = [
        (label, wanted[name])
        for name, label in sorted(existing_by_name.items())
        if name in wanted
        and (
            label.description != wanted[name].description
            or label.color.upper() != wanted[name].color.upper()
        )
    ]
    return RepoLabelDiff(to_create=to_create, to_delete=to_delete, to_update=to_update)


def apply_repo_label_diff(github, repository_id: str, diff: RepoLabelDiff) -> dict:
    """Execute GraphQL mutations for a repository label diff.

    Returns:
        {"created": int, "deleted": int, "updated": int}
    """
    created = 0
    deleted = 0
    updated = 0

    for definition in diff.to_create:
        github.create_label(repository_id, definition.name, definition.color, definition.description)
        logger.info("label_created", name=definition.name)
        created += 1

    for label in diff.to_delete:
        github.delete_label(label.id)
        logger.info("label_deleted", name=label.name)
        deleted += 1

    for label, definition in diff.to_update:
        github.update_label(label.id, definition.name, definition.color, definition.description)
        logger.info("label_updated", name=label.name)
        updated += 1

    return {"created": created, "deleted": deleted, "updated": updated}


def format_repo_label_diff(diff: RepoLabelDiff) -> str:
    """Format a diff for human-readable display."""
    lines = [
        f"  Create: {len(diff.to_create)}  |  "
        f"Delete: {len(diff.to_delete)}  |  "
        f"Update: {len(diff.to_update)}"
    ]
    for definition in diff.to_create:
        lines.append(f"    + {definition.name}")
    for label in diff.to_delete:
        lines.append(f"    - {label.name}")
    for label, definition in diff.to_update:
        lines.append(f"    ~ {label.name} ({label.color} -> {definition.color})")
    return "\n".join(lines)
