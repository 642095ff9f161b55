"""Severity taxonomy and the validation label wire format.

A validation finding is persisted on GitHub only as a label named
``"{severity}: {type}"`` (e.g. ``"error: format"``). This module is the single
place that builds and reads those names.
"""

from enum import Enum


class Severity(str, Enum):
    """Severity of a validation finding.

    ERROR blocks downstream automation (scheduling, calendar), WARNING is
    informational, CHECK asks organizers for a manual review.
    """

    ERROR = "error"
    WARNING = "warning"
    CHECK = "check"

    @property
    def rank(self) -> int:
        """Display rank, higher is more severe."""
        return _RANKS[self]


_RANKS = {Severity.ERROR: 3, Severity.WARNING: 2, Severity.CHECK: 1}

LABEL_SEPARATOR = ": "

VALIDATION_LABEL_PREFIXES: tuple[str, ...] = tuple(
    f"{severity.value}{LABEL_SEPARATOR}" for severity in Severity
)


def format_label_name(severity: Severity | str, issue_type: str) -> str:
    """Return the label name for a finding, e.g. ``"warning: track"``."""
    return f"{Severity(severity).value}{LABEL_SEPARATOR}{issue_type}"


def parse_label_name(name: str) -> tuple[Severity, str] | None:
    """Split a validation label name into its severity and type.

    Returns None for labels that are not validation labels (``"session"``,
    ``"track: privacy"``...).
    """
    prefix, sep, issue_type = name.partition(LABEL_SEPARATOR)
    if not sep or not issue_type:
        return None
    try:
        return Severity(prefix), issue_type
    except ValueError:
        return None


def is_validation_label(name: str) -> bool:
    """True if the label reflects a validation finding."""
    return name.startswith(VALIDATION_LABEL_PREFIXES)
