"""Validation and label management for breakout session proposals.

Breakout sessions are GitHub issues linked to a GitHub project board. This
package checks each session against the session template, its chairs'
accounts and the schedule, and keeps the issue's validation labels in sync
with the findings.
"""

from breakouts.labels import reconcile_labels, update_session_labels
from breakouts.models import Project, Session, SessionDescription, ValidationIssue
from breakouts.severity import Severity, format_label_name, parse_label_name
from breakouts.validate import ValidationContext, validate_grid, validate_session

__all__ = [
    "Project",
    "Session",
    "SessionDescription",
    "Severity",
    "ValidationContext",
    "ValidationIssue",
    "format_label_name",
    "parse_label_name",
    "reconcile_labels",
    "update_session_labels",
    "validate_grid",
    "validate_session",
]
