"""
Validate a breakout session issue and update its validation labels.

Usage:
    python scripts/update_session_labels.py 15                 # validate #15 and update labels
    python scripts/update_session_labels.py 15 changes.json    # same, with issue event changes
    python scripts/update_session_labels.py 15 --dry-run       # show label changes only

The changes file is a dump of ``github.event.changes`` from an "issues: edited"
event, and looks like:

    {"body": {"from": "[previous version of the issue body]"}}

It is used to avoid adding the "check: comments" label back when organizers
already reviewed (and removed) it and the comments did not change.

Exit codes:
  0 = success
  1 = error (message on stderr)
"""

import argparse
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))
from config import build_context, fetch_project, get_github, init  # noqa: E402

from breakouts.errors import BreakoutsError  # noqa: E402
from breakouts.logging import get_logger  # noqa: E402
from breakouts.models import IssueChanges  # noqa: E402
from breakouts.labels import update_session_labels  # noqa: E402

log = get_logger(__name__)


def load_changes(path: str | None) -> IssueChanges | None:
    """Read the issue event changes file, if one was given."""
    if not path:
        return None
    with open(path, encoding="utf-8") as f:
        return IssueChanges.model_validate(json.load(f))


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Validate a session issue and update its labels"
    )
    parser.add_argument("number", type=int, help="Session issue number")
    parser.add_argument(
        "changes",
        nargs="?",
        default=None,
        help="JSON file with the issue event changes (github.event.changes)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Compute label changes without applying them",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    config = init()

    try:
        github = get_github(config)
        project = fetch_project(config, github)
        report = update_session_labels(
            args.number,
            project,
            github=github,
            context=build_context(config, github),
            changes=load_changes(args.changes),
            dry_run=args.dry_run,
        )
    except BreakoutsError as e:
        log.error("update_session_labels_failed", session=args.number, error=str(e))
        print(f"Something went wrong: {e}", file=sys.stderr)
        return 1

    print(f"Session #{report.session}")
    for issue in report.issues:
        details = ", ".join(issue.messages)
        print(f"  - {issue.label_name}" + (f": {details}" if details else ""))
    print(f"  Has:    {', '.join(report.have) or '-'}")
    print(f"  Wants:  {', '.join(report.want) or '-'}")
    prefix = "Would add" if report.dry_run else "Added"
    print(f"  {prefix}: {', '.join(report.added) or '-'}")
    prefix = "Would remove" if report.dry_run else "Removed"
    print(f"  {prefix}: {', '.join(report.removed) or '-'}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
