"""
Validate all breakout sessions of the project and report findings.

Usage:
    python scripts/validate_grid.py           # human-readable report
    python scripts/validate_grid.py --json    # JSON list of findings on stdout

Exit codes:
  0 = no session has an error (warnings and checks are fine)
  1 = at least one session has an error, or the run failed
"""

import argparse
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))
from config import build_context, fetch_project, get_github, init  # noqa: E402

from breakouts.errors import BreakoutsError  # noqa: E402
from breakouts.logging import get_logger  # noqa: E402
from breakouts.models import ValidationIssue  # noqa: E402
from breakouts.severity import Severity  # noqa: E402
from breakouts.validate import validate_grid  # noqa: E402

log = get_logger(__name__)


def format_report(issues: list[ValidationIssue]) -> str:
    """Group findings by severity, most severe first."""
    lines = []
    for severity in sorted(Severity, key=lambda s: s.rank, reverse=True):
        found = [issue for issue in issues if issue.severity == severity]
        lines.append(f"{severity.value.upper()} ({len(found)})")
        for issue in found:
            lines.append(f"  #{issue.session} {issue.label_name}")
            for message in issue.messages:
                lines.append(f"      {message}")
    return "\n".join(lines)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Validate all breakout sessions")
    parser.add_argument("--json", action="store_true", help="Output findings as JSON")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    config = init()

    try:
        github = get_github(config)
        project = fetch_project(config, github)
        issues = validate_grid(project, build_context(config, github))
    except BreakoutsError as e:
        log.error("validate_grid_failed", error=str(e))
        print(f"Something went wrong: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps([issue.model_dump(mode="json") for issue in issues], indent=2))
    else:
        print(format_report(issues))

    return 1 if any(issue.severity == Severity.ERROR for issue in issues) else 0


if __name__ == "__main__":
    sys.exit(main())
