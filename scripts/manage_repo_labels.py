"""
Align the labels of a breakout sessions repository with the labels the
validation job needs.

Adds missing labels, deletes labels that are not needed (but preserves
"track: xxx" labels), and updates labels whose description or color changed.
Run once when the repository is created, and each time REPO_LABELS changes.

Usage:
    python scripts/manage_repo_labels.py w3c tpac2023-breakouts             # dry-run (default)
    python scripts/manage_repo_labels.py w3c tpac2023-breakouts --execute   # apply changes
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))
from config import get_github, init  # noqa: E402

from breakouts.errors import BreakoutsError  # noqa: E402
from breakouts.logging import get_logger  # noqa: E402
from breakouts.repo_labels import (  # noqa: E402
    apply_repo_label_diff,
    compute_repo_label_diff,
    format_repo_label_diff,
)

log = get_logger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage breakout repository labels")
    parser.add_argument("owner", help="Repository owner")
    parser.add_argument("repo", help="Repository name")
    parser.add_argument(
        "--execute",
        action="store_true",
        help="Create, delete and update labels (default is a dry run)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    config = init()
    mode = "execute" if args.execute else "dry-run"

    print("=" * 60)
    print(f"REPOSITORY LABELS {args.owner}/{args.repo} [{mode.upper()}]")
    print("=" * 60)

    try:
        github = get_github(config)
        repository_id, labels = github.fetch_repository_labels(args.owner, args.repo)
        diff = compute_repo_label_diff(labels)
        print(format_repo_label_diff(diff))

        if diff.is_empty:
            print("\nLabels are up to date.")
            return 0
        if not args.execute:
            print("\nRun with --execute to apply changes.")
            return 0

        result = apply_repo_label_diff(github, repository_id, diff)
    except BreakoutsError as e:
        log.error("manage_repo_labels_failed", error=str(e))
        print(f"Something went wrong: {e}", file=sys.stderr)
        return 1

    print(
        f"\nCreated: {result['created']}  |  "
        f"Deleted: {result['deleted']}  |  "
        f"Updated: {result['updated']}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
