"""
Shared setup for breakout session scripts: environment, logging and API clients.
"""

import os
import sys

from dotenv import load_dotenv

load_dotenv()

# Add src/ to path so scripts run from a checkout without installing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from breakouts.chairs import make_chair_resolver  # noqa: E402
from breakouts.config import BreakoutsConfig, get_config  # noqa: E402
from breakouts.github import GitHubClient  # noqa: E402
from breakouts.logging import setup_logging  # noqa: E402
from breakouts.models import Project  # noqa: E402
from breakouts.template import load_template  # noqa: E402
from breakouts.validate import ValidationContext  # noqa: E402
from breakouts.w3c import W3CClient  # noqa: E402


def init() -> BreakoutsConfig:
    """Load configuration and configure logging."""
    config = get_config()
    setup_logging(
        json_output=config.log_json,
        log_level=config.log_level,
        run_id=config.github_run_id,
    )
    return config


def get_github(config: BreakoutsConfig) -> GitHubClient:
    return GitHubClient(config.graphql_token, timeout=config.http_timeout)


def fetch_project(config: BreakoutsConfig, github: GitHubClient) -> Project:
    """Retrieve the project configured through PROJECT_OWNER / PROJECT_NUMBER."""
    if not config.project_owner or not config.project_number:
        print("PROJECT_OWNER and PROJECT_NUMBER must be set", file=sys.stderr)
        sys.exit(1)
    return github.fetch_project(
        config.project_owner,
        config.project_number,
        owner_type=config.project_owner_type,
    )


def build_context(config: BreakoutsConfig, github: GitHubClient) -> ValidationContext:
    """Validation context that resolves chairs through the GitHub and W3C APIs."""
    w3c = W3CClient(config.w3c_api_key, timeout=config.http_timeout)
    return ValidationContext(
        template=load_template(config.session_template),
        resolve_chairs=make_chair_resolver(github, w3c, config.chairs_to_w3c_id),
    )
