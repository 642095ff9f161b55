"""Breakout tooling configuration loaded from environment variables.

In GitHub Actions the values come from repository secrets and variables.
For local runs, create a .env file in the project root.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class BreakoutsConfig(BaseSettings):
    """Configuration loaded from environment variables with sensible defaults."""

    # GitHub settings
    graphql_token: str = Field(
        default="",
        description="GitHub personal access token (classic) with project and public_repo scopes",
    )
    project_owner: str = Field(
        default="",
        description="Login of the organization or user that owns the breakouts project",
    )
    project_number: int = Field(
        default=0,
        description="Number of the GitHub project (ProjectV2) that holds the sessions",
    )
    project_owner_type: str = Field(
        default="organization",
        description="Owner type of the project: organization or user",
    )

    # W3C settings
    w3c_api_key: str = Field(
        default="",
        description="W3C API key used to resolve GitHub accounts to W3C accounts",
    )
    chairs_to_w3c_id: dict[str, int] = Field(
        default_factory=dict,
        description=(
            "JSON mapping of GitHub login or chair name to W3C account id, for "
            "chairs whose accounts are not connected"
        ),
    )

    # Session template (defaults to the template bundled with the package)
    session_template: str | None = Field(
        default=None,
        description="Path to the session issue form YAML template",
    )

    # HTTP
    http_timeout: float = Field(
        default=30.0,
        description="Timeout in seconds for GitHub and W3C API requests",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for CI)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    github_run_id: str | None = Field(
        default=None,
        description="Workflow run id, set by GitHub Actions and added to log entries",
    )

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton pattern
_config: BreakoutsConfig | None = None


def get_config() -> BreakoutsConfig:
    """Get the configuration singleton.

    Returns:
        BreakoutsConfig: Configuration instance
    """
    global _config
    if _config is None:
        _config = BreakoutsConfig()
    return _config
