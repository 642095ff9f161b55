from unittest.mock import Mock, patch

import pytest
import requests
from factories import resolved_chairs

from breakouts.template import default_template
from breakouts.validate import ValidationContext


@pytest.fixture
def template():
    return default_template()


@pytest.fixture
def context():
    """Validation context that never calls the GitHub or W3C APIs."""
    return ValidationContext(resolve_chairs=resolved_chairs)


@pytest.fixture
def no_sleep():
    """Skip tenacity backoff waits."""
    with patch("time.sleep") as sleep:
        yield sleep


@pytest.fixture
def http_session():
    session = Mock(spec=requests.Session)
    session.headers = {}
    return session
