"""
pytest configuration for portfolio analyzer tests.

This file configures:
1. Test markers for different test types
2. Fixtures for GitHub REST payloads
3. A fake GitHub client for collector and API tests
"""

import pytest
from unittest.mock import AsyncMock

from portfolio.domain import NotFoundError


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


def make_repo_payload(index: int, **overrides):
    """A GitHub REST repository payload, as returned by /users/{user}/repos."""
    payload = {
        "name": f"repo{index}",
        "full_name": f"octocat/repo{index}",
        "html_url": f"https://github.com/octocat/repo{index}",
        "description": f"Repository number {index}",
        "language": "Python",
        "stargazers_count": 0,
        "forks_count": 0,
        "open_issues_count": 0,
        "topics": [],
        "license": None,
        "pushed_at": f"2024-03-{index % 28 + 1:02d}T12:00:00Z",
        "updated_at": "2024-04-01T00:00:00Z",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def mock_user_response():
    """Fixture providing a GitHub user payload."""
    return {"login": "octocat", "id": 583231, "public_repos": 3}


@pytest.fixture
def mock_repo_list():
    """Fixture providing three repositories with mixed signals."""
    return [
        make_repo_payload(
            1,
            language="Python",
            stargazers_count=12,
            forks_count=3,
            topics=["cli", "python"],
            license={"key": "mit", "spdx_id": "MIT"},
        ),
        make_repo_payload(
            2,
            language="Go",
            stargazers_count=8,
            forks_count=1,
            license={"key": "other", "spdx_id": "NOASSERTION"},
        ),
        make_repo_payload(3, language=None, pushed_at=None),
    ]


@pytest.fixture
def mock_events():
    """Fixture providing public events with pushes on two distinct days."""
    return [
        {"type": "PushEvent", "created_at": "2024-03-02T08:00:00Z"},
        {"type": "PushEvent", "created_at": "2024-03-02T19:30:00Z"},
        {"type": "WatchEvent", "created_at": "2024-03-03T10:00:00Z"},
        {"type": "PushEvent", "created_at": "2024-03-05T23:59:59Z"},
    ]


@pytest.fixture
def fake_github_client(mock_user_response, mock_repo_list, mock_events):
    """
    Fixture providing an AsyncMock standing in for GitHubClient.

    repo1 has a 120 byte README, every other README fetch is a 404.
    """
    readmes = {"octocat/repo1": b"#" * 120}

    async def get_readme(full_name):
        if full_name in readmes:
            return readmes[full_name]
        raise NotFoundError("Not Found", status=404)

    client = AsyncMock()
    client.__aenter__.return_value = client
    client.__aexit__.return_value = False
    client.get_user.return_value = mock_user_response
    client.list_repos.return_value = mock_repo_list
    client.get_readme.side_effect = get_readme
    client.list_public_events.return_value = mock_events
    return client
