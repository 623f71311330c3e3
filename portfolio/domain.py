"""
Domain models for the portfolio analyzer.

This module provides clean domain objects that isolate the collection and
scoring logic from the GitHub REST payloads, implementing an
anti-corruption layer.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Dict, Any

from pydantic import AnyUrl, TypeAdapter, ValidationError

GITHUB_HOST = "github.com"
UNRECOGNIZED_LICENSE = "NOASSERTION"

_url_adapter = TypeAdapter(AnyUrl)


@dataclass(frozen=True)
class RepoSnapshot:
    """Immutable snapshot of one analyzed repository."""

    name: str
    full_name: str
    url: str
    description: Optional[str] = None
    primary_language: Optional[str] = None
    stars: int = 0
    forks: int = 0
    open_issues: int = 0
    has_readme: bool = False
    readme_length: int = 0
    has_license: bool = False
    has_topics: bool = False
    topics_count: int = 0
    last_push_at: str = ""

    def __post_init__(self):
        """Validate snapshot data after initialization."""
        if min(self.stars, self.forks, self.open_issues, self.topics_count) < 0:
            raise ValueError("Repository counts cannot be negative")
        if self.readme_length < 0:
            raise ValueError("README length cannot be negative")
        if not self.has_readme and self.readme_length != 0:
            raise ValueError("README length must be 0 when no README exists")


@dataclass(frozen=True)
class LanguageShare:
    """Fraction of analyzed repositories whose primary language matches."""

    language: str
    share: float

    def __post_init__(self):
        if not 0.0 <= self.share <= 1.0:
            raise ValueError("Language share must be within [0, 1]")


@dataclass(frozen=True)
class ProfileAggregates:
    """Aggregate statistics consumed by the scoring engine."""

    repo_count: int = 0
    readme_coverage: float = 0.0
    avg_readme_len: float = 0.0
    topics_coverage: float = 0.0
    license_coverage: float = 0.0
    recent_commit_days: int = 0
    lang_diversity: int = 0
    stars_total: int = 0
    forks_total: int = 0


@dataclass(frozen=True)
class AnalysisDraft:
    """Everything the collector learned about a profile, before scoring."""

    username: str
    repos: Tuple[RepoSnapshot, ...] = ()
    aggregates: ProfileAggregates = field(default_factory=ProfileAggregates)
    top_languages: Tuple[LanguageShare, ...] = ()
    pinned_count: int = 0
    is_partial: bool = False
    partial_reason: Optional[str] = None

    def __post_init__(self):
        if self.is_partial != (self.partial_reason is not None):
            raise ValueError("partial_reason must be set exactly when is_partial")


@dataclass(frozen=True)
class ScoreBundle:
    """Immutable result of scoring a profile."""

    documentation: int
    code_quality: int
    activity: int
    project_impact: int
    discoverability: int
    overall: int
    strengths: Tuple[str, ...] = ()
    red_flags: Tuple[str, ...] = ()
    suggestions: Tuple[str, ...] = ()


class InvalidProfileUrl(ValueError):
    """Raised when a profile URL is malformed or not a github.com URL."""

    def __init__(self, message: str, field: str = "profileUrl"):
        super().__init__(message)
        self.message = message
        self.field = field


class ApiError(Exception):
    """Base exception for upstream API errors."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class RateLimitError(ApiError):
    """Exception raised when GitHub API rate limit is exceeded."""

    pass


class NotFoundError(ApiError):
    """Exception raised when a GitHub resource does not exist."""

    pass


class UpstreamUnavailableError(ApiError):
    """Exception raised when GitHub could not be reached at all."""

    pass


class UpstreamUserFetchFailed(ApiError):
    """Exception raised when the user resource cannot be fetched."""

    def __init__(self, message: str, status: int):
        super().__init__(message, status=status)
        self.is_rate_limit = status == 403


def parse_profile_url(profile_url: str) -> str:
    """
    Validate a GitHub profile URL and return its username.

    The username is the first path segment; the host must be exactly
    github.com.
    """
    try:
        url = _url_adapter.validate_python(profile_url)
    except ValidationError as e:
        raise InvalidProfileUrl("Please enter a valid URL") from e

    if url.host != GITHUB_HOST:
        raise InvalidProfileUrl("Please enter a github.com profile URL")

    segments = [part for part in (url.path or "").split("/") if part]
    if not segments:
        raise InvalidProfileUrl("Invalid GitHub profile URL")
    return segments[0]


def _count(value: Any) -> int:
    """Coerce an upstream counter to a non-negative int."""
    if isinstance(value, bool):
        return 0
    try:
        number = int(value)
    except (TypeError, ValueError):
        return 0
    return max(0, number)


def has_recognized_license(api_response: Dict[str, Any]) -> bool:
    license_info = api_response.get("license")
    if not isinstance(license_info, dict):
        return False
    spdx_id = license_info.get("spdx_id")
    return bool(spdx_id) and spdx_id != UNRECOGNIZED_LICENSE


def transform_repo_response(
    api_response: Dict[str, Any], readme_length: Optional[int] = None
) -> RepoSnapshot:
    """
    Transform a GitHub REST repository payload into a RepoSnapshot.

    ``readme_length`` is the fetched README size, or None when the repository
    has no confirmed README.
    """
    topics = api_response.get("topics")
    topic_names = (
        [t for t in topics if isinstance(t, str)] if isinstance(topics, list) else []
    )
    description = api_response.get("description")
    language = api_response.get("language")

    return RepoSnapshot(
        name=str(api_response.get("name") or ""),
        full_name=str(api_response.get("full_name") or ""),
        url=str(api_response.get("html_url") or ""),
        description=description if isinstance(description, str) else None,
        primary_language=str(language) if language else None,
        stars=_count(api_response.get("stargazers_count")),
        forks=_count(api_response.get("forks_count")),
        open_issues=_count(api_response.get("open_issues_count")),
        has_readme=readme_length is not None,
        readme_length=readme_length or 0,
        has_license=has_recognized_license(api_response),
        has_topics=bool(topic_names),
        topics_count=len(topic_names),
        last_push_at=str(
            api_response.get("pushed_at") or api_response.get("updated_at") or ""
        ),
    )
