"""
Profile data collection.

Turns a GitHub profile URL into an AnalysisDraft by reading the user, one
page of repositories, a capped sample of READMEs and the public event feed,
strictly in that order and one request at a time.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .domain import (
    AnalysisDraft,
    ApiError,
    LanguageShare,
    ProfileAggregates,
    RepoSnapshot,
    UpstreamUserFetchFailed,
    parse_profile_url,
    transform_repo_response,
)

logger = logging.getLogger(__name__)

REPO_PAGE_SIZE = 100
EVENT_PAGE_SIZE = 100
README_CHECK_LIMIT = 12
FALLBACK_PUSH_WINDOW = 30
TOP_LANGUAGE_LIMIT = 6
PUSH_EVENT_TYPE = "PushEvent"
PARTIAL_ACTIVITY_REASON = (
    "Could not fetch recent activity events; using repo update dates as fallback."
)


def build_aggregates(
    repos: Sequence[RepoSnapshot], recent_commit_days: int
) -> ProfileAggregates:
    """Compute coverage ratios and totals over every fetched repository."""
    repo_count = len(repos)
    readme_lengths = [r.readme_length for r in repos if r.has_readme]
    topics_count = sum(1 for r in repos if r.has_topics)
    license_count = sum(1 for r in repos if r.has_license)
    languages = {r.primary_language for r in repos if r.primary_language}

    def coverage(count: int) -> float:
        return count / repo_count if repo_count else 0.0

    return ProfileAggregates(
        repo_count=repo_count,
        readme_coverage=coverage(len(readme_lengths)),
        avg_readme_len=(
            sum(readme_lengths) / len(readme_lengths) if readme_lengths else 0.0
        ),
        topics_coverage=coverage(topics_count),
        license_coverage=coverage(license_count),
        recent_commit_days=recent_commit_days,
        lang_diversity=len(languages),
        stars_total=sum(r.stars for r in repos),
        forks_total=sum(r.forks for r in repos),
    )


def rank_languages(
    repos: Sequence[RepoSnapshot], limit: int = TOP_LANGUAGE_LIMIT
) -> List[LanguageShare]:
    """Top languages by repository count; ties keep first-seen order."""
    counts: Dict[str, int] = {}
    for repo in repos:
        if repo.primary_language:
            counts[repo.primary_language] = counts.get(repo.primary_language, 0) + 1

    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    repo_count = len(repos)
    return [
        LanguageShare(language=language, share=count / repo_count)
        for language, count in ranked[:limit]
    ]


def count_push_days(events: Sequence[Any]) -> int:
    """Distinct UTC calendar dates carrying push activity."""
    days = set()
    for event in events:
        if not isinstance(event, dict) or event.get("type") != PUSH_EVENT_TYPE:
            continue
        created_at = event.get("created_at")
        if isinstance(created_at, str):
            days.add(created_at[:10])
    return len(days)


def count_fallback_push_days(repos: Sequence[RepoSnapshot]) -> int:
    """Distinct last-push dates among the most recently updated repositories."""
    days = {
        repo.last_push_at[:10]
        for repo in repos[:FALLBACK_PUSH_WINDOW]
        if repo.last_push_at
    }
    return len(days)


class ProfileCollector:
    """
    Collects the public footprint of one GitHub profile.

    Only the user fetch is fatal. The repository list, README fetches and
    event feed degrade to empty or fallback signals when they fail.
    """

    def __init__(self, client):
        self.client = client

    async def collect(self, profile_url: str) -> AnalysisDraft:
        username = parse_profile_url(profile_url)
        logger.info(f"🔍 Collecting GitHub profile: {username}")

        await self._fetch_user(username)
        raw_repos = await self._fetch_repositories(username)
        readme_lengths = await self._fetch_readmes(raw_repos[:README_CHECK_LIMIT])

        repos = [
            transform_repo_response(raw, readme_lengths.get(raw.get("full_name")))
            for raw in raw_repos
        ]
        recent_commit_days, partial_reason = await self._recent_commit_days(
            username, repos
        )

        draft = AnalysisDraft(
            username=username,
            repos=tuple(repos),
            aggregates=build_aggregates(repos, recent_commit_days),
            top_languages=tuple(rank_languages(repos)),
            pinned_count=0,
            is_partial=partial_reason is not None,
            partial_reason=partial_reason,
        )
        logger.info(
            f"📊 Collected {len(repos)} repositories for {username} "
            f"({draft.aggregates.lang_diversity} languages, "
            f"{recent_commit_days} active days)"
        )
        return draft

    async def _fetch_user(self, username: str) -> Dict[str, Any]:
        try:
            return await self.client.get_user(username)
        except ApiError as e:
            if e.status is None:
                raise
            logger.error(f"❌ User fetch failed for {username}: {e.status} {e}")
            raise UpstreamUserFetchFailed(
                e.message or "Unable to fetch GitHub profile", status=e.status
            ) from e

    async def _fetch_repositories(self, username: str) -> List[Dict[str, Any]]:
        try:
            payload = await self.client.list_repos(username, per_page=REPO_PAGE_SIZE)
        except ApiError as e:
            logger.warning(f"⚠️ Repository list unavailable for {username}: {e}")
            return []
        if not isinstance(payload, list):
            logger.warning(f"⚠️ Unexpected repository list payload for {username}")
            return []
        return [repo for repo in payload if isinstance(repo, dict)]

    async def _fetch_readmes(self, raw_repos: Sequence[Dict[str, Any]]) -> Dict[str, int]:
        """README byte length per full name, for repositories that have one."""
        lengths: Dict[str, int] = {}
        for raw in raw_repos:
            full_name = raw.get("full_name")
            if not full_name:
                continue
            try:
                content = await self.client.get_readme(full_name)
            except ApiError as e:
                logger.debug(f"No README for {full_name}: {e}")
                continue
            lengths[full_name] = len(content or b"")
        return lengths

    async def _recent_commit_days(
        self, username: str, repos: Sequence[RepoSnapshot]
    ) -> Tuple[int, Optional[str]]:
        try:
            events = await self.client.list_public_events(
                username, per_page=EVENT_PAGE_SIZE
            )
        except ApiError as e:
            logger.warning(f"⚠️ Event feed unavailable for {username}: {e}")
            events = None

        if isinstance(events, list):
            return count_push_days(events), None

        return count_fallback_push_days(repos), PARTIAL_ACTIVITY_REASON
