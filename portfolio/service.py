"""
Analysis orchestration.

Runs the collector and the scoring engine for one profile URL and hands
the combined result to the repository, which assigns its id and timestamp.
"""

import logging
from typing import Callable, List, Optional

from .client import GitHubClient
from .collector import ProfileCollector
from .domain import AnalysisDraft, ScoreBundle
from .models import Analysis, AnalysisCreate, RepoSnapshotRecord
from .repository import DEFAULT_LIST_LIMIT, AnalysisRepository
from .scoring import score

logger = logging.getLogger(__name__)


def build_analysis(
    profile_url: str, draft: AnalysisDraft, bundle: ScoreBundle
) -> AnalysisCreate:
    """Combine a collected draft and its scores into a storable analysis."""
    agg = draft.aggregates
    return AnalysisCreate(
        profile_url=profile_url,
        username=draft.username,
        score_overall=bundle.overall,
        score_documentation=bundle.documentation,
        score_code_quality=bundle.code_quality,
        score_activity=bundle.activity,
        score_project_impact=bundle.project_impact,
        score_discoverability=bundle.discoverability,
        repo_count=agg.repo_count,
        pinned_count=draft.pinned_count,
        top_languages=[
            {"language": lang.language, "share": lang.share}
            for lang in draft.top_languages
        ],
        recent_commit_days=agg.recent_commit_days,
        strengths=list(bundle.strengths),
        red_flags=list(bundle.red_flags),
        suggestions=list(bundle.suggestions),
        repos=[
            RepoSnapshotRecord(
                name=repo.name,
                full_name=repo.full_name,
                url=repo.url,
                description=repo.description,
                primary_language=repo.primary_language,
                stars=repo.stars,
                forks=repo.forks,
                open_issues=repo.open_issues,
                has_readme=repo.has_readme,
                readme_length=repo.readme_length,
                has_license=repo.has_license,
                has_topics=repo.has_topics,
                topics_count=repo.topics_count,
                last_push_at=repo.last_push_at,
            )
            for repo in draft.repos
        ],
        is_partial=draft.is_partial,
        partial_reason=draft.partial_reason,
    )


class AnalysisService:
    """
    Entry point for analysis requests.

    Each call to analyze() opens its own GitHub client, so concurrent
    requests share nothing but the repository.
    """

    def __init__(
        self,
        repository: AnalysisRepository,
        client_factory: Callable[[], GitHubClient] = GitHubClient,
    ):
        self.repository = repository
        self.client_factory = client_factory

    async def analyze(self, profile_url: str) -> Analysis:
        async with self.client_factory() as client:
            draft = await ProfileCollector(client).collect(profile_url)

        bundle = score(draft.aggregates)
        created = await self.repository.create(
            build_analysis(profile_url, draft, bundle)
        )
        logger.info(
            f"✅ Stored analysis {created.id} for {created.username}: "
            f"overall {created.score_overall}"
            + (" (partial)" if created.is_partial else "")
        )
        return created

    async def get(self, analysis_id: str) -> Optional[Analysis]:
        return await self.repository.get(analysis_id)

    async def list(self, limit: int = DEFAULT_LIST_LIMIT) -> List[Analysis]:
        return await self.repository.list(limit)

    async def repos(self, analysis_id: str) -> Optional[List[RepoSnapshotRecord]]:
        """The analysis' repository snapshots, or None if it does not exist."""
        analysis = await self.repository.get(analysis_id)
        if analysis is None:
            return None
        return list(analysis.repos)

    async def seed(self, profile_url: str) -> Optional[Analysis]:
        """Best-effort first analysis for an empty store."""
        if await self.repository.list(1):
            return None
        try:
            return await self.analyze(profile_url)
        except Exception as e:
            logger.warning(f"⚠️ Skipping seed analysis of {profile_url}: {e}")
            return None
