"""
Tests for the analysis service and the command line entry point.

These tests verify that:
1. Drafts and score bundles map onto the stored record
2. The service persists exactly one analysis per successful run
3. The CLI reports results and failures with the right exit codes
"""

import json
import pytest
from unittest.mock import AsyncMock, patch

from portfolio.collector import PARTIAL_ACTIVITY_REASON
from portfolio.domain import (
    AnalysisDraft,
    LanguageShare,
    ProfileAggregates,
    UpstreamUnavailableError,
    UpstreamUserFetchFailed,
    transform_repo_response,
)
from portfolio.main import parse_args, run
from portfolio.repository import InMemoryAnalysisRepository
from portfolio.scoring import score
from portfolio.service import AnalysisService, build_analysis

from conftest import make_repo_payload


class TestBuildAnalysis:
    """Test mapping a draft and its scores onto the stored record."""

    def test_maps_every_field(self):
        repos = (transform_repo_response(make_repo_payload(1), readme_length=64),)
        aggregates = ProfileAggregates(
            repo_count=1, readme_coverage=1.0, avg_readme_len=64, lang_diversity=1
        )
        draft = AnalysisDraft(
            username="octocat",
            repos=repos,
            aggregates=aggregates,
            top_languages=(LanguageShare("Python", 1.0),),
            is_partial=True,
            partial_reason=PARTIAL_ACTIVITY_REASON,
        )
        bundle = score(aggregates)

        record = build_analysis("https://github.com/octocat", draft, bundle)

        assert record.username == "octocat"
        assert record.score_overall == bundle.overall
        assert record.score_code_quality == bundle.code_quality
        assert record.repo_count == 1
        assert record.pinned_count == 0
        assert record.top_languages[0].language == "Python"
        assert record.suggestions == list(bundle.suggestions)
        assert record.repos[0].full_name == "octocat/repo1"
        assert record.repos[0].readme_length == 64
        assert record.is_partial is True
        assert record.partial_reason == PARTIAL_ACTIVITY_REASON


class TestAnalysisService:
    """Test the collect, score and store workflow."""

    @pytest.mark.asyncio
    async def test_analyze_stores_one_analysis(self, fake_github_client):
        repository = InMemoryAnalysisRepository()
        service = AnalysisService(repository, lambda: fake_github_client)

        created = await service.analyze("https://github.com/octocat")

        assert await repository.list() == [created]
        assert await service.repos(created.id) == created.repos
        fake_github_client.__aexit__.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_analysis_stores_nothing(self, fake_github_client):
        repository = InMemoryAnalysisRepository()
        fake_github_client.get_user.side_effect = UpstreamUserFetchFailed(
            "Not Found", status=404
        )
        service = AnalysisService(repository, lambda: fake_github_client)

        with pytest.raises(UpstreamUserFetchFailed):
            await service.analyze("https://github.com/nobody")

        assert await repository.list() == []

    @pytest.mark.asyncio
    async def test_repos_of_missing_analysis(self):
        service = AnalysisService(InMemoryAnalysisRepository())
        assert await service.repos("missing") is None


class TestCommandLine:
    """Test argument parsing and exit codes."""

    def test_parse_analyze(self):
        args = parse_args(["analyze", "https://github.com/octocat", "--store"])

        assert args.command == "analyze"
        assert args.profile_url == "https://github.com/octocat"
        assert args.store is True

    def test_parse_serve(self):
        args = parse_args(["serve", "--port", "9000"])

        assert args.command == "serve"
        assert args.port == 9000

    def test_invalid_url_exit_code(self):
        assert run(["analyze", "https://example.com/octocat"]) == 2

    def test_prints_json(self, capsys):
        result = {"username": "octocat", "scoreOverall": 48}
        with patch("portfolio.main.analyze", new_callable=AsyncMock) as mock_analyze:
            mock_analyze.return_value = result

            assert run(["analyze", "https://github.com/octocat"]) == 0

        mock_analyze.assert_awaited_once_with("https://github.com/octocat", store=False)
        assert json.loads(capsys.readouterr().out) == result

    def test_upstream_failure_exit_code(self):
        with patch("portfolio.main.analyze", new_callable=AsyncMock) as mock_analyze:
            mock_analyze.side_effect = UpstreamUserFetchFailed("blocked", status=403)

            assert run(["analyze", "https://github.com/octocat"]) == 1

    def test_transport_failure_exit_code(self):
        with patch("portfolio.main.analyze", new_callable=AsyncMock) as mock_analyze:
            mock_analyze.side_effect = UpstreamUnavailableError("Request to /users/octocat failed")

            assert run(["analyze", "https://github.com/octocat"]) == 1
