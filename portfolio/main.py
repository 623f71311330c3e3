import argparse
import asyncio
import json
import logging

from .config import settings
from .domain import ApiError, InvalidProfileUrl, UpstreamUserFetchFailed
from .repository import InMemoryAnalysisRepository, PostgresAnalysisRepository
from .service import AnalysisService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Score the public GitHub portfolio of a profile")
    sub = p.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Analyze one profile URL and print the result")
    analyze.add_argument("profile_url", help="e.g. https://github.com/octocat")
    analyze.add_argument(
        "--store",
        action="store_true",
        help="Persist the analysis in the configured database",
    )

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=settings.host)
    serve.add_argument("--port", type=int, default=settings.port)
    return p.parse_args(argv)


async def analyze(profile_url: str, store: bool = False) -> dict:
    """
    Run one analysis and return its JSON form.

    Without ``store`` the result only lives in memory for this process.
    """
    if not store:
        service = AnalysisService(InMemoryAnalysisRepository())
        analysis = await service.analyze(profile_url)
        return analysis.model_dump(mode="json", by_alias=True)

    repository = PostgresAnalysisRepository(settings.database_url)
    await repository.init()
    try:
        analysis = await AnalysisService(repository).analyze(profile_url)
        return analysis.model_dump(mode="json", by_alias=True)
    finally:
        await repository.close()


def run(argv=None) -> int:
    args = parse_args(argv)

    if args.command == "serve":
        import uvicorn

        logger.info(f"🚀 Serving API on {args.host}:{args.port}")
        uvicorn.run("portfolio.api:app", host=args.host, port=args.port)
        return 0

    try:
        result = asyncio.run(analyze(args.profile_url, store=args.store))
    except InvalidProfileUrl as e:
        logger.error(f"❌ {e.field}: {e.message}")
        return 2
    except UpstreamUserFetchFailed as e:
        reason = "rate limited" if e.is_rate_limit else f"status {e.status}"
        logger.error(f"❌ Could not fetch GitHub profile ({reason}): {e.message}")
        return 1
    except ApiError as e:
        logger.error(f"❌ Unable to fetch GitHub data right now: {e.message}")
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(run())
