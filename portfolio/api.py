"""FastAPI application exposing the analysis service."""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Callable, List, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import __version__
from .client import GitHubClient
from .config import settings
from .domain import ApiError, InvalidProfileUrl, UpstreamUserFetchFailed
from .models import (
    Analysis,
    CreateAnalysisRequest,
    ErrorMessage,
    RepoSnapshotRecord,
    ValidationErrorMessage,
)
from .repository import (
    DEFAULT_LIST_LIMIT,
    MAX_LIST_LIMIT,
    AnalysisRepository,
    PostgresAnalysisRepository,
)
from .service import AnalysisService

logger = logging.getLogger(__name__)

SERVICE_NAME = "GitHub Portfolio Analyzer API"
NOT_FOUND_MESSAGE = "Analysis not found"
RATE_LIMITED_MESSAGE = (
    "GitHub temporarily blocked requests (rate limit). "
    "Please wait a bit and try again."
)
UNAVAILABLE_MESSAGE = "Unable to fetch GitHub data right now. Please try again."

router = APIRouter(prefix="/analyses", tags=["Analyses"])


def get_service(request: Request) -> AnalysisService:
    return request.app.state.service


def _not_found() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"message": NOT_FOUND_MESSAGE},
    )


def _unavailable(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"message": message},
    )


@router.post(
    "",
    response_model=Analysis,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ValidationErrorMessage}, 503: {"model": ErrorMessage}},
)
async def create_analysis(
    payload: CreateAnalysisRequest,
    service: AnalysisService = Depends(get_service),
):
    """Analyze a GitHub profile and store the result."""
    try:
        return await service.analyze(payload.profile_url)
    except InvalidProfileUrl as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": e.message, "field": e.field},
        )
    except UpstreamUserFetchFailed as e:
        return _unavailable(
            RATE_LIMITED_MESSAGE if e.is_rate_limit else UNAVAILABLE_MESSAGE
        )
    except ApiError as e:
        logger.warning(f"⚠️ GitHub unavailable for {payload.profile_url}: {e}")
        return _unavailable(UNAVAILABLE_MESSAGE)
    except Exception:
        logger.exception(f"❌ Analysis of {payload.profile_url} failed")
        return _unavailable(UNAVAILABLE_MESSAGE)


@router.get("", response_model=List[Analysis])
async def list_analyses(
    limit: int = Query(DEFAULT_LIST_LIMIT, ge=1, le=MAX_LIST_LIMIT),
    service: AnalysisService = Depends(get_service),
):
    """Most recent analyses first."""
    return await service.list(limit)


@router.get(
    "/{analysis_id}",
    response_model=Analysis,
    responses={404: {"model": ErrorMessage}},
)
async def get_analysis(
    analysis_id: str,
    service: AnalysisService = Depends(get_service),
):
    analysis = await service.get(analysis_id)
    if analysis is None:
        return _not_found()
    return analysis


@router.get(
    "/{analysis_id}/repos",
    response_model=List[RepoSnapshotRecord],
    responses={404: {"model": ErrorMessage}},
)
async def get_analysis_repos(
    analysis_id: str,
    service: AnalysisService = Depends(get_service),
):
    """Repository snapshots captured by one analysis."""
    repos = await service.repos(analysis_id)
    if repos is None:
        return _not_found()
    return repos


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report the first invalid field as ``{message, field}`` with a 400."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = [
        str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "message": first.get("msg", "Invalid input"),
            "field": ".".join(location) or None,
        },
    )


def create_app(
    repository: Optional[AnalysisRepository] = None,
    client_factory: Callable[[], GitHubClient] = GitHubClient,
    seed_profile_url: Optional[str] = settings.seed_profile_url,
) -> FastAPI:
    """
    Build the application.

    Without an explicit repository a PostgreSQL one is opened on startup and
    closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = repository
        if store is None:
            store = PostgresAnalysisRepository(settings.database_url)
            await store.init()
        app.state.service = AnalysisService(store, client_factory)

        seed_task = None
        if seed_profile_url:
            seed_task = asyncio.create_task(app.state.service.seed(seed_profile_url))
        try:
            yield
        finally:
            if seed_task is not None and not seed_task.done():
                seed_task.cancel()
            if repository is None:
                await store.close()

    app = FastAPI(
        title=SERVICE_NAME,
        description="Scores the public GitHub footprint of a profile",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.include_router(router)

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Simple API health check."""
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": SERVICE_NAME,
        }

    return app


app = create_app()
