"""
Data models for the portfolio analyzer API and storage.

These Pydantic models define the structure of an analysis as it is stored
in the database and returned over HTTP. Field names are snake_case in
Python and camelCase on the wire.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime
from dateutil import parser as date_parser
from typing import List, Optional


class RepoSnapshotRecord(BaseModel):
    """Stored form of a RepoSnapshot, embedded in its analysis."""

    name: str
    full_name: str = Field(..., alias="fullName")
    url: str
    description: Optional[str] = None
    primary_language: Optional[str] = Field(None, alias="primaryLanguage")
    stars: int = Field(..., ge=0)
    forks: int = Field(..., ge=0)
    open_issues: int = Field(..., alias="openIssues", ge=0)
    has_readme: bool = Field(..., alias="hasReadme")
    readme_length: int = Field(..., alias="readmeLength", ge=0)
    has_license: bool = Field(..., alias="hasLicense")
    has_topics: bool = Field(..., alias="hasTopics")
    topics_count: int = Field(..., alias="topicsCount", ge=0)
    last_push_at: str = Field(..., alias="lastPushAt")

    class Config:
        populate_by_name = True
        frozen = True


class TopLanguage(BaseModel):
    language: str
    share: float = Field(..., ge=0, le=1)

    class Config:
        frozen = True


class AnalysisCreate(BaseModel):
    """
    An analysis ready to be stored.

    Everything except the identifier and creation timestamp, which the
    repository assigns.
    """

    profile_url: str = Field(..., alias="profileUrl")
    username: str
    score_overall: int = Field(..., alias="scoreOverall", ge=0, le=100)
    score_documentation: int = Field(..., alias="scoreDocumentation", ge=0, le=100)
    score_code_quality: int = Field(..., alias="scoreCodeQuality", ge=0, le=100)
    score_activity: int = Field(..., alias="scoreActivity", ge=0, le=100)
    score_project_impact: int = Field(..., alias="scoreProjectImpact", ge=0, le=100)
    score_discoverability: int = Field(
        ..., alias="scoreDiscoverability", ge=0, le=100
    )
    repo_count: int = Field(..., alias="repoCount", ge=0)
    pinned_count: int = Field(0, alias="pinnedCount", ge=0)
    top_languages: List[TopLanguage] = Field(
        default_factory=list, alias="topLanguages", max_length=6
    )
    recent_commit_days: int = Field(..., alias="recentCommitDays", ge=0)
    strengths: List[str] = Field(default_factory=list)
    red_flags: List[str] = Field(default_factory=list, alias="redFlags")
    suggestions: List[str] = Field(default_factory=list, max_length=6)
    repos: List[RepoSnapshotRecord] = Field(default_factory=list)
    is_partial: bool = Field(False, alias="isPartial")
    partial_reason: Optional[str] = Field(None, alias="partialReason")

    @model_validator(mode="after")
    def check_partial_reason(self):
        """A partial analysis always explains itself, a full one never does."""
        if self.is_partial != (self.partial_reason is not None):
            raise ValueError("partialReason must be set exactly when isPartial is true")
        return self

    class Config:
        populate_by_name = True
        frozen = True


class Analysis(AnalysisCreate):
    """A stored, immutable analysis run."""

    id: str
    created_at: datetime = Field(..., alias="createdAt")

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v):
        """Database UUIDs arrive as uuid.UUID objects."""
        return str(v) if v is not None else v

    @field_validator("created_at", mode="before")
    @classmethod
    def parse_datetime(cls, v):
        """Parse ISO-8601 timestamps read back from JSON."""
        if isinstance(v, str):
            return date_parser.isoparse(v)
        return v


class CreateAnalysisRequest(BaseModel):
    profile_url: str = Field(..., alias="profileUrl", min_length=1)

    class Config:
        populate_by_name = True


class ErrorMessage(BaseModel):
    message: str


class ValidationErrorMessage(ErrorMessage):
    field: Optional[str] = None
