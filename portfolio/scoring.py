"""
Portfolio health scoring.

Converts profile aggregates into five dimension scores, a weighted overall
score and the narrative lists shown next to them. Everything here is pure:
the same aggregates always produce the same ScoreBundle.
"""

import math
from typing import List

from .domain import ProfileAggregates, ScoreBundle

MAX_SUGGESTIONS = 6

OVERALL_WEIGHTS = {
    "documentation": 0.25,
    "code_quality": 0.20,
    "activity": 0.20,
    "project_impact": 0.20,
    "discoverability": 0.15,
}

BASELINE_SUGGESTIONS = (
    "Pick your top 3-5 repositories and add recruiter-focused READMEs "
    "(problem, approach, setup, screenshots, tradeoffs, and results).",
    "Add topics and short descriptions to each showcased repository so people "
    "can understand them at a glance.",
    "Create a simple project story: add a demo link, key features, and a clear "
    "'what I learned' section for each project.",
)


def clamp_score(value: float) -> int:
    """Round half-up and clamp into [0, 100]."""
    return max(0, min(100, int(math.floor(value + 0.5))))


def documentation_score(agg: ProfileAggregates) -> int:
    return clamp_score(
        agg.readme_coverage * 55
        + min(25, agg.avg_readme_len / 80)
        + agg.license_coverage * 10
        + agg.topics_coverage * 10
    )


def code_quality_score(agg: ProfileAggregates) -> int:
    return clamp_score(
        (agg.license_coverage * 15 + agg.topics_coverage * 15)
        + min(40, agg.lang_diversity * 10)
        + min(30, math.log10(1 + agg.repo_count) * 25)
    )


def activity_score(agg: ProfileAggregates) -> int:
    return clamp_score(
        min(70, agg.recent_commit_days / 120 * 70)
        + min(30, math.log10(1 + agg.repo_count) * 18)
    )


def project_impact_score(agg: ProfileAggregates) -> int:
    return clamp_score(
        min(70, math.log10(1 + agg.stars_total) * 35)
        + min(30, math.log10(1 + agg.forks_total) * 30)
    )


def discoverability_score(agg: ProfileAggregates) -> int:
    return clamp_score(
        agg.topics_coverage * 45
        + agg.readme_coverage * 35
        + min(20, agg.repo_count * 2)
    )


def _strengths(agg: ProfileAggregates) -> List[str]:
    strengths = []
    if agg.readme_coverage >= 0.7:
        strengths.append(
            "Most repositories have a README, which helps recruiters quickly "
            "understand your work."
        )
    if agg.topics_coverage >= 0.5:
        strengths.append(
            "Many repositories use topics, improving search/discoverability."
        )
    if agg.recent_commit_days >= 60:
        strengths.append(
            "Recent and consistent activity signals momentum and learning "
            "consistency."
        )
    if agg.stars_total >= 20:
        strengths.append(
            "Your projects show external interest (stars), which helps with "
            "credibility."
        )
    return strengths


def _red_flags(agg: ProfileAggregates) -> List[str]:
    red_flags = []
    if agg.readme_coverage < 0.4:
        red_flags.append(
            "Many repositories are missing READMEs, which makes it hard for "
            "recruiters to evaluate impact."
        )
    if agg.recent_commit_days < 10:
        red_flags.append("Low recent activity can look like an inactive portfolio.")
    if agg.topics_coverage < 0.25:
        red_flags.append(
            "Few repos have topics, reducing discoverability and clarity."
        )
    return red_flags


def _suggestions(agg: ProfileAggregates) -> List[str]:
    suggestions = list(BASELINE_SUGGESTIONS)
    if agg.license_coverage < 0.5:
        suggestions.append(
            "Add a LICENSE file to public repos you want recruiters to review; "
            "it signals professionalism."
        )
    if agg.lang_diversity <= 1:
        suggestions.append(
            "Show breadth by pinning projects in different languages/frameworks "
            "(even small ones) to demonstrate range."
        )
    if agg.stars_total == 0:
        suggestions.append(
            "Improve shareability: add screenshots, a short demo video, and clear "
            "usage instructions to encourage stars."
        )
    return suggestions[:MAX_SUGGESTIONS]


def score(agg: ProfileAggregates) -> ScoreBundle:
    """
    Score a profile from its aggregates.

    Each dimension is rounded and clamped on its own; the overall score is
    the weighted sum of the rounded dimensions, rounded and clamped again.
    """
    dimensions = {
        "documentation": documentation_score(agg),
        "code_quality": code_quality_score(agg),
        "activity": activity_score(agg),
        "project_impact": project_impact_score(agg),
        "discoverability": discoverability_score(agg),
    }
    overall = clamp_score(
        sum(dimensions[name] * weight for name, weight in OVERALL_WEIGHTS.items())
    )

    return ScoreBundle(
        overall=overall,
        strengths=tuple(_strengths(agg)),
        red_flags=tuple(_red_flags(agg)),
        suggestions=tuple(_suggestions(agg)),
        **dimensions,
    )
