"""Coverage statistics for a dispatched segment batch."""

import logging
from collections import Counter
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from tweaker_recipes.app.core.config import get_settings
from tweaker_recipes.app.services.recipe_parsing.models import ProcessingSummary

UNKNOWN_TYPE = "unknown"


class CoverageSummary(BaseModel):
    total: int = 0
    parsed: int = 0
    errors: int = 0
    unhandled: int = 0
    coverage: float = 0.0


class TypeBreakdown(BaseModel):
    parsed: Dict[str, int] = Field(default_factory=dict)
    unhandled: Dict[str, int] = Field(default_factory=dict)
    errors: Dict[str, int] = Field(default_factory=dict)


class CoverageReport(BaseModel):
    summary: CoverageSummary
    by_type: TypeBreakdown = Field(alias="byType")

    model_config = ConfigDict(populate_by_name=True)


class UnhandledType(BaseModel):
    type: str
    count: int
    priority: str


class UnhandledPreview(BaseModel):
    first_line: str = Field(alias="firstLine")
    start_line: int = Field(alias="startLine")
    end_line: int = Field(alias="endLine")
    recipe_type: Optional[str] = Field(None, alias="recipeType")

    model_config = ConfigDict(populate_by_name=True)


def _priority(count: int) -> str:
    if count >= 100:
        return "HIGH"
    if count >= 20:
        return "MEDIUM"
    return "LOW"


def _percent(part: int, total: int) -> float:
    return round(part / total * 100, 1) if total > 0 else 0.0


def analyze_results(summary: ProcessingSummary) -> CoverageReport:
    """Counts, coverage percentage and per-status counts keyed by recipe type."""
    grouped: Dict[str, Counter] = {"parsed": Counter(), "unhandled": Counter(), "error": Counter()}
    for entry in summary.results:
        grouped[entry.dispatch.status][entry.segment.recipe_type or UNKNOWN_TYPE] += 1

    return CoverageReport(
        summary=CoverageSummary(
            total=summary.total,
            parsed=summary.parsed,
            errors=summary.errors,
            unhandled=summary.unhandled,
            coverage=_percent(summary.parsed, summary.total),
        ),
        by_type=TypeBreakdown(
            parsed=dict(grouped["parsed"]),
            unhandled=dict(grouped["unhandled"]),
            errors=dict(grouped["error"]),
        ),
    )


def get_quick_summary(summary: ProcessingSummary) -> str:
    stats = analyze_results(summary).summary
    return (
        f"Coverage: {stats.coverage}% ({stats.parsed}/{stats.total}) | "
        f"Unhandled: {stats.unhandled} | Errors: {stats.errors}"
    )


def get_top_unhandled_types(summary: ProcessingSummary, limit: int = 3) -> List[UnhandledType]:
    unhandled = Counter(analyze_results(summary).by_type.unhandled)
    return [
        UnhandledType(type=recipe_type, count=count, priority=_priority(count))
        for recipe_type, count in unhandled.most_common(limit)
    ]


def preview_unhandled(summary: ProcessingSummary, limit: int = 5) -> List[UnhandledPreview]:
    previews: List[UnhandledPreview] = []
    for entry in summary.results:
        if len(previews) >= limit:
            break
        if entry.dispatch.status != "unhandled":
            continue
        segment = entry.segment
        previews.append(
            UnhandledPreview(
                first_line=segment.first_line,
                start_line=segment.start_line,
                end_line=segment.end_line,
                recipe_type=segment.recipe_type,
            )
        )
    return previews


def log_detailed_stats(
    summary: ProcessingSummary,
    logger: Optional[logging.Logger] = None,
    show_details: bool = True,
    max_unhandled: Optional[int] = None,
) -> CoverageReport:
    log = logger or logging.getLogger(__name__)
    if max_unhandled is None:
        max_unhandled = get_settings().stats_max_unhandled

    report = analyze_results(summary)
    stats = report.summary
    log.info("Parsing coverage: %s%% (%d/%d)", stats.coverage, stats.parsed, stats.total)
    log.info("Parsed: %d | Errors: %d | Unhandled: %d", stats.parsed, stats.errors, stats.unhandled)

    if show_details and report.by_type.unhandled:
        log.info("Top unhandled types:")
        for entry in get_top_unhandled_types(summary, limit=max_unhandled):
            log.info("  [%s] %s: %d recipes", entry.priority, entry.type, entry.count)
        potential = _percent(stats.parsed + sum(report.by_type.unhandled.values()), stats.total)
        log.info("Potential coverage with all handlers: %s%%", potential)
    return report
