"""End-to-end pipeline: log text in, normalized recipes and coverage out."""

import json
import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence, Union

from pydantic import BaseModel, Field

from tweaker_recipes.app.core.config import Settings, get_settings
from tweaker_recipes.app.schemas.recipe import NormalizedRecipe, RecipeStats
from tweaker_recipes.app.schemas.segment import Segment
from tweaker_recipes.app.services.log_segmenter import segment_log_content, segment_log_file
from tweaker_recipes.app.services.recipe_normalizer import normalize_results, recipe_stats
from tweaker_recipes.app.services.recipe_parsing import (
    ProcessingSummary,
    RecipeDispatcher,
    create_default_dispatcher,
    process_segment_file,
    process_segments,
)

logger = logging.getLogger(__name__)


class RecipeLogResult(BaseModel):
    recipes: List[NormalizedRecipe] = Field(default_factory=list)
    summary: ProcessingSummary
    stats: RecipeStats


async def _run_pipeline(
    segments: Sequence[Segment],
    dispatcher: Optional[RecipeDispatcher],
    settings: Optional[Settings],
) -> RecipeLogResult:
    settings = settings or get_settings()
    dispatcher = dispatcher or create_default_dispatcher()
    logger.info("Segmented %d potential recipe statements", len(segments))

    results = await process_segments(
        dispatcher,
        segments,
        concurrency=settings.dispatch_concurrency,
        timeout=settings.dispatch_timeout_seconds,
    )
    summary = ProcessingSummary.from_results(results)

    for entry in results:
        segment = entry.segment
        if entry.dispatch.status == "error":
            logger.warning(
                "Failed to parse segment at lines %s-%s: %s",
                segment.start_line,
                segment.end_line,
                entry.dispatch.error,
            )
        elif entry.dispatch.status == "unhandled":
            logger.debug("Unhandled segment at lines %s-%s", segment.start_line, segment.end_line)

    recipes = normalize_results(results, settings.unsupported_format_policy)
    logger.info("Normalized %d recipes from %d segments", len(recipes), summary.total)
    return RecipeLogResult(recipes=recipes, summary=summary, stats=recipe_stats(recipes))


async def parse_recipe_log(
    log_content: str,
    dispatcher: Optional[RecipeDispatcher] = None,
    settings: Optional[Settings] = None,
) -> RecipeLogResult:
    """Segment, dispatch and normalize an in-memory ``crafttweaker.log``."""
    logger.info("Processing log of %d characters", len(log_content) if isinstance(log_content, str) else 0)
    segments = segment_log_content(log_content)
    return await _run_pipeline(segments, dispatcher, settings)


async def parse_recipe_log_file(
    log_path: Union[str, os.PathLike],
    dispatcher: Optional[RecipeDispatcher] = None,
    settings: Optional[Settings] = None,
) -> RecipeLogResult:
    segments = segment_log_file(log_path)
    return await _run_pipeline(segments, dispatcher, settings)


def write_summary(summary: ProcessingSummary, output_path: Union[str, os.PathLike]) -> Path:
    """Dump a processing summary as camelCase JSON, creating parent directories."""
    target = Path(output_path).resolve()
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = summary.model_dump(mode="json", by_alias=True)
    target.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.info("Wrote processing summary to %s", target)
    return target


__all__ = [
    "RecipeLogResult",
    "create_default_dispatcher",
    "parse_recipe_log",
    "parse_recipe_log_file",
    "process_segment_file",
    "write_summary",
]
