"""Recipe parsing package.

Segments produced by the log segmenter are routed through a
``RecipeDispatcher`` holding an ordered list of handlers; each handler turns
one statement shape into a typed ``ParsedFields`` record.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from tweaker_recipes.app.services.recipe_parsing.dispatcher import (
    MalformedSegmentBatchError,
    RecipeDispatcher,
    load_segments,
    process_segments,
)
from tweaker_recipes.app.services.recipe_parsing.handlers import HandlerParseError, default_handlers
from tweaker_recipes.app.services.recipe_parsing.models import (
    DispatchOutcome,
    ErrorOutcome,
    OutputSpec,
    ParsedFields,
    ParsedOutcome,
    ProcessedSegment,
    ProcessingSummary,
    UnhandledOutcome,
)
from tweaker_recipes.app.services.recipe_parsing.parsing_utils import (
    parse_output_spec,
    parse_relaxed_json,
    split_parameters,
)

logger = logging.getLogger(__name__)


def create_default_dispatcher(logger: Optional[logging.Logger] = None) -> RecipeDispatcher:
    """Dispatcher preloaded with every built-in handler in registry order."""
    return RecipeDispatcher(default_handlers(), logger=logger)


async def process_segment_file(
    file_path: Union[str, Path],
    dispatcher: Optional[RecipeDispatcher] = None,
) -> ProcessingSummary:
    segments = load_segments(file_path)
    dispatcher = dispatcher or create_default_dispatcher()
    results = await process_segments(dispatcher, segments)
    summary = ProcessingSummary.from_results(results)
    logger.info(
        "Processed %d segments from %s: %d parsed, %d errors, %d unhandled",
        summary.total,
        file_path,
        summary.parsed,
        summary.errors,
        summary.unhandled,
    )
    return summary


__all__ = [
    # Dispatch
    "MalformedSegmentBatchError",
    "RecipeDispatcher",
    "create_default_dispatcher",
    "load_segments",
    "process_segment_file",
    "process_segments",
    # Handlers
    "HandlerParseError",
    "default_handlers",
    # Models
    "DispatchOutcome",
    "ErrorOutcome",
    "OutputSpec",
    "ParsedFields",
    "ParsedOutcome",
    "ProcessedSegment",
    "ProcessingSummary",
    "UnhandledOutcome",
    # Parsing utilities
    "parse_output_spec",
    "parse_relaxed_json",
    "split_parameters",
]
