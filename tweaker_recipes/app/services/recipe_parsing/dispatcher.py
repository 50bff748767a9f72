"""Route segments to the first compatible recipe handler.

Handlers are tried in registration order and the first one reporting a
positive ``can_parse`` score owns the segment, even if a later handler would
score higher. Registration order is therefore part of the parsing contract:
specific handlers go before generic ones and new handlers are appended.
"""

import asyncio
import inspect
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from pydantic import ValidationError

from tweaker_recipes.app.schemas.segment import Segment
from tweaker_recipes.app.services.recipe_parsing.handlers.base import RecipeHandler
from tweaker_recipes.app.services.recipe_parsing.models import (
    DispatchOutcome,
    ErrorOutcome,
    ParsedOutcome,
    ProcessedSegment,
    UnhandledOutcome,
)

logger = logging.getLogger(__name__)

UNKNOWN_HANDLER = "unknown-handler"

ContextFactory = Callable[[Segment], Optional[Dict[str, Any]]]


class MalformedSegmentBatchError(ValueError):
    """Raised when a persisted segment batch has no usable ``segments`` array."""
    pass


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _handler_name(handler: Any) -> str:
    return getattr(handler, "name", None) or UNKNOWN_HANDLER


class RecipeDispatcher:
    def __init__(
        self,
        handlers: Optional[Sequence[RecipeHandler]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.handlers: List[RecipeHandler] = []
        self.logger = logger or logging.getLogger(__name__)
        for handler in handlers or []:
            self.register_handler(handler)

    def register_handler(self, handler: RecipeHandler) -> None:
        if handler is None or not callable(getattr(handler, "can_parse", None)) or not callable(
            getattr(handler, "parse", None)
        ):
            raise TypeError("Handler must implement can_parse() and parse()")
        self.handlers.append(handler)

    @property
    def handler_names(self) -> List[str]:
        return [_handler_name(handler) for handler in self.handlers]

    async def _score(self, handler: RecipeHandler, segment: Segment, context: Dict[str, Any]) -> float:
        try:
            score = await _resolve(handler.can_parse(segment, context))
            return float(score or 0)
        except Exception as exc:  # noqa: BLE001
            self.logger.warning("[%s] failed during can_parse: %s", _handler_name(handler), exc)
            return 0.0

    async def dispatch(self, segment: Segment, context: Optional[Dict[str, Any]] = None) -> DispatchOutcome:
        context = dict(context or {})
        for handler in self.handlers:
            score = await self._score(handler, segment, context)
            if score <= 0:
                continue

            name = _handler_name(handler)
            try:
                result = await _resolve(handler.parse(segment, {**context, "handler_score": score}))
            except Exception as exc:  # noqa: BLE001
                self.logger.warning(
                    "[%s] failed to parse segment at lines %s-%s: %s",
                    name,
                    segment.start_line,
                    segment.end_line,
                    exc,
                )
                return ErrorOutcome(handler=name, score=score, error=str(exc))
            return ParsedOutcome(handler=name, score=score, result=result)

        return UnhandledOutcome()


async def _process_one(
    dispatcher: RecipeDispatcher,
    segment: Segment,
    context_factory: Optional[ContextFactory],
) -> ProcessedSegment:
    context = (context_factory(segment) if context_factory else None) or {}
    outcome = await dispatcher.dispatch(segment, context)
    return ProcessedSegment(segment=segment, dispatch=outcome)


async def process_segments(
    dispatcher: RecipeDispatcher,
    segments: Sequence[Segment],
    context_factory: Optional[ContextFactory] = None,
    concurrency: int = 1,
    timeout: Optional[float] = None,
) -> List[ProcessedSegment]:
    """Dispatch every segment independently; results keep the input order.

    ``concurrency`` above 1 dispatches segments concurrently with at most that
    many in flight. ``timeout`` bounds the whole batch and raises
    ``asyncio.TimeoutError`` when exceeded.
    """
    if concurrency < 1:
        raise ValueError("concurrency must be at least 1")

    async def run_sequential() -> List[ProcessedSegment]:
        results = []
        for segment in segments:
            results.append(await _process_one(dispatcher, segment, context_factory))
        return results

    async def run_bounded() -> List[ProcessedSegment]:
        semaphore = asyncio.Semaphore(concurrency)

        async def guarded(segment: Segment) -> ProcessedSegment:
            async with semaphore:
                return await _process_one(dispatcher, segment, context_factory)

        return list(await asyncio.gather(*(guarded(segment) for segment in segments)))

    runner = run_sequential() if concurrency == 1 else run_bounded()
    if timeout is not None:
        return await asyncio.wait_for(runner, timeout=timeout)
    return await runner


def load_segments(file_path: Union[str, Path]) -> List[Segment]:
    """Load a batch written by ``persist_segments`` and return its segments."""
    resolved = Path(file_path).resolve()
    data = json.loads(resolved.read_text(encoding="utf-8"))

    raw_segments = data.get("segments") if isinstance(data, dict) else None
    if not isinstance(raw_segments, list):
        raise MalformedSegmentBatchError(f"Segment file missing segments array: {resolved}")

    segments: List[Segment] = []
    for index, entry in enumerate(raw_segments):
        try:
            segments.append(Segment.model_validate(entry))
        except ValidationError as exc:
            raise MalformedSegmentBatchError(
                f"Invalid segment at index {index} in {resolved}: {exc}"
            ) from exc
    logger.info("Loaded %d segments from %s", len(segments), resolved)
    return segments
