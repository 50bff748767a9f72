import asyncio
import json
import logging

import pytest

from tweaker_recipes.app.schemas.segment import Segment
from tweaker_recipes.app.services.recipe_parsing import (
    MalformedSegmentBatchError,
    RecipeDispatcher,
    create_default_dispatcher,
    load_segments,
    process_segment_file,
    process_segments,
)
from tweaker_recipes.app.services.recipe_parsing.models import ProcessingSummary


class StubHandler:
    def __init__(self, name, score=1, result=None, error=None, can_parse_error=None):
        self.name = name
        self.score = score
        self.result = result if result is not None else {"handledBy": name}
        self.error = error
        self.can_parse_error = can_parse_error
        self.can_parse_calls = []
        self.parse_calls = []

    def can_parse(self, segment, context=None):
        self.can_parse_calls.append(segment)
        if self.can_parse_error:
            raise self.can_parse_error
        return self.score(segment) if callable(self.score) else self.score

    def parse(self, segment, context=None):
        self.parse_calls.append((segment, context))
        if self.error and (not callable(self.error) or self.error(segment)):
            raise ValueError(f"boom at {segment.start_line}")
        return self.result


class AsyncStubHandler:
    name = "async-handler"

    async def can_parse(self, segment, context=None):
        await asyncio.sleep(0)
        return 1

    async def parse(self, segment, context=None):
        await asyncio.sleep(0)
        return {"line": segment.start_line}


def _segment(line, raw_text="foo.bar();", recipe_type=None):
    return Segment(start_line=line, end_line=line, raw_text=raw_text, recipe_type=recipe_type)


@pytest.mark.asyncio
async def test_first_positive_handler_wins_even_if_later_scores_higher():
    first = StubHandler("first", score=0.1)
    second = StubHandler("second", score=10)
    dispatcher = RecipeDispatcher([first, second])

    outcome = await dispatcher.dispatch(_segment(1))

    assert outcome.status == "parsed"
    assert outcome.handler == "first"
    assert outcome.score == 0.1
    assert outcome.result == {"handledBy": "first"}
    assert second.can_parse_calls == []
    assert second.parse_calls == []


@pytest.mark.asyncio
async def test_zero_score_handlers_are_skipped():
    dispatcher = RecipeDispatcher([StubHandler("never", score=0), StubHandler("fallback")])
    outcome = await dispatcher.dispatch(_segment(1))
    assert outcome.handler == "fallback"


@pytest.mark.asyncio
async def test_parse_receives_context_with_handler_score():
    handler = StubHandler("scored", score=0.5)
    dispatcher = RecipeDispatcher([handler])

    await dispatcher.dispatch(_segment(1), {"source": "test"})

    _, context = handler.parse_calls[0]
    assert context == {"source": "test", "handler_score": 0.5}


@pytest.mark.asyncio
async def test_can_parse_exception_is_logged_and_treated_as_zero(caplog):
    broken = StubHandler("broken", can_parse_error=RuntimeError("bad predicate"))
    fallback = StubHandler("fallback")
    dispatcher = RecipeDispatcher([broken, fallback])

    with caplog.at_level(logging.WARNING):
        outcome = await dispatcher.dispatch(_segment(1))

    assert outcome.handler == "fallback"
    assert "[broken] failed during can_parse: bad predicate" in caplog.text


@pytest.mark.asyncio
async def test_parse_exception_becomes_error_outcome():
    dispatcher = RecipeDispatcher([StubHandler("failing", error=True), StubHandler("never-reached")])

    outcome = await dispatcher.dispatch(_segment(7))

    assert outcome.status == "error"
    assert outcome.handler == "failing"
    assert outcome.error == "boom at 7"


@pytest.mark.asyncio
async def test_no_handler_means_unhandled():
    outcome = await RecipeDispatcher([StubHandler("never", score=0)]).dispatch(_segment(1))
    assert outcome.status == "unhandled"


@pytest.mark.asyncio
async def test_injected_logger_receives_warnings():
    records = []

    class ListHandler(logging.Handler):
        def emit(self, record):
            records.append(record.getMessage())

    custom = logging.getLogger("tests.dispatcher.custom")
    custom.addHandler(ListHandler())
    custom.propagate = False
    try:
        dispatcher = RecipeDispatcher([StubHandler("failing", error=True)], logger=custom)
        await dispatcher.dispatch(_segment(3))
    finally:
        custom.handlers.clear()

    assert records == ["[failing] failed to parse segment at lines 3-3: boom at 3"]


def test_register_handler_rejects_incomplete_objects():
    dispatcher = RecipeDispatcher()

    class NoParse:
        name = "no-parse"

        def can_parse(self, segment, context=None):
            return 1

    with pytest.raises(TypeError, match="Handler must implement can_parse\\(\\) and parse\\(\\)"):
        dispatcher.register_handler(NoParse())
    with pytest.raises(TypeError):
        dispatcher.register_handler(None)


def test_unnamed_handler_reports_placeholder_name():
    class Anonymous:
        def can_parse(self, segment, context=None):
            return 1

        def parse(self, segment, context=None):
            return {}

    dispatcher = RecipeDispatcher([Anonymous()])
    assert dispatcher.handler_names == ["unknown-handler"]


@pytest.mark.asyncio
async def test_one_failing_segment_does_not_affect_the_others():
    handler = StubHandler("sometimes", error=lambda segment: segment.start_line == 3)
    segments = [_segment(line) for line in range(1, 6)]

    results = await process_segments(RecipeDispatcher([handler]), segments)

    assert [entry.dispatch.status for entry in results] == ["parsed", "parsed", "error", "parsed", "parsed"]
    assert [entry.segment.start_line for entry in results] == [1, 2, 3, 4, 5]
    summary = ProcessingSummary.from_results(results)
    assert (summary.total, summary.parsed, summary.errors, summary.unhandled) == (5, 4, 1, 0)


@pytest.mark.asyncio
async def test_context_factory_feeds_each_dispatch():
    handler = StubHandler("ctx")
    segments = [_segment(1, recipe_type="<recipetype:a:b>"), _segment(2)]

    await process_segments(
        RecipeDispatcher([handler]),
        segments,
        context_factory=lambda segment: {"recipe_type": segment.recipe_type},
    )

    assert [context["recipe_type"] for _, context in handler.parse_calls] == ["<recipetype:a:b>", None]


@pytest.mark.asyncio
async def test_async_handlers_are_awaited():
    results = await process_segments(RecipeDispatcher([AsyncStubHandler()]), [_segment(4)])
    assert results[0].dispatch.status == "parsed"
    assert results[0].dispatch.result == {"line": 4}


@pytest.mark.asyncio
async def test_concurrent_dispatch_keeps_input_order():
    class SlowFirstHandler:
        name = "slow-first"

        def can_parse(self, segment, context=None):
            return 1

        async def parse(self, segment, context=None):
            await asyncio.sleep(0.02 if segment.start_line == 1 else 0)
            return {"line": segment.start_line}

    segments = [_segment(line) for line in range(1, 5)]
    results = await process_segments(RecipeDispatcher([SlowFirstHandler()]), segments, concurrency=4)

    assert [entry.dispatch.result["line"] for entry in results] == [1, 2, 3, 4]


@pytest.mark.asyncio
async def test_concurrency_must_be_positive():
    with pytest.raises(ValueError):
        await process_segments(RecipeDispatcher(), [], concurrency=0)


@pytest.mark.asyncio
async def test_batch_timeout_raises():
    class HangingHandler:
        name = "hanging"

        def can_parse(self, segment, context=None):
            return 1

        async def parse(self, segment, context=None):
            await asyncio.sleep(1)

    with pytest.raises(asyncio.TimeoutError):
        await process_segments(RecipeDispatcher([HangingHandler()]), [_segment(1)], timeout=0.01)


def test_default_dispatcher_registry_order():
    names = create_default_dispatcher().handler_names

    assert names[:10] == [
        "json-crafting-handler",
        "shaped-crafting-handler",
        "shapeless-crafting-handler",
        "smelting-handler",
        "blast-furnace-handler",
        "smoking-handler",
        "campfire-handler",
        "smithing-handler",
        "cooking-handler",
        "cutting-handler",
    ]
    assert len(names) == 35
    assert all(name.startswith("mekanism-") for name in names[10:])
    assert "mekanism-chemical_conversion-handler" in names
    assert len(set(names)) == len(names)


def _write_batch(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_load_segments_reads_persisted_batch(tmp_path):
    path = _write_batch(
        tmp_path / "batch.json",
        {
            "generatedAt": "2024-01-02T03:04:05+00:00",
            "count": 1,
            "segments": [
                {
                    "id": "segments-1",
                    "recipeType": "<recipetype:minecraft:smelting>",
                    "startLine": 9,
                    "endLine": 9,
                    "status": "pending",
                    "rawText": 'furnace.addRecipe("a", <item:x:a>, <item:x:b>, 0.1, 200);',
                }
            ],
        },
    )

    segments = load_segments(path)

    assert len(segments) == 1
    assert segments[0].id == "segments-1"
    assert segments[0].recipe_type == "<recipetype:minecraft:smelting>"
    assert segments[0].start_line == 9


@pytest.mark.parametrize("payload", [{}, {"segments": None}, {"segments": "nope"}, []])
def test_load_segments_rejects_missing_segments_array(tmp_path, payload):
    path = _write_batch(tmp_path / "bad.json", payload)
    with pytest.raises(MalformedSegmentBatchError, match="missing segments array"):
        load_segments(path)


def test_load_segments_reports_invalid_entry_index(tmp_path):
    path = _write_batch(tmp_path / "bad.json", {"segments": [{"startLine": 1, "endLine": 1}, {"startLine": "x"}]})
    with pytest.raises(MalformedSegmentBatchError, match="index 1"):
        load_segments(path)


@pytest.mark.asyncio
async def test_process_segment_file_uses_default_registry(tmp_path):
    path = _write_batch(
        tmp_path / "batch.json",
        {
            "segments": [
                {"startLine": 1, "endLine": 1, "rawText": 'furnace.addRecipe("a", <item:x:a>, <item:x:b>, 0.1, 200);'},
                {"startLine": 2, "endLine": 2, "rawText": "mystery.call();"},
            ]
        },
    )

    summary = await process_segment_file(path)

    assert (summary.total, summary.parsed, summary.unhandled, summary.errors) == (2, 1, 1, 0)
    assert summary.results[0].dispatch.handler == "smelting-handler"
