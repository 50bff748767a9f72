"""Split CraftTweaker log output into statement-shaped segments.

The segmenter walks the log line by line. ``Recipe type: '<recipetype:...>'``
headers update the type context carried by every following segment, a line
matching one of the start patterns opens a segment, and the segment closes on
the first line ending in ``);`` once parentheses are balanced. Statements that
never close are flushed at end of input instead of being dropped.
"""

import json
import logging
import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Pattern, Sequence, Union

from tweaker_recipes.app.schemas.segment import Segment, SegmentBatch, SegmentRecord

logger = logging.getLogger(__name__)

RECIPE_TYPE_HEADER = re.compile(r"Recipe type:\s*'(<recipetype:[^']+>)'")

DEFAULT_START_PATTERNS: List[Pattern[str]] = [
    re.compile(r"^<recipetype:[^>]+>\.[a-zA-Z]"),
    re.compile(r"^craftingTable\.[a-zA-Z]"),
    re.compile(r"^[a-zA-Z0-9_]+\.[a-zA-Z0-9_]+\("),
]

LINE_SPLIT = re.compile(r"\r?\n")


class LogFileNotFoundError(FileNotFoundError):
    """Raised when the log file to segment does not exist."""
    pass


def _compile_patterns(patterns: Optional[Sequence[Union[str, Pattern[str]]]]) -> List[Pattern[str]]:
    if patterns is None:
        return DEFAULT_START_PATTERNS
    return [re.compile(p) if isinstance(p, str) else p for p in patterns]


def paren_depth_delta(line: str) -> int:
    return line.count("(") - line.count(")")


class SegmentAccumulator:
    """Line-by-line state machine shared by every segmenter entry point."""

    def __init__(self, start_patterns: Optional[Sequence[Union[str, Pattern[str]]]] = None):
        self.start_patterns = _compile_patterns(start_patterns)
        self.segments: List[Segment] = []
        self.current_recipe_type: Optional[str] = None
        self._active_lines: Optional[List[str]] = None
        self._active_start: int = 0
        self._active_type: Optional[str] = None
        self._depth = 0

    @property
    def is_accumulating(self) -> bool:
        return self._active_lines is not None

    def _is_recipe_start(self, trimmed: str) -> bool:
        return any(pattern.search(trimmed) for pattern in self.start_patterns)

    def _close(self, end_line: int) -> None:
        if self._active_lines is None:
            return
        self.segments.append(
            Segment(
                recipe_type=self._active_type,
                start_line=self._active_start,
                end_line=end_line,
                raw_text="\n".join(self._active_lines),
            )
        )
        self._active_lines = None
        self._active_type = None
        self._depth = 0

    def handle_line(self, line: str, line_number: int) -> None:
        trimmed = line.strip()
        if not trimmed:
            return

        header = RECIPE_TYPE_HEADER.search(trimmed)
        if header:
            self.current_recipe_type = header.group(1)
            return

        if self._active_lines is None:
            if not self._is_recipe_start(trimmed):
                return
            self._active_lines = []
            self._active_start = line_number
            self._active_type = self.current_recipe_type
            self._depth = 0

        self._active_lines.append(line)
        self._depth += paren_depth_delta(line)

        if self._depth <= 0 and trimmed.endswith(");"):
            self._close(line_number)

    def finalize(self, line_number: int) -> List[Segment]:
        if self._active_lines is not None:
            logger.debug(
                "Flushing unterminated segment starting at line %d", self._active_start
            )
            self._close(max(line_number, self._active_start))
        return self.segments


def segment_log_content(
    log_content: str,
    start_patterns: Optional[Sequence[Union[str, Pattern[str]]]] = None,
) -> List[Segment]:
    """Segment an in-memory log string."""
    if not isinstance(log_content, str):
        raise TypeError("log_content must be a string")

    lines = LINE_SPLIT.split(log_content)
    accumulator = SegmentAccumulator(start_patterns)
    for index, line in enumerate(lines, start=1):
        accumulator.handle_line(line, index)
    return accumulator.finalize(len(lines))


def _strip_line_ending(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
    return line


def segment_log_stream(
    stream: Iterable[Union[bytes, str]],
    start_patterns: Optional[Sequence[Union[str, Pattern[str]]]] = None,
    encoding: str = "utf-8",
) -> List[Segment]:
    """Segment a line-iterable stream without loading it into memory.

    Lines must be terminated by ``\\n`` (binary file objects iterate this way).
    A trailing newline counts as one final empty line, so the end-of-input
    flush reports the same line number as :func:`segment_log_content`.
    """
    accumulator = SegmentAccumulator(start_patterns)
    line_number = 0
    ended_with_newline = False
    for chunk in stream:
        if isinstance(chunk, bytes):
            chunk = chunk.decode(encoding, errors="replace")
        line_number += 1
        ended_with_newline = chunk.endswith("\n")
        accumulator.handle_line(_strip_line_ending(chunk), line_number)
    if ended_with_newline or line_number == 0:
        line_number += 1
    return accumulator.finalize(line_number)


def segment_log_file(
    log_path: Union[str, os.PathLike],
    start_patterns: Optional[Sequence[Union[str, Pattern[str]]]] = None,
    encoding: str = "utf-8",
) -> List[Segment]:
    """Stream a ``crafttweaker.log`` from disk and segment it."""
    resolved = Path(log_path).resolve()
    if not resolved.is_file():
        raise LogFileNotFoundError(f"Log file not found: {resolved}")

    logger.info("Segmenting log file %s", resolved)
    # Binary mode: only \n ends a line, like the in-memory \r?\n split.
    with resolved.open("rb") as handle:
        segments = segment_log_stream(handle, start_patterns=start_patterns, encoding=encoding)
    logger.info("Found %d recipe statements in %s", len(segments), resolved)
    return segments


def timestamp_slug(moment: Optional[datetime] = None) -> str:
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y%m%d-%H%M%S")


def build_segment_batch(
    segments: Sequence[Segment],
    prefix: str = "segments",
    include_raw: bool = True,
    generated_at: Optional[datetime] = None,
) -> SegmentBatch:
    records = [
        SegmentRecord(
            id=f"{prefix}-{index}",
            recipe_type=segment.recipe_type,
            start_line=segment.start_line,
            end_line=segment.end_line,
            raw_text=segment.raw_text if include_raw else None,
        )
        for index, segment in enumerate(segments, start=1)
    ]
    return SegmentBatch(
        generated_at=generated_at or datetime.now(timezone.utc),
        count=len(records),
        segments=records,
    )


def dump_segment_batch(batch: SegmentBatch, include_raw: bool = True) -> dict:
    exclude = None if include_raw else {"segments": {"__all__": {"raw_text"}}}
    return batch.model_dump(mode="json", by_alias=True, exclude=exclude)


def persist_segments(
    segments: Sequence[Segment],
    output_dir: Union[str, os.PathLike],
    prefix: str = "segments",
    include_raw: bool = True,
) -> Path:
    """Write segments to ``<output_dir>/<prefix>-YYYYMMDD-HHMMSS.json`` and return the path."""
    target_dir = Path(output_dir)
    target_dir.mkdir(parents=True, exist_ok=True)

    generated_at = datetime.now(timezone.utc)
    file_path = (target_dir / f"{prefix}-{timestamp_slug(generated_at)}.json").resolve()
    batch = build_segment_batch(segments, prefix=prefix, include_raw=include_raw, generated_at=generated_at)
    payload = dump_segment_batch(batch, include_raw=include_raw)

    file_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.info("Persisted %d segments to %s", batch.count, file_path)
    return file_path
