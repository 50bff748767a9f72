"""Lexical helpers shared by the recipe handlers."""

import json
import re
from typing import Any, List, Optional, Tuple

from tweaker_recipes.app.services.recipe_parsing.models import OutputSpec

_MULTIPLIER = re.compile(r"^(.*?)\s*\*\s*(\S+)$", re.S)
_FLOAT_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INT_PREFIX = re.compile(r"^[+-]?\d+")
_COUNT = re.compile(r"[0-9]+")
_BARE_KEY = re.compile(r"([{,]\s*)([A-Za-z0-9_]+):")

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {")", "]", "}"}


def parse_output_spec(spec: Optional[str]) -> OutputSpec:
    """Split ``<item:x> * 4`` into the item token and its stack count.

    A missing or non-integer multiplier yields a count of 1; zero is kept.
    """
    if not spec:
        return OutputSpec(raw=None, count=1)
    trimmed = spec.strip()
    match = _MULTIPLIER.match(trimmed)
    if not match:
        return OutputSpec(raw=trimmed, count=1)
    base, multiplier = match.group(1).strip(), match.group(2)
    if not base:
        return OutputSpec(raw=trimmed, count=1)
    if not _COUNT.fullmatch(multiplier):
        return OutputSpec(raw=base, count=1)
    return OutputSpec(raw=base, count=int(multiplier))


def coerce_float(value: Optional[str], default: float = 0.0) -> float:
    """Read the leading number of ``value``; ``default`` when there is none."""
    match = _FLOAT_PREFIX.match((value or "").strip())
    if not match:
        return default
    try:
        return float(match.group())
    except ValueError:
        return default


def coerce_int(value: Optional[str], default: int) -> int:
    match = _INT_PREFIX.match((value or "").strip())
    if not match:
        return default
    return int(match.group())


def parse_strict_int(value: str) -> Optional[int]:
    match = _INT_PREFIX.match(value.strip())
    return int(match.group()) if match else None


def parse_strict_float(value: str) -> Optional[float]:
    match = _FLOAT_PREFIX.match(value.strip())
    return float(match.group()) if match else None


def parse_bool_flag(value: str) -> Optional[bool]:
    token = value.strip()
    if token == "true":
        return True
    if token == "false":
        return False
    return None


def _top_level_comma_positions(text: str) -> List[int]:
    """Indexes of commas outside brackets, ``<...>`` tokens and quoted strings."""
    positions: List[int] = []
    stack: List[str] = []
    in_tag = False
    quote: Optional[str] = None
    escaped = False
    for index, char in enumerate(text):
        if quote:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in ("'", '"'):
            quote = char
        elif char == "<":
            in_tag = True
        elif char == ">":
            in_tag = False
        elif in_tag:
            continue
        elif char in _OPENERS:
            stack.append(_OPENERS[char])
        elif char in _CLOSERS:
            if stack and stack[-1] == char:
                stack.pop()
        elif char == "," and not stack:
            positions.append(index)
    return positions


def split_parameters(params: str) -> List[str]:
    """Split a call's argument list on top-level commas, trimming each piece."""
    pieces: List[str] = []
    start = 0
    for position in _top_level_comma_positions(params):
        pieces.append(params[start:position].strip())
        start = position + 1
    tail = params[start:].strip()
    if tail:
        pieces.append(tail)
    return pieces


def split_last_parameter(params: str) -> Optional[Tuple[str, str]]:
    """Split on the last top-level comma; ``None`` when there is none."""
    positions = _top_level_comma_positions(params)
    if not positions:
        return None
    last = positions[-1]
    return params[:last].strip(), params[last + 1 :].strip()


def strip_leading_comma(text: str) -> str:
    text = text.strip()
    if text.startswith(","):
        text = text[1:].strip()
    return text


def relax_json(candidate: str) -> str:
    """Rewrite the log's relaxed JSON dialect into strict JSON.

    Bare keys after ``{`` or ``,`` are quoted and every single quote becomes a
    double quote. Single quotes inside string values are rewritten too.
    """
    transformed = _BARE_KEY.sub(r'\1"\2":', candidate)
    return transformed.replace("'", '"')


def parse_relaxed_json(candidate: str) -> Any:
    return json.loads(relax_json(candidate.strip()))
