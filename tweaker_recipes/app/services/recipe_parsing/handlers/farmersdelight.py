"""Farmer's Delight cooking pot and cutting board recipes."""

import re
from typing import Any, Dict, Optional, Tuple

from tweaker_recipes.app.schemas.segment import Segment
from tweaker_recipes.app.services.recipe_parsing.handlers.base import HandlerParseError, MarkerHandler
from tweaker_recipes.app.services.recipe_parsing.models import CookingPotFields, CuttingFields
from tweaker_recipes.app.services.recipe_parsing.parsing_utils import (
    coerce_float,
    coerce_int,
    split_last_parameter,
    split_parameters,
    strip_leading_comma,
)

_LEADING_VALUE = re.compile(r"^([^,\[]+)")
_LEADING_ARRAY = re.compile(r"^(\[[^\]]+\])")
_LEADING_CONTAINER = re.compile(r"^(\([^)]+\)\.mutable\(\))")


class FarmersDelightHandler(MarkerHandler):
    recipe_type: str = ""

    def __init__(self):
        self.markers = (f"<recipetype:farmersdelight:{self.recipe_type}>.addRecipe(",)
        self.pattern = re.compile(
            rf"<recipetype:farmersdelight:{self.recipe_type}>\.addRecipe\((.*)\);\s*$", re.S
        )

    def _fail(self) -> HandlerParseError:
        return HandlerParseError(f"Unable to match farmersdelight {self.recipe_type} recipe pattern")

    def _split_call(self, segment: Segment) -> Tuple[str, str]:
        """Return the quoted recipe id and the argument text after it."""
        match = self.pattern.search(segment.raw_text or "")
        if not match:
            raise self._fail()
        params = match.group(1).strip()
        id_match = re.match(r'"([^"]+)"', params)
        if not id_match:
            raise self._fail()
        return id_match.group(1), strip_leading_comma(params[id_match.end():])

    def _take(self, pattern: re.Pattern, remaining: str) -> Tuple[str, str]:
        match = pattern.match(remaining)
        if not match:
            raise self._fail()
        return match.group(1).strip(), strip_leading_comma(remaining[match.end():])


class CookingPotHandler(FarmersDelightHandler):
    """``("id", output, [ingredients], (container).mutable(), experience, cookTime)``"""

    name = "cooking-handler"
    recipe_type = "cooking"
    default_cook_time = 200

    def parse(self, segment: Segment, context: Optional[Dict[str, Any]] = None) -> CookingPotFields:
        recipe_id, remaining = self._split_call(segment)
        output, remaining = self._take(_LEADING_VALUE, remaining)
        ingredients, remaining = self._take(_LEADING_ARRAY, remaining)
        container, remaining = self._take(_LEADING_CONTAINER, remaining)

        final_params = split_parameters(remaining)
        if len(final_params) != 2:
            raise self._fail()
        experience, cook_time = final_params

        return CookingPotFields(
            recipe_id=recipe_id,
            recipe_type=segment.recipe_type,
            output=output,
            ingredients=ingredients,
            container=container,
            experience=coerce_float(experience, 0.0),
            # A literal 0 is kept; only text with no numeric prefix takes the default.
            cook_time=coerce_int(cook_time, self.default_cook_time),
        )


class CuttingBoardHandler(FarmersDelightHandler):
    """``("id", input, [outputs], tool, optional)``"""

    name = "cutting-handler"
    recipe_type = "cutting"

    def parse(self, segment: Segment, context: Optional[Dict[str, Any]] = None) -> CuttingFields:
        recipe_id, remaining = self._split_call(segment)
        input_spec, remaining = self._take(_LEADING_VALUE, remaining)
        outputs, remaining = self._take(_LEADING_ARRAY, remaining)

        split = split_last_parameter(remaining)
        if split is None:
            raise self._fail()
        tool, optional = split

        return CuttingFields(
            recipe_id=recipe_id,
            recipe_type=segment.recipe_type,
            input=input_spec,
            outputs=outputs,
            tool=tool,
            optional=optional,
        )
