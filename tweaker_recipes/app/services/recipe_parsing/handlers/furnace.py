"""Vanilla cooking machines sharing the five-argument ``addRecipe`` shape.

``<machine>.addRecipe("id", output, input, experience, cookTime);``
"""

import re
from typing import Any, Dict, Optional

from tweaker_recipes.app.schemas.segment import Segment
from tweaker_recipes.app.services.recipe_parsing.handlers.base import HandlerParseError, MarkerHandler
from tweaker_recipes.app.services.recipe_parsing.models import FurnaceFields
from tweaker_recipes.app.services.recipe_parsing.parsing_utils import coerce_float, coerce_int

_ARGUMENTS = r'\.addRecipe\("([^"]+)",\s*([^,]+),\s*([^,]+),\s*([^,]+),\s*([^)]+)\);\s*$'


class FurnaceHandler(MarkerHandler):
    machine: str = ""
    format: str = ""
    default_cook_time: int = 200

    def __init__(self):
        self.pattern = re.compile(r"\b" + re.escape(self.machine) + _ARGUMENTS)
        self.markers = (f"{self.machine}.addRecipe(",)

    def parse(self, segment: Segment, context: Optional[Dict[str, Any]] = None) -> FurnaceFields:
        match = self.pattern.search(segment.raw_text or "")
        if not match:
            raise HandlerParseError(f"Unable to match {self.machine}.addRecipe pattern")
        recipe_id, output_spec, input_spec, experience, cook_time = match.groups()
        return FurnaceFields(
            recipe_id=recipe_id,
            recipe_type=segment.recipe_type,
            format=self.format,
            output=output_spec.strip(),
            input=input_spec.strip(),
            experience=coerce_float(experience, 0.0),
            # A literal 0 is kept; only text with no numeric prefix takes the default.
            cook_time=coerce_int(cook_time, self.default_cook_time),
        )


class SmeltingHandler(FurnaceHandler):
    name = "smelting-handler"
    machine = "furnace"
    format = "addSmelting"
    default_cook_time = 200


class BlastFurnaceHandler(FurnaceHandler):
    name = "blast-furnace-handler"
    machine = "blastFurnace"
    format = "addBlastFurnace"
    default_cook_time = 100


class SmokingHandler(FurnaceHandler):
    name = "smoking-handler"
    machine = "smoker"
    format = "addSmoking"
    default_cook_time = 100


class CampfireHandler(FurnaceHandler):
    name = "campfire-handler"
    machine = "campfire"
    format = "addCampfire"
    default_cook_time = 100
