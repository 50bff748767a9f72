"""Crafting table handlers: ``addShaped`` and ``addShapeless``."""

import re
from typing import Any, Dict, Optional

from tweaker_recipes.app.schemas.segment import Segment
from tweaker_recipes.app.services.recipe_parsing.handlers.base import HandlerParseError, MarkerHandler
from tweaker_recipes.app.services.recipe_parsing.models import ShapedFields, ShapelessFields
from tweaker_recipes.app.services.recipe_parsing.parsing_utils import parse_output_spec

SHAPED_PATTERN = re.compile(r'\b\w+\.addShaped\("([^"]+)",\s*([^,]+),\s*([\s\S]+?)\);\s*$')
SHAPELESS_PATTERN = re.compile(r'\b\w+\.addShapeless\("([^"]+)",\s*([^,]+),\s*([\s\S]+?)\);\s*$')


class ShapedCraftingHandler(MarkerHandler):
    name = "shaped-crafting-handler"
    markers = (".addShaped(",)

    def parse(self, segment: Segment, context: Optional[Dict[str, Any]] = None) -> ShapedFields:
        match = SHAPED_PATTERN.search(segment.raw_text or "")
        if not match:
            raise HandlerParseError("Unable to match addShaped pattern")
        recipe_id, output_spec, pattern = match.groups()
        return ShapedFields(
            recipe_id=recipe_id,
            recipe_type=segment.recipe_type,
            output=output_spec.strip(),
            output_parsed=parse_output_spec(output_spec),
            pattern=pattern.strip(),
        )


class ShapelessCraftingHandler(MarkerHandler):
    name = "shapeless-crafting-handler"
    markers = (".addShapeless(",)

    def parse(self, segment: Segment, context: Optional[Dict[str, Any]] = None) -> ShapelessFields:
        match = SHAPELESS_PATTERN.search(segment.raw_text or "")
        if not match:
            raise HandlerParseError("Unable to match addShapeless pattern")
        recipe_id, output_spec, ingredients = match.groups()
        return ShapelessFields(
            recipe_id=recipe_id,
            recipe_type=segment.recipe_type,
            output=output_spec.strip(),
            output_parsed=parse_output_spec(output_spec),
            ingredients=ingredients.strip(),
        )
