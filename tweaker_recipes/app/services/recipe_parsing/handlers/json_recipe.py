import json
import re
from typing import Any, Dict, Optional

from tweaker_recipes.app.schemas.segment import Segment
from tweaker_recipes.app.services.recipe_parsing.handlers.base import HandlerParseError, MarkerHandler
from tweaker_recipes.app.services.recipe_parsing.models import JsonRecipeFields
from tweaker_recipes.app.services.recipe_parsing.parsing_utils import parse_relaxed_json

JSON_RECIPE_PATTERN = re.compile(r'<recipetype:[^>]+>\.addJsonRecipe\("([^"]+)",\s*([\s\S]+?)\);\s*$')


class JsonCraftingHandler(MarkerHandler):
    """``<recipetype:...>.addJsonRecipe("id", {...});`` with a relaxed JSON body."""

    name = "json-crafting-handler"
    markers = (".addJsonRecipe(",)

    def parse(self, segment: Segment, context: Optional[Dict[str, Any]] = None) -> JsonRecipeFields:
        match = JSON_RECIPE_PATTERN.search(segment.raw_text or "")
        if not match:
            raise HandlerParseError("Unable to match addJsonRecipe pattern")
        recipe_id, body = match.groups()
        try:
            data = parse_relaxed_json(body)
        except json.JSONDecodeError as exc:
            raise HandlerParseError(f"Invalid JSON body for {recipe_id}: {exc}") from exc
        return JsonRecipeFields(recipe_id=recipe_id, recipe_type=segment.recipe_type, data=data)
