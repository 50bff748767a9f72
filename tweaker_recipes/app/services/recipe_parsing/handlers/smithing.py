import re
from typing import Any, Dict, Optional, Union

from tweaker_recipes.app.schemas.segment import Segment
from tweaker_recipes.app.services.recipe_parsing.handlers.base import HandlerParseError, MarkerHandler
from tweaker_recipes.app.services.recipe_parsing.models import SmithingTransformFields, SmithingTrimFields

TRANSFORM_PATTERN = re.compile(
    r'smithing\.addTransformRecipe\("([^"]+)",\s*([^,]+),\s*([^,]+),\s*([^,]+),\s*([^)]+)\);\s*$'
)
TRIM_PATTERN = re.compile(r'smithing\.addTrimRecipe\("([^"]+)",\s*([^,]+),\s*([^,]+),\s*([^)]+)\);\s*$')


class SmithingHandler(MarkerHandler):
    """Smithing table transform (output, template, base, addition) and trim recipes."""

    name = "smithing-handler"
    markers = ("smithing.addTransformRecipe(", "smithing.addTrimRecipe(")

    def parse(
        self, segment: Segment, context: Optional[Dict[str, Any]] = None
    ) -> Union[SmithingTransformFields, SmithingTrimFields]:
        raw_text = segment.raw_text or ""

        match = TRANSFORM_PATTERN.search(raw_text)
        if match:
            recipe_id, output_spec, template, base, addition = match.groups()
            return SmithingTransformFields(
                recipe_id=recipe_id,
                recipe_type=segment.recipe_type,
                output=output_spec.strip(),
                template=template.strip(),
                base=base.strip(),
                addition=addition.strip(),
            )

        # Trim recipes have no output at all.
        match = TRIM_PATTERN.search(raw_text)
        if match:
            recipe_id, template, base, addition = match.groups()
            return SmithingTrimFields(
                recipe_id=recipe_id,
                recipe_type=segment.recipe_type,
                template=template.strip(),
                base=base.strip(),
                addition=addition.strip(),
            )

        raise HandlerParseError("Unable to match smithing recipe pattern")
