"""Map dispatched handler results onto the common ``NormalizedRecipe`` record."""

import logging
import re
from collections import Counter
from typing import Any, Callable, Dict, Iterable, List, Literal, Optional, Sequence, Tuple

from pydantic import BaseModel

from tweaker_recipes.app.schemas.recipe import NormalizedRecipe, RecipeFluid, RecipeIO, RecipeItem, RecipeStats
from tweaker_recipes.app.services.recipe_parsing.models import (
    ChemicalConversionFields,
    CombiningFields,
    CookingPotFields,
    CuttingFields,
    EnergyConversionFields,
    FurnaceFields,
    ItemChemicalFields,
    JsonRecipeFields,
    NucleosynthesizingFields,
    PairedInputFields,
    ParsedFieldsBase,
    ProcessedSegment,
    ReactionFields,
    RotaryFields,
    SawingFields,
    SeparatingFields,
    ShapedFields,
    ShapelessFields,
    SmithingTransformFields,
    SmithingTrimFields,
    WashingFields,
)

logger = logging.getLogger(__name__)

DEFAULT_RECIPE_TYPE = "minecraft:crafting"
DEFAULT_MOD = "minecraft"
DEFAULT_MACHINE_TYPE = "crafting"
UNSUPPORTED_FORMAT = "unsupported"

UnsupportedFormatPolicy = Literal["surface", "drop"]

CRAFTING_INPUT_TOKEN = re.compile(r"<(?:item|tag):[^>]+>")
CRAFTING_OUTPUT_TOKEN = re.compile(r"<item:[^>]+>")
STACK_TOKEN = re.compile(r"<([a-z_]+):([^>]+)>(?:\s*\*\s*(\d+))?")

ITEM_KINDS = {"item", "tag"}
FLUID_KINDS = {"fluid", "chemical", "gas", "infuse_type", "pigment", "slurry"}


def normalize_recipe_type_value(value: Optional[str]) -> Optional[str]:
    """Strip ``<recipetype:...>`` wrapping and a bare ``recipetype:`` prefix."""
    if not value or not isinstance(value, str):
        return None
    cleaned = value.strip()
    if cleaned.startswith("<") and cleaned.endswith(">"):
        cleaned = cleaned[1:-1].strip()
    if cleaned.startswith("recipetype:"):
        cleaned = cleaned[len("recipetype:"):]
    return cleaned or None


def get_mod_from_id(recipe_id: Optional[str]) -> str:
    if not recipe_id or not isinstance(recipe_id, str) or ":" not in recipe_id:
        return DEFAULT_MOD
    return recipe_id.split(":", 1)[0] or DEFAULT_MOD


def get_machine_type_from_recipe_type(recipe_type: Optional[str]) -> str:
    if not recipe_type or ":" not in recipe_type:
        return DEFAULT_MACHINE_TYPE
    return recipe_type.split(":", 1)[1] or DEFAULT_MACHINE_TYPE


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _amount(entry: Dict[str, Any]) -> int:
    raw = entry.get("amount", entry.get("count", 1))
    try:
        return int(raw)
    except (TypeError, ValueError):
        return 1


def _to_items(value: Any) -> List[RecipeItem]:
    items: List[RecipeItem] = []
    for entry in _as_list(value):
        if isinstance(entry, str):
            items.append(RecipeItem(item=entry))
        elif isinstance(entry, dict):
            name = entry.get("item") or entry.get("tag")
            if name:
                items.append(RecipeItem(item=str(name), amount=_amount(entry)))
    return items


def _to_fluids(value: Any) -> List[RecipeFluid]:
    fluids: List[RecipeFluid] = []
    for entry in _as_list(value):
        if isinstance(entry, str):
            fluids.append(RecipeFluid(fluid=entry))
        elif isinstance(entry, dict):
            name = entry.get("fluid") or entry.get("tag")
            if name:
                fluids.append(RecipeFluid(fluid=str(name), amount=_amount(entry)))
    return fluids


def _extract_io(data: Any, item_keys: Sequence[Tuple[str, ...]], fluid_keys: Sequence[Tuple[str, ...]]) -> RecipeIO:
    # Later key shapes replace earlier ones; nothing is merged.
    io = RecipeIO()
    if not isinstance(data, dict):
        return io
    for path in item_keys:
        value = _lookup(data, path)
        if value is not None:
            io.items = _to_items(value)
    for path in fluid_keys:
        value = _lookup(data, path)
        if value is not None:
            io.fluids = _to_fluids(value)
    return io


def _lookup(data: Dict[str, Any], path: Tuple[str, ...]) -> Any:
    current: Any = data
    for key in path:
        if not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    return current


def extract_inputs(data: Any) -> RecipeIO:
    return _extract_io(
        data,
        item_keys=(("item_inputs",), ("inputs", "item")),
        fluid_keys=(("inputs", "fluid"), ("fluid_inputs",)),
    )


def extract_outputs(data: Any) -> RecipeIO:
    return _extract_io(
        data,
        item_keys=(("item_outputs",), ("outputs", "item_output")),
        fluid_keys=(("outputs", "fluid_output"), ("fluid_outputs",)),
    )


def extract_crafting_inputs(pattern: Any) -> RecipeIO:
    if not isinstance(pattern, str):
        return RecipeIO()
    return RecipeIO(items=[RecipeItem(item=token) for token in CRAFTING_INPUT_TOKEN.findall(pattern)])


def extract_crafting_outputs(output: Any) -> RecipeIO:
    if not isinstance(output, str):
        return RecipeIO()
    match = CRAFTING_OUTPUT_TOKEN.search(output)
    return RecipeIO(items=[RecipeItem(item=match.group())] if match else [])


def extract_stack_tokens(*texts: Optional[str]) -> RecipeIO:
    """Collect item and fluid-like tokens, honoring a trailing ``* N`` amount.

    ``<tag:fluid:...>`` counts as a fluid. Other token kinds are ignored.
    """
    io = RecipeIO()
    for text in texts:
        if not text:
            continue
        for match in STACK_TOKEN.finditer(text):
            kind, body, amount = match.groups()
            token = f"<{kind}:{body}>"
            count = int(amount) if amount is not None else 1
            if kind == "tag" and body.startswith("fluid:"):
                io.fluids.append(RecipeFluid(fluid=token, amount=count))
            elif kind in ITEM_KINDS:
                io.items.append(RecipeItem(item=token, amount=count))
            elif kind in FLUID_KINDS:
                io.fluids.append(RecipeFluid(fluid=token, amount=count))
    return io


def _field_data(fields: ParsedFieldsBase) -> Dict[str, Any]:
    return fields.model_dump(by_alias=True, exclude={"recipe_id", "recipe_type", "format"})


def _token_mapper(
    input_fields: Sequence[str], output_fields: Sequence[str]
) -> Callable[[ParsedFieldsBase], Tuple[Dict[str, Any], RecipeIO, RecipeIO]]:
    def mapper(fields: ParsedFieldsBase) -> Tuple[Dict[str, Any], RecipeIO, RecipeIO]:
        inputs = extract_stack_tokens(*(getattr(fields, name) for name in input_fields))
        outputs = extract_stack_tokens(*(getattr(fields, name) for name in output_fields))
        return _field_data(fields), inputs, outputs

    return mapper


def _map_json(fields: JsonRecipeFields) -> Tuple[Any, RecipeIO, RecipeIO]:
    # Array and scalar bodies are kept as-is; only object bodies carry I/O keys.
    data = fields.data if fields.data is not None else {}
    return data, extract_inputs(data), extract_outputs(data)


def _map_shaped(fields: ShapedFields) -> Tuple[Dict[str, Any], RecipeIO, RecipeIO]:
    data = {"type": "minecraft:crafting_shaped", "output": fields.output, "pattern": fields.pattern}
    return data, extract_crafting_inputs(fields.pattern), extract_crafting_outputs(fields.output)


def _map_shapeless(fields: ShapelessFields) -> Tuple[Dict[str, Any], RecipeIO, RecipeIO]:
    data = {"type": "minecraft:crafting_shapeless", "output": fields.output, "ingredients": fields.ingredients}
    return data, extract_crafting_inputs(fields.ingredients), extract_crafting_outputs(fields.output)


FIELD_MAPPERS: Dict[type, Callable[[Any], Tuple[Any, RecipeIO, RecipeIO]]] = {
    JsonRecipeFields: _map_json,
    ShapedFields: _map_shaped,
    ShapelessFields: _map_shapeless,
    FurnaceFields: _token_mapper(["input"], ["output"]),
    SmithingTransformFields: _token_mapper(["template", "base", "addition"], ["output"]),
    SmithingTrimFields: _token_mapper(["template", "base", "addition"], []),
    CookingPotFields: _token_mapper(["ingredients", "container"], ["output"]),
    CuttingFields: _token_mapper(["input"], ["outputs"]),
    ChemicalConversionFields: _token_mapper(["input"], ["output"]),
    EnergyConversionFields: _token_mapper(["input"], []),
    CombiningFields: _token_mapper(["main_input", "extra_input"], ["output"]),
    PairedInputFields: _token_mapper(["left_input", "right_input"], ["output"]),
    ItemChemicalFields: _token_mapper(["input", "chemical_input"], ["output"]),
    NucleosynthesizingFields: _token_mapper(["input", "chemical_input"], ["output"]),
    ReactionFields: _token_mapper(["item_input", "fluid_input", "chemical_input"], ["item_output", "chemical_output"]),
    # Positional order is fluid in, chemical in, chemical out, fluid out.
    RotaryFields: _token_mapper(["fluid_input", "chemical_from_fluid"], ["chemical_to_fluid", "fluid_output"]),
    SawingFields: _token_mapper(["input"], ["primary_output", "secondary_output"]),
    SeparatingFields: _token_mapper(["fluid_input"], ["left_output", "right_output"]),
    WashingFields: _token_mapper(["fluid_input", "dirty_input"], ["clean_output"]),
}


def _result_value(result: Any, key: str, alias: str) -> Any:
    if isinstance(result, BaseModel):
        return getattr(result, key, None)
    if isinstance(result, dict):
        return result.get(alias, result.get(key))
    return None


def normalize_dispatched_recipe(
    entry: ProcessedSegment,
    unsupported_policy: UnsupportedFormatPolicy = "surface",
) -> Optional[NormalizedRecipe]:
    """Build a ``NormalizedRecipe`` from a parsed outcome.

    Returns ``None`` for error/unhandled outcomes, empty results and, under the
    ``drop`` policy, results with no known mapping. Under ``surface`` those are
    emitted with ``format="unsupported"`` and their raw fields as ``data``.
    """
    dispatch = entry.dispatch
    if dispatch.status != "parsed" or not dispatch.result:
        return None
    result = dispatch.result

    normalized_type = (
        normalize_recipe_type_value(_result_value(result, "recipe_type", "recipeType"))
        or normalize_recipe_type_value(entry.segment.recipe_type)
        or DEFAULT_RECIPE_TYPE
    )
    recipe_id = _result_value(result, "recipe_id", "recipeId") or "unknown"

    mapper = FIELD_MAPPERS.get(type(result))
    if mapper is None:
        if unsupported_policy == "drop":
            logger.debug("Dropping unsupported result from %s for %s", dispatch.handler, recipe_id)
            return None
        raw = result.model_dump(by_alias=True) if isinstance(result, BaseModel) else result
        data = dict(raw) if isinstance(raw, dict) else {"value": raw}
        recipe_format = UNSUPPORTED_FORMAT
        inputs, outputs = RecipeIO(), RecipeIO()
    else:
        data, inputs, outputs = mapper(result)
        recipe_format = result.format

    return NormalizedRecipe(
        type=normalized_type,
        name=recipe_id,
        mod=get_mod_from_id(recipe_id),
        machine_type=get_machine_type_from_recipe_type(normalized_type),
        format=recipe_format,
        data=data,
        inputs=inputs,
        outputs=outputs,
    )


def normalize_results(
    results: Iterable[ProcessedSegment],
    unsupported_policy: UnsupportedFormatPolicy = "surface",
) -> List[NormalizedRecipe]:
    recipes = []
    for entry in results:
        recipe = normalize_dispatched_recipe(entry, unsupported_policy)
        if recipe is not None:
            recipes.append(recipe)
    return recipes


def recipe_stats(recipes: Sequence[NormalizedRecipe]) -> RecipeStats:
    by_type: Counter = Counter(recipe.type for recipe in recipes if recipe.type)
    by_mod: Counter = Counter(recipe.mod for recipe in recipes if recipe.mod)
    by_format: Counter = Counter(recipe.format for recipe in recipes if recipe.format)
    return RecipeStats(
        total=len(recipes),
        by_type=dict(by_type),
        by_mod=dict(by_mod),
        by_format=dict(by_format),
    )
