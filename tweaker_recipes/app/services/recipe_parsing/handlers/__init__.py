"""Built-in recipe handlers.

``default_handlers`` returns them in registry order: the JSON handler first,
then crafting table, cooking machines, smithing, Farmer's Delight and the
Mekanism machines.
"""

from typing import List

from tweaker_recipes.app.services.recipe_parsing.handlers.base import (
    HandlerParseError,
    MarkerHandler,
    RecipeHandler,
)
from tweaker_recipes.app.services.recipe_parsing.handlers.crafting import (
    ShapedCraftingHandler,
    ShapelessCraftingHandler,
)
from tweaker_recipes.app.services.recipe_parsing.handlers.farmersdelight import (
    CookingPotHandler,
    CuttingBoardHandler,
)
from tweaker_recipes.app.services.recipe_parsing.handlers.furnace import (
    BlastFurnaceHandler,
    CampfireHandler,
    FurnaceHandler,
    SmeltingHandler,
    SmokingHandler,
)
from tweaker_recipes.app.services.recipe_parsing.handlers.json_recipe import JsonCraftingHandler
from tweaker_recipes.app.services.recipe_parsing.handlers.mekanism import (
    MEKANISM_HANDLER_CLASSES,
    MekanismHandler,
    mekanism_handlers,
)
from tweaker_recipes.app.services.recipe_parsing.handlers.smithing import SmithingHandler


def default_handlers() -> List[RecipeHandler]:
    return [
        JsonCraftingHandler(),
        ShapedCraftingHandler(),
        ShapelessCraftingHandler(),
        SmeltingHandler(),
        BlastFurnaceHandler(),
        SmokingHandler(),
        CampfireHandler(),
        SmithingHandler(),
        CookingPotHandler(),
        CuttingBoardHandler(),
        *mekanism_handlers(),
    ]


__all__ = [
    # Base types
    "HandlerParseError",
    "MarkerHandler",
    "RecipeHandler",
    # Handlers
    "BlastFurnaceHandler",
    "CampfireHandler",
    "CookingPotHandler",
    "CuttingBoardHandler",
    "FurnaceHandler",
    "JsonCraftingHandler",
    "MekanismHandler",
    "MEKANISM_HANDLER_CLASSES",
    "ShapedCraftingHandler",
    "ShapelessCraftingHandler",
    "SmeltingHandler",
    "SmithingHandler",
    "SmokingHandler",
    # Registry
    "default_handlers",
    "mekanism_handlers",
]
