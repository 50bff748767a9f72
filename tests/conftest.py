import pytest

from tweaker_recipes.app.core.config import get_settings
from tweaker_recipes.app.schemas.segment import Segment
from tweaker_recipes.app.services.recipe_parsing import create_default_dispatcher

SAMPLE_LOG = """[12:00:00] [INFO] CraftTweaker recipe dump
Recipe type: '<recipetype:minecraft:crafting>'
craftingTable.addShaped("minecraft:torch", <item:minecraft:torch> * 4, [
    [<item:minecraft:coal>],
    [<item:minecraft:stick>]
]);
craftingTable.addShapeless("minecraft:flint_and_steel", <item:minecraft:flint_and_steel>, [<item:minecraft:iron_ingot>, <item:minecraft:flint>]);
Recipe type: '<recipetype:minecraft:smelting>'
furnace.addRecipe("minecraft:iron_ingot", <item:minecraft:iron_ingot>, <item:minecraft:raw_iron>, 0.7, 200);
Recipe type: '<recipetype:create:pressing>'
<recipetype:create:pressing>.addJsonRecipe("create:pressing/iron_sheet", {ingredients: [{item: 'minecraft:iron_ingot'}], results: [{item: 'create:iron_sheet'}]});
Recipe type: '<recipetype:mekanism:crushing>'
<recipetype:mekanism:crushing>.addRecipe("mekanism:crushing/charcoal", <item:minecraft:charcoal>, <item:mekanism:dust_charcoal>);
Recipe type: '<recipetype:unknownmod:widget>'
unknownmod.addWidget("unknownmod:thing", <item:unknownmod:thing>);
"""


@pytest.fixture(autouse=True)
def clear_settings_cache(monkeypatch):
    for name in (
        "TWEAKER_SEGMENT_OUTPUT_DIR",
        "TWEAKER_SEGMENT_PREFIX",
        "TWEAKER_SEGMENT_INCLUDE_RAW",
        "TWEAKER_DISPATCH_CONCURRENCY",
        "TWEAKER_DISPATCH_TIMEOUT_SECONDS",
        "TWEAKER_UNSUPPORTED_FORMAT_POLICY",
        "TWEAKER_STATS_MAX_UNHANDLED",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sample_log():
    return SAMPLE_LOG


@pytest.fixture
def make_segment():
    def factory(raw_text, recipe_type=None, start_line=1, end_line=None):
        return Segment(
            recipe_type=recipe_type,
            start_line=start_line,
            end_line=end_line if end_line is not None else start_line + raw_text.count("\n"),
            raw_text=raw_text,
        )

    return factory


@pytest.fixture
def dispatcher():
    return create_default_dispatcher()
