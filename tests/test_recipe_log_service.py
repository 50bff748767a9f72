import json
import logging

import pytest

from tweaker_recipes.app.core.config import Settings
from tweaker_recipes.app.services.log_segmenter import LogFileNotFoundError
from tweaker_recipes.app.services.recipe_log_service import (
    parse_recipe_log,
    parse_recipe_log_file,
    write_summary,
)
from tweaker_recipes.app.services.recipe_parsing import RecipeDispatcher


@pytest.mark.asyncio
async def test_parse_recipe_log_end_to_end(sample_log, caplog):
    with caplog.at_level(logging.DEBUG):
        result = await parse_recipe_log(sample_log)

    summary = result.summary
    assert (summary.total, summary.parsed, summary.errors, summary.unhandled) == (6, 5, 0, 1)
    assert [entry.dispatch.status for entry in summary.results] == ["parsed"] * 5 + ["unhandled"]
    assert "Unhandled segment at lines 15-15" in caplog.text

    by_name = {recipe.name: recipe for recipe in result.recipes}
    assert set(by_name) == {
        "minecraft:torch",
        "minecraft:flint_and_steel",
        "minecraft:iron_ingot",
        "create:pressing/iron_sheet",
        "mekanism:crushing/charcoal",
    }
    assert by_name["minecraft:torch"].format == "addShaped"
    assert by_name["minecraft:iron_ingot"].type == "minecraft:smelting"
    assert by_name["minecraft:iron_ingot"].data["experience"] == 0.7
    assert by_name["create:pressing/iron_sheet"].machine_type == "pressing"
    assert by_name["mekanism:crushing/charcoal"].outputs.items[0].item == "<item:mekanism:dust_charcoal>"

    assert result.stats.total == 5
    assert result.stats.by_mod == {"minecraft": 3, "create": 1, "mekanism": 1}


@pytest.mark.asyncio
async def test_error_segments_are_logged_and_skipped(caplog):
    log = "\n".join(
        [
            "Recipe type: '<recipetype:farmersdelight:cooking>'",
            '<recipetype:farmersdelight:cooking>.addRecipe("broken", <item:a:b>);',
            'furnace.addRecipe("ok", <item:a:out>, <item:a:in>, 0.1, 200);',
        ]
    )

    with caplog.at_level(logging.WARNING):
        result = await parse_recipe_log(log)

    assert result.summary.errors == 1
    assert [recipe.name for recipe in result.recipes] == ["ok"]
    assert "Failed to parse segment at lines 2-2: Unable to match farmersdelight cooking recipe pattern" in caplog.text


@pytest.mark.asyncio
async def test_settings_drive_concurrency_and_policy(sample_log):
    class CustomHandler:
        name = "custom-handler"

        def can_parse(self, segment, context=None):
            return 1 if "unknownmod" in (segment.raw_text or "") else 0

        def parse(self, segment, context=None):
            return {"recipeId": "unknownmod:thing"}

    dispatcher = RecipeDispatcher([CustomHandler()])

    surfaced = await parse_recipe_log(sample_log, dispatcher=dispatcher, settings=Settings(dispatch_concurrency=3))
    dropped = await parse_recipe_log(
        sample_log, dispatcher=dispatcher, settings=Settings(unsupported_format_policy="drop")
    )

    assert [recipe.format for recipe in surfaced.recipes] == ["unsupported"]
    assert surfaced.recipes[0].type == "unknownmod:widget"
    assert dropped.recipes == []
    assert dropped.summary.parsed == 1


@pytest.mark.asyncio
async def test_parse_recipe_log_file_matches_in_memory(tmp_path, sample_log):
    log_path = tmp_path / "crafttweaker.log"
    log_path.write_text(sample_log, encoding="utf-8")

    from_file = await parse_recipe_log_file(log_path)
    in_memory = await parse_recipe_log(sample_log)

    assert from_file.recipes == in_memory.recipes
    assert from_file.summary.total == in_memory.summary.total


@pytest.mark.asyncio
async def test_parse_recipe_log_file_missing(tmp_path):
    with pytest.raises(LogFileNotFoundError):
        await parse_recipe_log_file(tmp_path / "missing.log")


@pytest.mark.asyncio
async def test_parse_recipe_log_rejects_non_string():
    with pytest.raises(TypeError, match="log_content must be a string"):
        await parse_recipe_log(None)


@pytest.mark.asyncio
async def test_write_summary_uses_camel_case(tmp_path, sample_log):
    result = await parse_recipe_log(sample_log)

    path = write_summary(result.summary, tmp_path / "reports" / "summary.json")

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["total"] == 6
    first = payload["results"][0]
    assert first["segment"]["startLine"] == 3
    assert first["dispatch"]["status"] == "parsed"
    assert first["dispatch"]["handler"] == "shaped-crafting-handler"
    assert first["dispatch"]["result"]["recipeId"] == "minecraft:torch"
    assert first["dispatch"]["result"]["outputParsed"] == {"raw": "<item:minecraft:torch>", "count": 4}
