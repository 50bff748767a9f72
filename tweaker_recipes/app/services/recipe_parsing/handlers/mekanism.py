"""Mekanism machine recipes: ``<recipetype:mekanism:TYPE>.addRecipe("id", ...);``

Every machine shares the call shape and the quoted id; each subclass only
knows how to read the arguments that follow the id. Arguments are split on
top-level commas so ``<...>`` tokens, bracketed lists and nested calls stay
intact.
"""

import re
from abc import abstractmethod
from typing import Any, Dict, List, Optional, Type

from tweaker_recipes.app.schemas.segment import Segment
from tweaker_recipes.app.services.recipe_parsing.handlers.base import HandlerParseError, MarkerHandler
from tweaker_recipes.app.services.recipe_parsing.models import (
    ChemicalConversionFields,
    CombiningFields,
    EnergyConversionFields,
    ItemChemicalFields,
    NucleosynthesizingFields,
    PairedInputFields,
    ParsedFieldsBase,
    ReactionFields,
    RotaryFields,
    SawingFields,
    SeparatingFields,
    WashingFields,
)
from tweaker_recipes.app.services.recipe_parsing.parsing_utils import (
    parse_bool_flag,
    parse_strict_float,
    parse_strict_int,
    split_last_parameter,
    split_parameters,
    strip_leading_comma,
)

_RECIPE_ID = re.compile(r'"([^"]+)"')


class MekanismHandler(MarkerHandler):
    recipe_type: str = ""
    format: str = ""
    fields_model: Type[ParsedFieldsBase] = ChemicalConversionFields

    def __init__(self):
        self.name = f"mekanism-{self.recipe_type}-handler"
        self.markers = (f"<recipetype:mekanism:{self.recipe_type}>.addRecipe(",)
        self.pattern = re.compile(
            rf"<recipetype:mekanism:{re.escape(self.recipe_type)}>\.addRecipe\((.*)\);\s*$", re.S
        )

    @property
    def label(self) -> str:
        return self.recipe_type.replace("_", " ")

    def _fail(self, detail: str = "") -> HandlerParseError:
        message = f"Unable to match mekanism {self.label} recipe pattern"
        return HandlerParseError(f"{message} - {detail}" if detail else message)

    def _expect(self, params: List[str], *counts: int) -> None:
        if len(params) not in counts:
            expected = " or ".join(str(count) for count in counts)
            raise self._fail(f"expected {expected} parameters, got {len(params)}")

    def _int(self, value: str, what: str) -> int:
        parsed = parse_strict_int(value)
        if parsed is None:
            raise HandlerParseError(f"Unable to parse {what} in mekanism {self.label} recipe: {value.strip()}")
        return parsed

    def _flag(self, value: str) -> bool:
        parsed = parse_bool_flag(value)
        if parsed is None:
            raise HandlerParseError(
                f"Unable to parse boolean flag in mekanism {self.label} recipe: {value.strip()}"
            )
        return parsed

    @abstractmethod
    def parse_parameters(self, params: str) -> Dict[str, Any]:  # pragma: no cover - interface
        raise NotImplementedError

    def parse(self, segment: Segment, context: Optional[Dict[str, Any]] = None) -> ParsedFieldsBase:
        match = self.pattern.search(segment.raw_text or "")
        if not match:
            raise self._fail()
        params = match.group(1).strip()
        id_match = _RECIPE_ID.match(params)
        if not id_match:
            raise self._fail()
        remaining = strip_leading_comma(params[id_match.end():])
        values = self.parse_parameters(remaining)
        return self.fields_model(
            recipe_id=id_match.group(1),
            recipe_type=segment.recipe_type,
            format=self.format,
            **values,
        )


class InputOutputHandler(MekanismHandler):
    """``input, output`` split on the last top-level comma."""

    def parse_parameters(self, params: str) -> Dict[str, Any]:
        split = split_last_parameter(params)
        if split is None:
            raise self._fail()
        return {"input": split[0], "output": split[1]}


class ActivatingHandler(InputOutputHandler):
    recipe_type = "activating"
    format = "addActivating"


class CentrifugingHandler(InputOutputHandler):
    recipe_type = "centrifuging"
    format = "addCentrifuging"


class ChemicalConversionHandler(InputOutputHandler):
    recipe_type = "chemical_conversion"
    format = "addChemicalConversion"


class CrushingHandler(InputOutputHandler):
    recipe_type = "crushing"
    format = "addCrushing"


class CrystallizingHandler(InputOutputHandler):
    recipe_type = "crystallizing"
    format = "addCrystallizing"


class EnrichingHandler(InputOutputHandler):
    recipe_type = "enriching"
    format = "addEnriching"


class EvaporatingHandler(InputOutputHandler):
    recipe_type = "evaporating"
    format = "addEvaporating"


class OxidizingHandler(InputOutputHandler):
    recipe_type = "oxidizing"
    format = "addOxidizing"


class PigmentExtractingHandler(InputOutputHandler):
    recipe_type = "pigment_extracting"
    format = "addPigmentExtracting"


class EnergyConversionHandler(MekanismHandler):
    recipe_type = "energy_conversion"
    format = "addEnergyConversion"
    fields_model = EnergyConversionFields

    def parse_parameters(self, params: str) -> Dict[str, Any]:
        split = split_last_parameter(params)
        if split is None:
            raise self._fail()
        return {"input": split[0], "energy_output": self._int(split[1], "energy value")}


class CombiningHandler(MekanismHandler):
    recipe_type = "combining"
    format = "addCombining"
    fields_model = CombiningFields

    def parse_parameters(self, params: str) -> Dict[str, Any]:
        values = split_parameters(params)
        self._expect(values, 3)
        return {"main_input": values[0], "extra_input": values[1], "output": values[2]}


class PairedInputHandler(MekanismHandler):
    fields_model = PairedInputFields

    def parse_parameters(self, params: str) -> Dict[str, Any]:
        values = split_parameters(params)
        self._expect(values, 3)
        return {"left_input": values[0], "right_input": values[1], "output": values[2]}


class ChemicalInfusingHandler(PairedInputHandler):
    recipe_type = "chemical_infusing"
    format = "addChemicalInfusing"


class PigmentMixingHandler(PairedInputHandler):
    recipe_type = "pigment_mixing"
    format = "addPigmentMixing"


class ItemChemicalHandler(MekanismHandler):
    """``input, chemicalInput, output, perTick``"""

    fields_model = ItemChemicalFields

    def parse_parameters(self, params: str) -> Dict[str, Any]:
        values = split_parameters(params)
        self._expect(values, 4)
        return {
            "input": values[0],
            "chemical_input": values[1],
            "output": values[2],
            "per_tick": self._flag(values[3]),
        }


class CompressingHandler(ItemChemicalHandler):
    recipe_type = "compressing"
    format = "addCompressing"


class DissolutionHandler(ItemChemicalHandler):
    recipe_type = "dissolution"
    format = "addDissolution"


class InjectingHandler(ItemChemicalHandler):
    recipe_type = "injecting"
    format = "addInjecting"


class MetallurgicInfusingHandler(ItemChemicalHandler):
    recipe_type = "metallurgic_infusing"
    format = "addMetallurgicInfusing"


class PaintingHandler(ItemChemicalHandler):
    recipe_type = "painting"
    format = "addPainting"


class PurifyingHandler(ItemChemicalHandler):
    recipe_type = "purifying"
    format = "addPurifying"


class NucleosynthesizingHandler(MekanismHandler):
    recipe_type = "nucleosynthesizing"
    format = "addNucleosynthesizing"
    fields_model = NucleosynthesizingFields

    def parse_parameters(self, params: str) -> Dict[str, Any]:
        values = split_parameters(params)
        self._expect(values, 5)
        return {
            "input": values[0],
            "chemical_input": values[1],
            "output": values[2],
            "duration": self._int(values[3], "duration"),
            "per_tick": self._flag(values[4]),
        }


class ReactionHandler(MekanismHandler):
    """Item, fluid and chemical inputs plus duration, then one of three output layouts.

    5 params: chemical output. 6: item and chemical output. 7: adds an extra parameter.
    """

    recipe_type = "reaction"
    format = "addReaction"
    fields_model = ReactionFields

    def parse_parameters(self, params: str) -> Dict[str, Any]:
        values = split_parameters(params)
        self._expect(values, 5, 6, 7)
        result = {
            "item_input": values[0],
            "fluid_input": values[1],
            "chemical_input": values[2],
            "duration": self._int(values[3], "duration"),
            "item_output": None,
            "chemical_output": None,
            "extra_param": None,
        }
        if len(values) == 5:
            result["chemical_output"] = values[4]
        else:
            result["item_output"] = values[4]
            result["chemical_output"] = values[5]
            if len(values) == 7:
                result["extra_param"] = values[6]
        return result


class RotaryHandler(MekanismHandler):
    recipe_type = "rotary"
    format = "addRotary"
    fields_model = RotaryFields

    def parse_parameters(self, params: str) -> Dict[str, Any]:
        values = split_parameters(params)
        self._expect(values, 4)
        return {
            "fluid_input": values[0],
            "chemical_from_fluid": values[1],
            "chemical_to_fluid": values[2],
            "fluid_output": values[3],
        }


class SawingHandler(MekanismHandler):
    recipe_type = "sawing"
    format = "addSawing"
    fields_model = SawingFields

    def parse_parameters(self, params: str) -> Dict[str, Any]:
        values = split_parameters(params)
        self._expect(values, 2, 4)
        if len(values) == 2:
            return {"input": values[0], "primary_output": values[1], "secondary_output": None, "probability": 0.0}
        probability = parse_strict_float(values[3])
        if probability is None:
            raise HandlerParseError(f"Unable to parse probability in mekanism sawing recipe: {values[3]}")
        return {
            "input": values[0],
            "primary_output": values[1],
            "secondary_output": values[2],
            "probability": probability,
        }


class SeparatingHandler(MekanismHandler):
    recipe_type = "separating"
    format = "addSeparating"
    fields_model = SeparatingFields

    def parse_parameters(self, params: str) -> Dict[str, Any]:
        values = split_parameters(params)
        self._expect(values, 3)
        return {"fluid_input": values[0], "left_output": values[1], "right_output": values[2]}


class WashingHandler(MekanismHandler):
    recipe_type = "washing"
    format = "addWashing"
    fields_model = WashingFields

    def parse_parameters(self, params: str) -> Dict[str, Any]:
        values = split_parameters(params)
        self._expect(values, 3)
        return {"fluid_input": values[0], "dirty_input": values[1], "clean_output": values[2]}


MEKANISM_HANDLER_CLASSES: List[Type[MekanismHandler]] = [
    ActivatingHandler,
    CentrifugingHandler,
    ChemicalConversionHandler,
    ChemicalInfusingHandler,
    CombiningHandler,
    CompressingHandler,
    CrushingHandler,
    CrystallizingHandler,
    DissolutionHandler,
    EnergyConversionHandler,
    EnrichingHandler,
    EvaporatingHandler,
    InjectingHandler,
    MetallurgicInfusingHandler,
    NucleosynthesizingHandler,
    OxidizingHandler,
    PaintingHandler,
    PigmentExtractingHandler,
    PigmentMixingHandler,
    PurifyingHandler,
    ReactionHandler,
    RotaryHandler,
    SawingHandler,
    SeparatingHandler,
    WashingHandler,
]


def mekanism_handlers() -> List[MekanismHandler]:
    return [handler_class() for handler_class in MEKANISM_HANDLER_CLASSES]
