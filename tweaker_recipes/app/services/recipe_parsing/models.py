"""Pydantic models for handler results and dispatch outcomes."""

from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from tweaker_recipes.app.schemas.segment import Segment


class OutputSpec(BaseModel):
    raw: Optional[str] = None
    count: int = 1


class ParsedFieldsBase(BaseModel):
    recipe_id: str = Field(alias="recipeId")
    recipe_type: Optional[str] = Field(None, alias="recipeType")

    model_config = ConfigDict(populate_by_name=True)


class ShapedFields(ParsedFieldsBase):
    format: Literal["addShaped"] = "addShaped"
    output: str
    output_parsed: OutputSpec = Field(alias="outputParsed")
    pattern: str


class ShapelessFields(ParsedFieldsBase):
    format: Literal["addShapeless"] = "addShapeless"
    output: str
    output_parsed: OutputSpec = Field(alias="outputParsed")
    ingredients: str


class FurnaceFields(ParsedFieldsBase):
    format: Literal["addSmelting", "addBlastFurnace", "addSmoking", "addCampfire"]
    output: str
    input: str
    experience: float = 0.0
    cook_time: int = Field(alias="cookTime")


class SmithingTransformFields(ParsedFieldsBase):
    format: Literal["addSmithingTransform"] = "addSmithingTransform"
    output: str
    template: str
    base: str
    addition: str


class SmithingTrimFields(ParsedFieldsBase):
    format: Literal["addSmithingTrim"] = "addSmithingTrim"
    template: str
    base: str
    addition: str


class JsonRecipeFields(ParsedFieldsBase):
    format: Literal["addJsonRecipe"] = "addJsonRecipe"
    data: Any = None


class CookingPotFields(ParsedFieldsBase):
    format: Literal["addCooking"] = "addCooking"
    output: str
    ingredients: str
    container: str
    experience: float = 0.0
    cook_time: int = Field(alias="cookTime")


class CuttingFields(ParsedFieldsBase):
    format: Literal["addCutting"] = "addCutting"
    input: str
    outputs: str
    tool: str
    optional: str


class ChemicalConversionFields(ParsedFieldsBase):
    format: Literal[
        "addActivating",
        "addCentrifuging",
        "addChemicalConversion",
        "addCrushing",
        "addCrystallizing",
        "addEnriching",
        "addEvaporating",
        "addOxidizing",
        "addPigmentExtracting",
    ]
    input: str
    output: str


class EnergyConversionFields(ParsedFieldsBase):
    format: Literal["addEnergyConversion"] = "addEnergyConversion"
    input: str
    energy_output: int = Field(alias="energyOutput")


class CombiningFields(ParsedFieldsBase):
    format: Literal["addCombining"] = "addCombining"
    main_input: str = Field(alias="mainInput")
    extra_input: str = Field(alias="extraInput")
    output: str


class PairedInputFields(ParsedFieldsBase):
    format: Literal["addChemicalInfusing", "addPigmentMixing"]
    left_input: str = Field(alias="leftInput")
    right_input: str = Field(alias="rightInput")
    output: str


class ItemChemicalFields(ParsedFieldsBase):
    format: Literal[
        "addCompressing",
        "addDissolution",
        "addInjecting",
        "addMetallurgicInfusing",
        "addPainting",
        "addPurifying",
    ]
    input: str
    chemical_input: str = Field(alias="chemicalInput")
    output: str
    per_tick: bool = Field(alias="perTick")


class NucleosynthesizingFields(ParsedFieldsBase):
    format: Literal["addNucleosynthesizing"] = "addNucleosynthesizing"
    input: str
    chemical_input: str = Field(alias="chemicalInput")
    output: str
    duration: int
    per_tick: bool = Field(alias="perTick")


class ReactionFields(ParsedFieldsBase):
    format: Literal["addReaction"] = "addReaction"
    item_input: str = Field(alias="itemInput")
    fluid_input: str = Field(alias="fluidInput")
    chemical_input: str = Field(alias="chemicalInput")
    duration: int
    item_output: Optional[str] = Field(None, alias="itemOutput")
    chemical_output: Optional[str] = Field(None, alias="chemicalOutput")
    extra_param: Optional[str] = Field(None, alias="extraParam")


class RotaryFields(ParsedFieldsBase):
    format: Literal["addRotary"] = "addRotary"
    fluid_input: str = Field(alias="fluidInput")
    chemical_from_fluid: str = Field(alias="chemicalFromFluid")
    chemical_to_fluid: str = Field(alias="chemicalToFluid")
    fluid_output: str = Field(alias="fluidOutput")


class SawingFields(ParsedFieldsBase):
    format: Literal["addSawing"] = "addSawing"
    input: str
    primary_output: str = Field(alias="primaryOutput")
    secondary_output: Optional[str] = Field(None, alias="secondaryOutput")
    probability: float = 0.0


class SeparatingFields(ParsedFieldsBase):
    format: Literal["addSeparating"] = "addSeparating"
    fluid_input: str = Field(alias="fluidInput")
    left_output: str = Field(alias="leftOutput")
    right_output: str = Field(alias="rightOutput")


class WashingFields(ParsedFieldsBase):
    format: Literal["addWashing"] = "addWashing"
    fluid_input: str = Field(alias="fluidInput")
    dirty_input: str = Field(alias="dirtyInput")
    clean_output: str = Field(alias="cleanOutput")


ParsedFields = Annotated[
    Union[
        ShapedFields,
        ShapelessFields,
        FurnaceFields,
        SmithingTransformFields,
        SmithingTrimFields,
        JsonRecipeFields,
        CookingPotFields,
        CuttingFields,
        ChemicalConversionFields,
        EnergyConversionFields,
        CombiningFields,
        PairedInputFields,
        ItemChemicalFields,
        NucleosynthesizingFields,
        ReactionFields,
        RotaryFields,
        SawingFields,
        SeparatingFields,
        WashingFields,
    ],
    Field(discriminator="format"),
]


class ParsedOutcome(BaseModel):
    status: Literal["parsed"] = "parsed"
    handler: str
    score: float
    # Built-in handlers return a ParsedFields variant; custom handlers may return any mapping.
    result: Any = None


class ErrorOutcome(BaseModel):
    status: Literal["error"] = "error"
    handler: str
    score: float
    error: str


class UnhandledOutcome(BaseModel):
    status: Literal["unhandled"] = "unhandled"


DispatchOutcome = Annotated[
    Union[ParsedOutcome, ErrorOutcome, UnhandledOutcome],
    Field(discriminator="status"),
]


class ProcessedSegment(BaseModel):
    segment: Segment
    dispatch: DispatchOutcome


class ProcessingSummary(BaseModel):
    total: int = 0
    parsed: int = 0
    errors: int = 0
    unhandled: int = 0
    results: List[ProcessedSegment] = Field(default_factory=list)

    @classmethod
    def from_results(cls, results: List[ProcessedSegment]) -> "ProcessingSummary":
        return cls(
            total=len(results),
            parsed=sum(1 for entry in results if entry.dispatch.status == "parsed"),
            errors=sum(1 for entry in results if entry.dispatch.status == "error"),
            unhandled=sum(1 for entry in results if entry.dispatch.status == "unhandled"),
            results=results,
        )
