from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


class RecipeItem(BaseModel):
    item: str
    amount: int = 1


class RecipeFluid(BaseModel):
    fluid: str
    amount: int = 1


class RecipeIO(BaseModel):
    items: List[RecipeItem] = Field(default_factory=list)
    fluids: List[RecipeFluid] = Field(default_factory=list)


class NormalizedRecipe(BaseModel):
    type: str
    name: str
    mod: str
    machine_type: str = Field(alias="machineType")
    format: str
    data: Any = Field(default_factory=dict)
    inputs: RecipeIO = Field(default_factory=RecipeIO)
    outputs: RecipeIO = Field(default_factory=RecipeIO)

    model_config = ConfigDict(populate_by_name=True)


class RecipeStats(BaseModel):
    total: int = 0
    by_type: Dict[str, int] = Field(default_factory=dict, alias="byType")
    by_mod: Dict[str, int] = Field(default_factory=dict, alias="byMod")
    by_format: Dict[str, int] = Field(default_factory=dict, alias="byFormat")

    model_config = ConfigDict(populate_by_name=True)
