from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Dict, List, Literal, Optional, Tuple


IngredientCategory = Literal[
    "meat", "seafood", "vegetable", "dairy", "grain", "sauce", "spice", "chocolate", "other"
]


class Step(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(min_length=1)
    text: str
    # ids of steps that must complete first; empty means the step can start right away
    depends_on: Tuple[str, ...] = Field(default=(), alias="dependsOn")
    duration_minutes: Optional[float] = Field(default=None, gt=0, alias="duration")
    # passive steps (simmering, resting) leave the cook free to multitask
    is_passive: Optional[bool] = Field(default=None, alias="isPassive")
    # true when the duration is a precise timing rather than an estimate
    needs_timer: Optional[bool] = Field(default=None, alias="needsTimer")
    ingredients: List[str] = Field(default_factory=list)
    temperature: Optional[str] = None

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("step text must not be empty")
        return v

    @field_validator("depends_on")
    @classmethod
    def _collapse_duplicates(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        return tuple(dict.fromkeys(v))

    @property
    def has_timer(self) -> bool:
        """Whether a countdown alert is meaningful for this step."""
        return bool(self.needs_timer) and self.duration_minutes is not None


class Recipe(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    title: str
    description: str = ""
    source_url: Optional[str] = Field(default=None, alias="sourceUrl")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    ingredients: List[str] = Field(default_factory=list)
    # short ingredient name -> category, used to color ingredient chips
    ingredient_categories: Dict[str, IngredientCategory] = Field(
        default_factory=dict, alias="ingredientCategories"
    )
    steps: Tuple[Step, ...]
    created_at: Optional[int] = Field(default=None, alias="createdAt")
    featured: bool = False

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
