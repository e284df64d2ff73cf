# qa_grading/schemas/template.py
import json
from typing import Any, List

from pydantic import BaseModel, Field, field_validator, model_validator

REQUIRED_TOTAL_WEIGHT = 100


class RatingLabel(BaseModel):
    value: float
    label: str


def _default_labels() -> List[RatingLabel]:
    return [
        RatingLabel(value=5, label="Exceeds Performance"),
        RatingLabel(value=4, label="Meets Performance"),
        RatingLabel(value=3, label="Company Standard"),
        RatingLabel(value=2, label="Poor"),
        RatingLabel(value=1, label="Unsatisfactory"),
    ]


class RatingScale(BaseModel):
    min: float = 1
    max: float = 5
    allow_decimals: bool = Field(default=True, alias="allowDecimals")
    labels: List[RatingLabel] = Field(default_factory=_default_labels)

    model_config = {"populate_by_name": True}

    @field_validator("labels", mode="before")
    @classmethod
    def _labels_or_default(cls, v):
        if not v:
            return _default_labels()
        return v


class Subcategory(BaseModel):
    name: str
    weight: int = Field(ge=0)


class Category(BaseModel):
    name: str
    subcategories: List[Subcategory] = Field(default_factory=list)


class EvaluationTemplate(BaseModel):
    id: int | str
    name: str
    categories: List[Category] = Field(default_factory=list)
    rating_scale: RatingScale = Field(default_factory=RatingScale, alias="ratingScale")

    model_config = {"populate_by_name": True}

    @field_validator("categories", mode="before")
    @classmethod
    def _decode_categories(cls, v: Any):
        return _decode_json(v, empty=[])

    @field_validator("rating_scale", mode="before")
    @classmethod
    def _decode_rating_scale(cls, v: Any):
        return _decode_json(v, empty={})

    @model_validator(mode="after")
    def _weights_sum_to_100(self):
        total = total_weight(self)
        if total != REQUIRED_TOTAL_WEIGHT:
            raise ValueError(
                f"Total weight must be {REQUIRED_TOTAL_WEIGHT}%. Current total: {total}%"
            )
        return self


def _decode_json(v: Any, *, empty):
    # templates stored as text columns come back JSON-encoded
    if v is None:
        return empty
    if isinstance(v, str):
        try:
            return json.loads(v)
        except json.JSONDecodeError as e:
            raise ValueError(f"not valid JSON: {e.msg}")
    return v


def total_weight(template: EvaluationTemplate) -> int:
    return sum(sub.weight for cat in template.categories for sub in cat.subcategories)


class TemplateResolveRequest(BaseModel):
    class_code: str
    templates: List[EvaluationTemplate]


class TemplateResolveResponse(BaseModel):
    class_code: str
    valid: bool
    trial_class: bool
    template_id: int | str | None = None
