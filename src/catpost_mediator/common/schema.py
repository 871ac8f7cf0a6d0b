"""Pydantic models and dataclasses for request/response types."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class _RequestModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def null_as_default(cls, value, info: ValidationInfo):
        # JSON null is treated like an omitted field
        if value is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value


class GenerationInputs(_RequestModel):
    """Cat profile fields as sent by the form."""

    cat_name: str = Field("", alias="catName")
    age_value: str = Field("", alias="ageValue")
    age_unit: Literal["months", "years"] = Field("years", alias="ageUnit")
    sex: Literal["male", "female", "unknown"] = "unknown"
    neutered: Literal["yes", "no", "unknown"] = "unknown"
    temperament: Union[str, list[str]] = ""
    rescue_story: str = Field("", alias="rescueStory")
    health_notes: str = Field("", alias="healthNotes")
    special_needs: Optional[str] = Field(None, alias="specialNeeds")
    adoption_requirements: str = Field("", alias="adoptionRequirements")
    contact: Optional[str] = None


class GenerateIn(_RequestModel):
    """Body of POST /generate."""

    token: str = ""
    inputs: GenerationInputs = Field(default_factory=GenerationInputs)
    style_preset: str = Field("", alias="stylePreset")
    creativity: float = 0
    output_length: Optional[Literal["short", "medium", "long"]] = Field(None, alias="outputLength")


class GenerateOut(BaseModel):
    title: str = ""
    text: str


@dataclass(frozen=True)
class GenerationResult:
    """Normalized, length-capped model output."""
    title: str
    text: str


@dataclass(frozen=True)
class AccessRequest:
    """Transport-neutral view of one inbound request."""
    method: str
    origin: str = ""
    client_address: str = "unknown"
    body: bytes = b""


@dataclass
class MediatorResponse:
    """Terminal response produced by the request-lifecycle driver."""
    status_code: int
    body: Optional[dict] = None
    headers: dict[str, str] = field(default_factory=dict)
