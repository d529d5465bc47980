from __future__ import annotations

import re
from typing import List, Literal, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from memograph.errors import ExternalCapabilityError


ClaimType = Literal["Claim", "Evidence", "Definition", "Source"]
EntityType = Literal["Person", "Source", "Definition"]
RelationType = Literal[
    "related_to",
    "supports",
    "refutes",
    "defines",
    "caused_by",
    "derived_from",
    "example_of",
    "part_of",
]


class _StrictModel(BaseModel):
    """
    Capability output is never coerced: unknown keys and wrong types fail.
    """

    model_config = ConfigDict(extra="forbid", strict=True)


# ---------------------------------------------------------------------
# Toulmin extraction
# ---------------------------------------------------------------------


class ExtractedClaim(_StrictModel):
    text: str
    qualifier: float
    type: ClaimType


class ExtractedRelationship(_StrictModel):
    source_index: int
    target_index: int
    type: RelationType
    weight: float


class ExtractedEntity(_StrictModel):
    name: str
    type: EntityType


class ToulminExtraction(_StrictModel):
    claims: List[ExtractedClaim] = Field(default_factory=list)
    relationships: List[ExtractedRelationship] = Field(default_factory=list)
    entities: List[ExtractedEntity] = Field(default_factory=list)


# ---------------------------------------------------------------------
# Node analysis
# ---------------------------------------------------------------------


class SummaryAnalysis(_StrictModel):
    summary: str
    claim: str
    grounds: List[str] = Field(default_factory=list)
    qualifier: float = Field(ge=0.0, le=1.0)


class ArgumentationAssessment(_StrictModel):
    assessment: Literal["strong", "moderate", "weak"]
    missing_evidence: List[str] = Field(default_factory=list)
    potential_rebuttals: List[str] = Field(default_factory=list)
    suggested_qualifier: float = Field(ge=0.0, le=1.0)
    reasoning: str


class LinkSuggestion(_StrictModel):
    source_id: str
    target_id: str
    type: RelationType
    weight: float
    reason: str = ""


class LinkSuggestions(_StrictModel):
    suggestions: List[LinkSuggestion] = Field(default_factory=list)


# ---------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------


M = TypeVar("M", bound=BaseModel)

_FENCE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL)


def strip_json_fence(raw: str) -> str:
    """
    Remove a single surrounding ```json fence, if the model added one.
    """
    match = _FENCE.match(raw)
    return match.group(1) if match else raw


def parse_capability_output(model_cls: Type[M], raw: str, *, capability: str = "complete") -> M:
    """
    Validate raw completion text against a strict schema.

    Non-JSON text and any structural mismatch raise ExternalCapabilityError.
    """
    if not raw or not raw.strip():
        raise ExternalCapabilityError(capability, "empty response")
    try:
        return model_cls.model_validate_json(strip_json_fence(raw))
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        where = ".".join(str(p) for p in first.get("loc", ())) or "<root>"
        raise ExternalCapabilityError(
            capability,
            f"{model_cls.__name__} schema mismatch at {where}: {first.get('msg')}",
        ) from exc
