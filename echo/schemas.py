"""Pydantic schemas for structured model output, plus lenient JSON extraction."""

from __future__ import annotations

import json
import re
from typing import Annotated, Any, Dict, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from echo.errors import ServiceError

T = TypeVar("T", bound=BaseModel)

RequiredText = Annotated[str, Field(min_length=1)]


class StrictModel(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class SummaryOutput(StrictModel):
    summary: RequiredText
    key_contributions: RequiredText

    @field_validator("key_contributions", mode="before")
    @classmethod
    def _join_contribution_list(cls, value: Any) -> Any:
        # Models sometimes return one entry per agent instead of a single block.
        if isinstance(value, list):
            return "\n".join(str(v) for v in value)
        if isinstance(value, dict):
            return "\n".join(f"{k}: {v}" for k, v in value.items())
        return value


class PlanOutput(StrictModel):
    timeframe: RequiredText
    project_phases_flowchart: RequiredText
    cost_estimation_flowchart: RequiredText
    resource_allocation: RequiredText
    feasibility_assessment: RequiredText
    refined_strategy: RequiredText


def parse_json_object(raw_text: str) -> Dict[str, Any]:
    """Extract a JSON object from model text, tolerating code fences and chatter."""
    cleaned = raw_text.strip()
    cleaned = re.sub(r"^```json\s*", "", cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r"^```\s*", "", cleaned)
    cleaned = re.sub(r"\s*```$", "", cleaned)

    try:
        parsed = json.loads(cleaned)
        if not isinstance(parsed, dict):
            raise json.JSONDecodeError("Root JSON must be object", cleaned, 0)
        return parsed
    except json.JSONDecodeError:
        pass

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end == -1 or start >= end:
        raise json.JSONDecodeError("Could not locate JSON object", cleaned, 0)

    candidate = cleaned[start : end + 1]
    candidate = candidate.replace("“", '"').replace("”", '"')
    candidate = re.sub(r",\s*([}\]])", r"\1", candidate)
    parsed = json.loads(candidate)
    if not isinstance(parsed, dict):
        raise json.JSONDecodeError("Root JSON must be object", candidate, 0)
    return parsed


def parse_structured(service: str, raw_text: str, schema: Type[T]) -> T:
    """Parse and validate model output, mapping any defect to ServiceError."""
    try:
        return schema.model_validate(parse_json_object(raw_text))
    except json.JSONDecodeError as exc:
        raise ServiceError(service, f"Model did not return structured output: {exc.msg}") from exc
    except ValidationError as exc:
        fields = ", ".join(str(err["loc"][0]) for err in exc.errors() if err.get("loc"))
        raise ServiceError(service, f"Missing or empty required fields: {fields}") from exc
