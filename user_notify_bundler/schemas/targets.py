"""Pydantic models for declarative target files."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class TargetSpec(BaseModel):
    name: str
    crate: str = Field(..., description="Cargo package directory; also the compiled binary name.")
    bundle_id: Optional[str] = Field(default=None, description="Default bundle id for the target.")

    model_config = ConfigDict(extra="forbid")

    @field_validator("name", "crate")
    @classmethod
    def _plain_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        if "/" in value or value in {".", ".."}:
            raise ValueError(f"must be a plain name (got '{value}')")
        return value

    @field_validator("bundle_id")
    @classmethod
    def _bundle_id(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("bundle_id must not be empty when provided")
        return value


class TargetFile(BaseModel):
    targets: List[TargetSpec] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _unique_names(self) -> "TargetFile":
        seen: set[str] = set()
        for spec in self.targets:
            if spec.name in seen:
                raise ValueError(f"Duplicate target name '{spec.name}'.")
            seen.add(spec.name)
        if not self.targets:
            raise ValueError("Target file declares no targets.")
        return self
