"""
Models describing how each repository is allowed to be updated.
"""
from typing import Optional
from enum import Enum
from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class PolicyKind(str, Enum):
    """
    Update strategies a repository can be assigned.
    """
    STATIC_PIN = "static_pin"
    API_LOOKUP = "api_lookup"
    ALWAYS_SKIP = "always_skip"
    MAJOR_GATED = "major_gated"
    RELEASE_LOOKUP = "release_lookup"


class PolicyEntry(BaseModel):
    """
    Update rule for a single repository.

    MAJOR_GATED entries are always gated; `major_gated` switches the gate on
    for the other lookup kinds.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: PolicyKind = PolicyKind.API_LOOKUP
    preserve_flavor: bool = False
    major_gated: bool = False
    pin: Optional[str] = None
    source: Optional[str] = None
    note: Optional[str] = None

    @field_validator("pin", "source", "note", mode="before")
    @classmethod
    def _numbers_as_text(cls, value):
        # YAML reads unquoted tags such as 1.27 as numbers
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @model_validator(mode="after")
    def _check_kind_fields(self) -> "PolicyEntry":
        if self.kind == PolicyKind.STATIC_PIN and not self.pin:
            raise ValueError("static_pin policy requires a 'pin' tag")
        if self.kind == PolicyKind.RELEASE_LOOKUP and not self.source:
            raise ValueError("release_lookup policy requires a 'source' (org/repo)")
        return self

    @property
    def gated(self) -> bool:
        return self.major_gated or self.kind == PolicyKind.MAJOR_GATED


class Mode(str, Enum):
    """
    How recommended tags are chosen.
    """
    OFFICIAL = "official"
    CONSERVATIVE = "conservative"
