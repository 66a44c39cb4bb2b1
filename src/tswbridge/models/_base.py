"""Base models for tswbridge.

:class:`TswBaseModel` is the frozen base for records the bridge serves.
:class:`UpstreamModel` parses the game API's PascalCase envelopes
(``Path``, ``Values``, ``Entries``) and drops ``null`` members so field
defaults apply instead.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_pascal


class TswBaseModel(BaseModel):
    """Immutable base for outbound records."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class UpstreamModel(BaseModel):
    """Base for upstream payload envelopes."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_pascal,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        return {key: value for key, value in values.items() if value is not None}
