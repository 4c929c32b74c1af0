"""Shared Pydantic base models and field types."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


# Wall-clock instant as integer milliseconds since the Unix epoch
TimestampMs = Annotated[int, Field(ge=0, description="Milliseconds since epoch")]


class StrictBaseModel(BaseModel):
    """Immutable record type for stories, events and configuration.

    Unknown fields are rejected so a typo in a YAML file or an event
    payload fails loudly instead of being silently dropped.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")
