"""Pydantic schemas for inbound score events."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fantasycorps.config import rules


class CorpsScore(BaseModel):
    """Per-caption scores for one corps at one event."""

    model_config = ConfigDict(populate_by_name=True)

    corps: str = Field(..., min_length=1)
    captions: dict[str, float] = Field(default_factory=dict)

    @field_validator("captions")
    @classmethod
    def _known_captions(cls, value: dict[str, float]) -> dict[str, float]:
        unknown = set(value) - set(rules.captions)
        if unknown:
            raise ValueError(f"Unknown captions: {', '.join(sorted(unknown))}")
        return value


class ScoreEvent(BaseModel):
    """A structured score event produced by the (external) scraper."""

    model_config = ConfigDict(populate_by_name=True)

    event_name: str = Field(..., alias="eventName", min_length=1)
    scores: list[CorpsScore] = Field(default_factory=list)
    event_location: str | None = Field(None, alias="eventLocation")
    event_date: date = Field(..., alias="eventDate")
    year: str

    @field_validator("year", mode="before")
    @classmethod
    def _year_as_str(cls, value):
        text = str(value).strip()
        if not text.isdigit():
            raise ValueError(f"year must be an integer, got {value!r}")
        return text
