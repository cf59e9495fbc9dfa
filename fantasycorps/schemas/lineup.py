"""Lineup rule constants and Pydantic validators.

Encodes the fantasy lineup rules (eight captions, per-class point caps,
weekly show limits) as validation models used by the lineup layer.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from fantasycorps.config import CORPS_CLASSES, rules


# ---------------------------------------------------------------------------
# Selections
# ---------------------------------------------------------------------------

class Selection(BaseModel):
    """One caption pick: a historical corps at a given point value."""

    corps_name: str = Field(..., min_length=1)
    points: int = Field(..., ge=0)
    source_year: str

    @field_validator("source_year", mode="before")
    @classmethod
    def _year_as_str(cls, value):
        return str(value)

    @property
    def key(self) -> str:
        """Storage key ``<corpsName>|<points>|<sourceYear>``."""
        return f"{self.corps_name}|{self.points}|{self.source_year}"

    @classmethod
    def parse(cls, value: "str | dict | Selection") -> "Selection":
        """Build a selection from its storage key or a mapping."""
        if isinstance(value, Selection):
            return value
        if isinstance(value, dict):
            return cls.model_validate(value)
        parts = str(value).rsplit("|", 2)
        if len(parts) != 3:
            raise ValueError(f"Malformed selection {value!r}")
        name, points, year = parts
        try:
            return cls(corps_name=name, points=int(points), source_year=year)
        except ValueError as exc:
            raise ValueError(f"Malformed selection {value!r}") from exc


def lineup_key(corps_class: str, selections: dict[str, Selection]) -> str:
    """Canonical uniqueness key: class plus sorted selection keys."""
    keys = sorted(sel.key for sel in selections.values())
    return f"{corps_class}_{'_'.join(keys)}"


# ---------------------------------------------------------------------------
# Validation models
# ---------------------------------------------------------------------------

class LineupSubmission(BaseModel):
    """Validates a complete eight-caption lineup for one corps class."""

    uid: str = Field(..., min_length=1)
    corps_class: str
    lineup: dict[str, Selection]
    corps_name: str | None = None

    @field_validator("lineup", mode="before")
    @classmethod
    def _parse_selections(cls, value):
        if not isinstance(value, dict):
            raise ValueError("Lineup must map captions to selections")
        return {caption: Selection.parse(sel) for caption, sel in value.items()}

    @model_validator(mode="after")
    def validate_lineup_rules(self) -> "LineupSubmission":
        errors: list[str] = []

        if self.corps_class not in CORPS_CLASSES:
            errors.append(f"Unknown corps class {self.corps_class!r}")
            raise ValueError("; ".join(errors))

        captions = set(self.lineup)
        expected = set(rules.captions)
        if len(self.lineup) != len(rules.captions) or captions != expected:
            missing = sorted(expected - captions)
            extra = sorted(captions - expected)
            detail = []
            if missing:
                detail.append(f"missing {', '.join(missing)}")
            if extra:
                detail.append(f"unexpected {', '.join(extra)}")
            errors.append(
                f"Lineup must have exactly {len(rules.captions)} captions"
                + (f" ({'; '.join(detail)})" if detail else "")
            )

        cap = rules.point_caps[self.corps_class]
        if self.total_points > cap:
            errors.append(f"Over point cap: {self.total_points} > {cap}")

        if errors:
            raise ValueError("; ".join(errors))
        return self

    @property
    def total_points(self) -> int:
        return sum(sel.points for sel in self.lineup.values())

    @property
    def key(self) -> str:
        return lineup_key(self.corps_class, self.lineup)

    def storage_lineup(self) -> dict[str, str]:
        """Caption -> selection key, the shape persisted on the profile."""
        return {caption: sel.key for caption, sel in self.lineup.items()}


class ShowChoice(BaseModel):
    """A single show a corps elects to attend."""

    event_name: str = Field(..., min_length=1)
    day: int = Field(..., ge=1)
    date: str | None = None
    location: str | None = None


class ShowSelectionRequest(BaseModel):
    """Validates a weekly show selection."""

    uid: str = Field(..., min_length=1)
    week: int = Field(..., ge=1)
    corps_class: str
    shows: list[ShowChoice] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_show_rules(self) -> "ShowSelectionRequest":
        errors: list[str] = []

        if self.corps_class not in CORPS_CLASSES:
            errors.append(f"Unknown corps class {self.corps_class!r}")
        if len(self.shows) > rules.max_shows_per_week:
            errors.append(
                f"At most {rules.max_shows_per_week} shows per week, got {len(self.shows)}"
            )
        days = [s.day for s in self.shows]
        if len(set(days)) != len(days):
            errors.append("At most one show per day")

        if errors:
            raise ValueError("; ".join(errors))
        return self


# ---------------------------------------------------------------------------
# Convenience functions
# ---------------------------------------------------------------------------

def extract_errors(exc: Exception) -> list[str]:
    """Extract human-readable error messages from a Pydantic ValidationError."""
    from pydantic import ValidationError

    if isinstance(exc, ValidationError):
        errors = []
        for err in exc.errors():
            msg = err.get("msg", "")
            # Pydantic prefixes with "Value error, "
            if msg.startswith("Value error, "):
                msg = msg[len("Value error, "):]
            loc = ".".join(str(p) for p in err.get("loc", ()))
            if loc and not err.get("type", "").startswith("value_error"):
                msg = f"{loc}: {msg}"
            errors.extend(msg.split("; "))
        return errors
    return [str(exc)]
