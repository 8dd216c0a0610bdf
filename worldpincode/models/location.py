"""Location form state: the selected hierarchy, candidate lists and loading flags.

Every record here is frozen. The selection state machine in
:mod:`worldpincode.services.selection` produces new records instead of
mutating existing ones.
"""

from __future__ import annotations

from typing import Final

from pydantic import BaseModel, Field

from worldpincode.models.enums import LocationField, LocationLevel, SubMode

# Suggestion list / loading flag attribute for each fetched level.
SUGGESTION_KEYS: Final[dict[LocationLevel, str]] = {
    LocationLevel.STATE: "states",
    LocationLevel.CITY: "cities",
    LocationLevel.AREA: "areas",
    LocationLevel.MANDAL: "mandals",
    LocationLevel.VILLAGE: "villages",
}


def _fresh_sequences() -> dict[LocationLevel, int]:
    return {level: 0 for level in LocationLevel}


class LocationSelection(BaseModel):
    """The six form fields. An empty string means "unset"."""

    model_config = {"frozen": True}

    country: str = ""
    state: str = ""
    city: str = ""  # district or city
    area: str = ""
    mandal: str = ""  # mandal / tehsil / taluk
    village: str = ""

    def value_of(self, field: LocationField) -> str:
        return getattr(self, field.value)


class SuggestionLists(BaseModel):
    model_config = {"frozen": True}

    states: tuple[str, ...] = ()
    cities: tuple[str, ...] = ()
    areas: tuple[str, ...] = ()
    mandals: tuple[str, ...] = ()
    villages: tuple[str, ...] = ()


class FieldLoadingFlags(BaseModel):
    model_config = {"frozen": True}

    states: bool = False
    cities: bool = False
    areas: bool = False
    mandals: bool = False
    villages: bool = False


class LocationContext(BaseModel):
    """Already-chosen ancestors that scope a candidate-name request."""

    model_config = {"frozen": True}

    country: str | None = None
    state: str | None = None
    city: str | None = None
    mandal: str | None = None


class SuggestionFetch(BaseModel):
    """A candidate-name request the controller must perform.

    ``seq`` is the request number issued for ``level``; the response is
    only applied while it is still the latest one for that level.
    """

    model_config = {"frozen": True}

    level: LocationLevel
    context: LocationContext
    seq: int


class SelectionState(BaseModel):
    model_config = {"frozen": True}

    selection: LocationSelection = Field(default_factory=LocationSelection)
    sub_mode: SubMode = SubMode.AREA
    suggestions: SuggestionLists = Field(default_factory=SuggestionLists)
    loading: FieldLoadingFlags = Field(default_factory=FieldLoadingFlags)
    request_seq: dict[LocationLevel, int] = Field(default_factory=_fresh_sequences)
