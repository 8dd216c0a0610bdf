"""Cascading location-selection state machine.

The detailed-search form walks a fixed hierarchy::

    country -> state -> district/city -> area
                                      -> mandal -> village

Only one branch below the district is active at a time, chosen by the
:class:`SubMode`.  Every transition here is a pure function from a
:class:`SelectionState` to a :class:`Transition`: the new state plus, when
the change calls for it, a :class:`SuggestionFetch` describing the
candidate-name request the caller has to perform.  Responses are fed back
through :func:`apply_suggestions`, which discards any response that is no
longer the latest one issued for its level.

Clearing is eager: changing a field empties every descendant field and
its candidate list in the same transition, so a stale descendant can never
sit next to a changed ancestor.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Final

from worldpincode.models.enums import LocationField, LocationLevel, SubMode
from worldpincode.models.location import (
    SUGGESTION_KEYS,
    LocationContext,
    SelectionState,
    SuggestionFetch,
)
from worldpincode.services.errors import SelectionError

# ---------------------------------------------------------------------------
# Hierarchy tables
# ---------------------------------------------------------------------------

_PARENT: Final[dict[LocationField, LocationField | None]] = {
    LocationField.COUNTRY: None,
    LocationField.STATE: LocationField.COUNTRY,
    LocationField.CITY: LocationField.STATE,
    LocationField.AREA: LocationField.CITY,
    LocationField.MANDAL: LocationField.CITY,
    LocationField.VILLAGE: LocationField.MANDAL,
}


def _ancestors_of(field: LocationField) -> tuple[LocationField, ...]:
    chain: list[LocationField] = []
    parent = _PARENT[field]
    while parent is not None:
        chain.append(parent)
        parent = _PARENT[parent]
    return tuple(reversed(chain))


_ANCESTORS: Final[dict[LocationField, tuple[LocationField, ...]]] = {
    field: _ancestors_of(field) for field in LocationField
}

_DESCENDANTS: Final[dict[LocationField, tuple[LocationField, ...]]] = {
    field: tuple(other for other in LocationField if field in _ANCESTORS[other])
    for field in LocationField
}

# Fields that belong to each sub-mode branch.
_BRANCH: Final[dict[SubMode, frozenset[LocationField]]] = {
    SubMode.AREA: frozenset({LocationField.AREA}),
    SubMode.MANDAL: frozenset({LocationField.MANDAL, LocationField.VILLAGE}),
}

_SUB_LEVEL: Final[dict[SubMode, LocationLevel]] = {
    SubMode.AREA: LocationLevel.AREA,
    SubMode.MANDAL: LocationLevel.MANDAL,
}

_BRANCH_FIELDS: Final[tuple[LocationField, ...]] = (
    LocationField.AREA,
    LocationField.MANDAL,
    LocationField.VILLAGE,
)


# ---------------------------------------------------------------------------
# Transition results and events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Transition:
    state: SelectionState
    fetch: SuggestionFetch | None = None


@dataclass(frozen=True, slots=True)
class FieldChanged:
    field: LocationField
    value: str


@dataclass(frozen=True, slots=True)
class SubModeChanged:
    mode: SubMode


@dataclass(frozen=True, slots=True)
class SuggestionsLoaded:
    level: LocationLevel
    seq: int
    items: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class SelectionReset:
    pass


SelectionEvent = FieldChanged | SubModeChanged | SuggestionsLoaded | SelectionReset


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _level_of(field: LocationField) -> LocationLevel:
    return LocationLevel(field.value)


def _clear_levels(state: SelectionState, levels: Iterable[LocationLevel]) -> SelectionState:
    """Empty the lists of *levels*, drop their loading flags and advance
    their request numbers so in-flight responses for them are discarded."""
    levels = list(levels)
    if not levels:
        return state
    keys = [SUGGESTION_KEYS[level] for level in levels]
    request_seq = dict(state.request_seq)
    for level in levels:
        request_seq[level] = request_seq.get(level, 0) + 1
    return state.model_copy(
        update={
            "suggestions": state.suggestions.model_copy(update={key: () for key in keys}),
            "loading": state.loading.model_copy(update={key: False for key in keys}),
            "request_seq": request_seq,
        }
    )


def _issue_fetch(
    state: SelectionState,
    level: LocationLevel,
    context: LocationContext,
) -> Transition:
    request_seq = dict(state.request_seq)
    seq = request_seq.get(level, 0) + 1
    request_seq[level] = seq
    key = SUGGESTION_KEYS[level]
    new_state = state.model_copy(
        update={
            "loading": state.loading.model_copy(update={key: True}),
            "request_seq": request_seq,
        }
    )
    return Transition(new_state, SuggestionFetch(level=level, context=context, seq=seq))


def _fetch_for(state: SelectionState, field: LocationField) -> Transition:
    """Request the candidates that depend on a just-set *field*."""
    sel = state.selection
    if field is LocationField.COUNTRY:
        return _issue_fetch(state, LocationLevel.STATE, LocationContext(country=sel.country))
    if field is LocationField.STATE:
        return _issue_fetch(
            state,
            LocationLevel.CITY,
            LocationContext(country=sel.country, state=sel.state),
        )
    if field is LocationField.CITY:
        return _issue_fetch(
            state,
            _SUB_LEVEL[state.sub_mode],
            LocationContext(country=sel.country, state=sel.state, city=sel.city),
        )
    if field is LocationField.MANDAL:
        return _issue_fetch(
            state,
            LocationLevel.VILLAGE,
            LocationContext(
                country=sel.country,
                state=sel.state,
                city=sel.city,
                mandal=sel.mandal,
            ),
        )
    return Transition(state)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def is_enabled(state: SelectionState, field: LocationField) -> bool:
    """Whether *field* accepts a value: all ancestors set, branch active."""
    if any(not state.selection.value_of(ancestor) for ancestor in _ANCESTORS[field]):
        return False
    if field in _BRANCH_FIELDS and field not in _BRANCH[state.sub_mode]:
        return False
    return True


def enabled_fields(state: SelectionState) -> list[LocationField]:
    return [field for field in LocationField if is_enabled(state, field)]


def is_valid(state: SelectionState) -> bool:
    sel = state.selection
    if state.sub_mode is SubMode.AREA:
        return all((sel.country, sel.state, sel.city, sel.area))
    return all((sel.country, sel.state, sel.city, sel.mandal, sel.village))


def build_query(state: SelectionState) -> str | None:
    """Compose the natural-language lookup query, or ``None`` if incomplete."""
    if not is_valid(state):
        return None
    sel = state.selection
    if state.sub_mode is SubMode.AREA:
        return f"Postal code for {sel.area}, {sel.city} District, {sel.state}, {sel.country}"
    return (
        f"Postal code for {sel.village}, {sel.mandal} Mandal/Tehsil, "
        f"{sel.city} District, {sel.state}, {sel.country}"
    )


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def set_field(state: SelectionState, field: LocationField, value: str) -> Transition:
    """Set one form field, cascade-clearing every descendant.

    Raises :class:`SelectionError` when a non-empty value is written to a
    field that is not enabled.  Clearing a field is always allowed.
    """
    value = value.strip()
    if value and not is_enabled(state, field):
        if field in _BRANCH_FIELDS and field not in _BRANCH[state.sub_mode]:
            raise SelectionError(field.value, f"not available in {state.sub_mode.value} mode")
        raise SelectionError(field.value, "parent selection is missing")

    descendants = _DESCENDANTS[field]
    update = {field.value: value}
    update.update({child.value: "" for child in descendants})
    state = state.model_copy(update={"selection": state.selection.model_copy(update=update)})
    state = _clear_levels(state, (_level_of(child) for child in descendants))

    if not value:
        return Transition(state)
    return _fetch_for(state, field)


def set_country(state: SelectionState, value: str) -> Transition:
    return set_field(state, LocationField.COUNTRY, value)


def set_state(state: SelectionState, value: str) -> Transition:
    return set_field(state, LocationField.STATE, value)


def set_city(state: SelectionState, value: str) -> Transition:
    return set_field(state, LocationField.CITY, value)


def set_area(state: SelectionState, value: str) -> Transition:
    return set_field(state, LocationField.AREA, value)


def set_mandal(state: SelectionState, value: str) -> Transition:
    return set_field(state, LocationField.MANDAL, value)


def set_village(state: SelectionState, value: str) -> Transition:
    return set_field(state, LocationField.VILLAGE, value)


def set_sub_mode(state: SelectionState, mode: SubMode) -> Transition:
    """Switch branch; always empties area, mandal and village.

    When a district is already chosen, the candidates for the newly active
    branch are requested right away so the user need not reselect it.
    """
    selection = state.selection.model_copy(update={field.value: "" for field in _BRANCH_FIELDS})
    state = state.model_copy(update={"sub_mode": SubMode(mode), "selection": selection})
    state = _clear_levels(state, (_level_of(field) for field in _BRANCH_FIELDS))
    if not selection.city:
        return Transition(state)
    return _fetch_for(state, LocationField.CITY)


def apply_suggestions(
    state: SelectionState,
    level: LocationLevel,
    seq: int,
    items: Sequence[str],
) -> SelectionState:
    """Install a candidate list if *seq* is still the latest for *level*."""
    if state.request_seq.get(level) != seq:
        return state
    key = SUGGESTION_KEYS[level]
    return state.model_copy(
        update={
            "suggestions": state.suggestions.model_copy(update={key: tuple(items)}),
            "loading": state.loading.model_copy(update={key: False}),
        }
    )


def reset_selection(state: SelectionState | None = None) -> SelectionState:
    """Empty form in area mode.

    Request numbers keep counting up from *state* so responses issued
    before the reset can never match a request issued after it.
    """
    fresh = SelectionState()
    if state is None:
        return fresh
    fresh = fresh.model_copy(update={"request_seq": dict(state.request_seq)})
    return _clear_levels(fresh, LocationLevel)


def apply_event(state: SelectionState, event: SelectionEvent) -> Transition:
    """Single entry point reducing any :data:`SelectionEvent`."""
    if isinstance(event, FieldChanged):
        return set_field(state, event.field, event.value)
    if isinstance(event, SubModeChanged):
        return set_sub_mode(state, event.mode)
    if isinstance(event, SuggestionsLoaded):
        return Transition(apply_suggestions(state, event.level, event.seq, event.items))
    if isinstance(event, SelectionReset):
        return Transition(reset_selection(state))
    raise TypeError(f"Unsupported selection event: {event!r}")
