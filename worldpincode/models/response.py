from __future__ import annotations

from pydantic import BaseModel, Field

from worldpincode.models.enums import ErrorKind, LocationField, SearchMode, SubMode
from worldpincode.models.location import FieldLoadingFlags, LocationSelection, SuggestionLists
from worldpincode.models.search import AnswerBlock, AutocompleteState, SourceLink


class FormattedResult(BaseModel):
    text: str
    blocks: list[AnswerBlock] = Field(default_factory=list)
    sources: list[SourceLink] = Field(default_factory=list)


class SearchSnapshot(BaseModel):
    query: str
    loading: bool
    result: FormattedResult | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    can_retry: bool = False


class SessionSnapshot(BaseModel):
    """Everything a client needs to render one session."""

    session_id: str
    mode: SearchMode
    has_searched: bool
    selection: LocationSelection
    sub_mode: SubMode
    enabled_fields: list[LocationField]
    suggestions: SuggestionLists
    loading: FieldLoadingFlags
    is_valid: bool
    detailed_query: str | None = None
    search: SearchSnapshot
    autocomplete: AutocompleteState
