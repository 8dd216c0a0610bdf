from __future__ import annotations

from pydantic import BaseModel, Field

from worldpincode.models.enums import BlockKind, ErrorKind, SearchMode


class GroundingSource(BaseModel):
    """A web citation attached by the model to substantiate its answer."""

    model_config = {"frozen": True}

    title: str
    uri: str


class SearchResult(BaseModel):
    model_config = {"frozen": True}

    text: str
    sources: tuple[GroundingSource, ...] = ()


class SearchSession(BaseModel):
    """The single visible search. Overwritten wholesale per search."""

    model_config = {"frozen": True}

    query: str = ""
    loading: bool = False
    result: SearchResult | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None


class AutocompleteState(BaseModel):
    model_config = {"frozen": True}

    suggestions: tuple[str, ...] = ()
    visible: bool = False


class ViewState(BaseModel):
    model_config = {"frozen": True}

    mode: SearchMode = SearchMode.QUICK
    has_searched: bool = False
    is_typing: bool = False
    search: SearchSession = Field(default_factory=SearchSession)
    autocomplete: AutocompleteState = Field(default_factory=AutocompleteState)


# ---------------------------------------------------------------------------
# Display structures for a formatted answer
# ---------------------------------------------------------------------------


class TextSpan(BaseModel):
    text: str
    bold: bool = False


class AnswerBlock(BaseModel):
    kind: BlockKind
    level: int = 0  # heading depth (1-3); 0 for other kinds
    spans: list[TextSpan] = Field(default_factory=list)


class SourceLink(BaseModel):
    title: str
    uri: str
    hostname: str
