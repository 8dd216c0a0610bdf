"""Pure transitions for the search view: the one visible search and the
quick-search autocomplete list.

The session controller owns the side effects (calling the lookup
collaborator, scheduling the debounced autocomplete request); this module
only decides what the view looks like before and after each of them.
"""

from __future__ import annotations

from collections.abc import Sequence

from worldpincode.models.enums import ErrorKind, SearchMode
from worldpincode.models.search import AutocompleteState, SearchResult, SearchSession, ViewState
from worldpincode.services.errors import SEARCH_FALLBACK_MESSAGE


def begin_search(view: ViewState, query: str) -> ViewState | None:
    """Start a search for *query*; ``None`` when it trims to empty."""
    if not query.strip():
        return None
    return view.model_copy(
        update={
            "has_searched": True,
            "is_typing": False,
            "search": SearchSession(query=query, loading=True),
            "autocomplete": view.autocomplete.model_copy(update={"visible": False}),
        }
    )


def search_succeeded(view: ViewState, result: SearchResult) -> ViewState:
    search = view.search.model_copy(
        update={"loading": False, "result": result, "error": None, "error_kind": None}
    )
    return view.model_copy(update={"search": search})


def search_failed(
    view: ViewState,
    message: str | None,
    kind: ErrorKind = ErrorKind.TRANSIENT,
) -> ViewState:
    search = view.search.model_copy(
        update={
            "loading": False,
            "result": None,
            "error": message or SEARCH_FALLBACK_MESSAGE,
            "error_kind": kind,
        }
    )
    return view.model_copy(update={"search": search})


def quick_input_changed(view: ViewState, text: str) -> ViewState:
    return view.model_copy(
        update={
            "is_typing": True,
            "search": view.search.model_copy(update={"query": text}),
        }
    )


def wants_autocomplete(view: ViewState, min_chars: int) -> bool:
    """Autocomplete only runs while the user types a quick query that has
    not been submitted yet."""
    return (
        view.mode is SearchMode.QUICK
        and not view.has_searched
        and view.is_typing
        and len(view.search.query) >= min_chars
    )


def hide_autocomplete(view: ViewState) -> ViewState:
    if not view.autocomplete.visible:
        return view
    return view.model_copy(
        update={"autocomplete": view.autocomplete.model_copy(update={"visible": False})}
    )


def autocomplete_resolved(
    view: ViewState,
    partial: str,
    suggestions: Sequence[str],
) -> ViewState:
    # A search has started or the input moved on: the answer is stale.
    if view.has_searched or view.search.query != partial:
        return view
    if not suggestions:
        return hide_autocomplete(view)
    return view.model_copy(
        update={"autocomplete": AutocompleteState(suggestions=tuple(suggestions), visible=True)}
    )


def switch_mode(view: ViewState, mode: SearchMode) -> ViewState:
    mode = SearchMode(mode)
    if mode is not SearchMode.QUICK:
        view = hide_autocomplete(view)
    return view.model_copy(update={"mode": mode})


def reset_view(view: ViewState) -> ViewState:
    """Back to a blank form, keeping the chosen search mode."""
    return ViewState(mode=view.mode)
