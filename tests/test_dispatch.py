"""Tests for the search view transitions."""

from __future__ import annotations

from worldpincode.models.enums import ErrorKind, SearchMode
from worldpincode.models.search import AutocompleteState, SearchResult, ViewState
from worldpincode.services import dispatch
from worldpincode.services.errors import SEARCH_FALLBACK_MESSAGE


class TestBeginSearch:
    def test_blank_query_does_nothing(self) -> None:
        assert dispatch.begin_search(ViewState(), "   ") is None
        assert dispatch.begin_search(ViewState(), "") is None

    def test_starts_loading_and_hides_autocomplete(self) -> None:
        view = ViewState(
            is_typing=True,
            autocomplete=AutocompleteState(suggestions=["Paris 75001"], visible=True),
        )
        started = dispatch.begin_search(view, "Paris")
        assert started is not None
        assert started.has_searched is True
        assert started.is_typing is False
        assert started.search.query == "Paris"
        assert started.search.loading is True
        assert started.search.error is None
        assert started.autocomplete.visible is False

    def test_new_search_replaces_previous_outcome(self) -> None:
        view = dispatch.begin_search(ViewState(), "first")
        assert view is not None
        view = dispatch.search_failed(view, "boom")
        view = dispatch.begin_search(view, "second")
        assert view is not None
        assert view.search.error is None
        assert view.search.result is None
        assert view.search.query == "second"


class TestSearchOutcome:
    def test_success_stores_result(self) -> None:
        view = dispatch.begin_search(ViewState(), "90210")
        assert view is not None
        view = dispatch.search_succeeded(view, SearchResult(text="Beverly Hills"))
        assert view.search.loading is False
        assert view.search.result is not None
        assert view.search.result.text == "Beverly Hills"
        assert view.search.query == "90210"

    def test_failure_keeps_query_for_retry(self) -> None:
        view = dispatch.begin_search(ViewState(), "90210")
        assert view is not None
        view = dispatch.search_failed(view, "quota", ErrorKind.TRANSIENT)
        assert view.search.loading is False
        assert view.search.error == "quota"
        assert view.search.error_kind is ErrorKind.TRANSIENT
        assert view.search.query == "90210"

    def test_failure_without_message_uses_fallback(self) -> None:
        view = dispatch.search_failed(ViewState(), None)
        assert view.search.error == SEARCH_FALLBACK_MESSAGE

    def test_configuration_kind_is_kept(self) -> None:
        view = dispatch.search_failed(ViewState(), "bad key", ErrorKind.CONFIGURATION)
        assert view.search.error_kind is ErrorKind.CONFIGURATION


class TestAutocomplete:
    def test_typing_marks_input(self) -> None:
        view = dispatch.quick_input_changed(ViewState(), "Ban")
        assert view.is_typing is True
        assert view.search.query == "Ban"

    def test_wants_autocomplete_threshold(self) -> None:
        assert dispatch.wants_autocomplete(dispatch.quick_input_changed(ViewState(), "Ba"), 3) is False
        assert dispatch.wants_autocomplete(dispatch.quick_input_changed(ViewState(), "Ban"), 3) is True

    def test_no_autocomplete_after_search_or_in_detailed_mode(self) -> None:
        searched = ViewState(has_searched=True)
        assert dispatch.wants_autocomplete(dispatch.quick_input_changed(searched, "Bangalore"), 3) is False
        detailed = ViewState(mode=SearchMode.DETAILED)
        assert dispatch.wants_autocomplete(dispatch.quick_input_changed(detailed, "Bangalore"), 3) is False

    def test_resolved_suggestions_are_shown(self) -> None:
        view = dispatch.quick_input_changed(ViewState(), "Ban")
        view = dispatch.autocomplete_resolved(view, "Ban", ["Bangalore 560001"])
        assert view.autocomplete.visible is True
        assert view.autocomplete.suggestions == ("Bangalore 560001",)

    def test_empty_suggestions_hide_list(self) -> None:
        view = ViewState(
            is_typing=True,
            autocomplete=AutocompleteState(suggestions=["x"], visible=True),
        )
        view = dispatch.quick_input_changed(view, "Zzz")
        view = dispatch.autocomplete_resolved(view, "Zzz", [])
        assert view.autocomplete.visible is False

    def test_outdated_partial_is_ignored(self) -> None:
        view = dispatch.quick_input_changed(ViewState(), "Bang")
        assert dispatch.autocomplete_resolved(view, "Ban", ["Bangalore"]) is view

    def test_suggestions_after_search_are_ignored(self) -> None:
        view = dispatch.begin_search(dispatch.quick_input_changed(ViewState(), "Ban"), "Ban")
        assert view is not None
        assert dispatch.autocomplete_resolved(view, "Ban", ["Bangalore"]).autocomplete.visible is False


class TestModeAndReset:
    def test_detailed_mode_hides_autocomplete(self) -> None:
        view = ViewState(autocomplete=AutocompleteState(suggestions=["x"], visible=True))
        view = dispatch.switch_mode(view, SearchMode.DETAILED)
        assert view.mode is SearchMode.DETAILED
        assert view.autocomplete.visible is False

    def test_reset_keeps_mode(self) -> None:
        view = dispatch.begin_search(ViewState(mode=SearchMode.DETAILED), "x")
        assert view is not None
        view = dispatch.reset_view(view)
        assert view.mode is SearchMode.DETAILED
        assert view.has_searched is False
        assert view.search.query == ""
