"""Tests for the Gemini lookup service with the Vertex AI model mocked out."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from google.api_core import exceptions as gcp_exceptions

from worldpincode.models.enums import ErrorKind, LocationLevel
from worldpincode.models.location import LocationContext
from worldpincode.services.errors import (
    LOOKUP_FALLBACK_MESSAGE,
    ConfigurationError,
    TransientFailure,
)
from worldpincode.services.llm import (
    GeminiLookupService,
    LookupService,
    classify_error,
    location_prompt,
    parse_name_list,
)


def _response(text: str, chunks: list | None = None) -> SimpleNamespace:
    metadata = SimpleNamespace(grounding_chunks=chunks or [])
    return SimpleNamespace(text=text, candidates=[SimpleNamespace(grounding_metadata=metadata)])


def _chunk(title: str, uri: str) -> SimpleNamespace:
    return SimpleNamespace(web=SimpleNamespace(title=title, uri=uri))


class _BlockedResponse:
    candidates: list = []

    @property
    def text(self) -> str:
        raise ValueError("response was blocked")


@pytest.fixture
def service() -> GeminiLookupService:
    svc = GeminiLookupService(project_id="test-project", quick_suggestion_limit=3)
    svc._model = MagicMock()
    svc._lite_model = MagicMock()
    svc._search_tool = MagicMock()
    svc._initialized = True
    return svc


# -----------------------------------------------------------------------
# Parsing helpers
# -----------------------------------------------------------------------


class TestParseNameList:
    def test_clean_array(self) -> None:
        assert parse_name_list('["Goa", "Kerala"]') == ["Goa", "Kerala"]

    def test_strips_blanks_and_duplicates(self) -> None:
        assert parse_name_list('[" Goa ", "", "Goa", "Kerala"]') == ["Goa", "Kerala"]

    def test_limit(self) -> None:
        assert parse_name_list('["a", "b", "c", "d"]', limit=2) == ["a", "b"]

    def test_empty_payload(self) -> None:
        assert parse_name_list("") == []

    def test_malformed_payload_raises(self) -> None:
        with pytest.raises(TransientFailure):
            parse_name_list("Goa, Kerala")
        with pytest.raises(TransientFailure):
            parse_name_list('{"states": ["Goa"]}')


class TestClassifyError:
    def test_permission_denied_is_configuration(self) -> None:
        error = classify_error(gcp_exceptions.PermissionDenied("denied"))
        assert isinstance(error, ConfigurationError)
        assert error.kind is ErrorKind.CONFIGURATION

    def test_api_key_message_is_configuration(self) -> None:
        assert isinstance(classify_error(RuntimeError("API key not valid")), ConfigurationError)

    def test_other_errors_are_transient(self) -> None:
        error = classify_error(RuntimeError("deadline exceeded"))
        assert isinstance(error, TransientFailure)
        assert error.message == "deadline exceeded"

    def test_empty_message_falls_back(self) -> None:
        assert classify_error(RuntimeError()).message == LOOKUP_FALLBACK_MESSAGE

    def test_lookup_errors_pass_through(self) -> None:
        original = TransientFailure("x")
        assert classify_error(original) is original


def test_location_prompt_names_ancestors() -> None:
    prompt = location_prompt(
        LocationLevel.VILLAGE,
        LocationContext(country="India", state="Telangana", city="Hyderabad", mandal="Shamirpet"),
    )
    assert "Shamirpet" in prompt
    assert "Hyderabad District" in prompt
    assert prompt.endswith("Return only a clean JSON array of names.")


def test_service_satisfies_protocol(service) -> None:
    assert isinstance(service, LookupService)


# -----------------------------------------------------------------------
# GeminiLookupService
# -----------------------------------------------------------------------


class TestLookupPostcode:
    async def test_answer_with_sources(self, service) -> None:
        service._model.generate_content_async = AsyncMock(
            return_value=_response(
                "## Bangalore\n* 560001",
                [_chunk("India Post", "https://www.indiapost.gov.in"), _chunk("", "https://no-title.example")],
            )
        )
        result = await service.lookup_postcode("Pincodes for Bangalore")
        assert result.text == "## Bangalore\n* 560001"
        assert [s.title for s in result.sources] == ["India Post"]
        kwargs = service._model.generate_content_async.call_args.kwargs
        assert kwargs["tools"] == [service._search_tool]

    async def test_empty_answer(self, service) -> None:
        service._model.generate_content_async = AsyncMock(return_value=_BlockedResponse())
        result = await service.lookup_postcode("nowhere")
        assert result.text == "No results found."
        assert result.sources == ()

    async def test_failure_is_classified(self, service) -> None:
        service._model.generate_content_async = AsyncMock(side_effect=RuntimeError("503 unavailable"))
        with pytest.raises(TransientFailure, match="503 unavailable"):
            await service.lookup_postcode("90210")

    async def test_missing_project_is_configuration_error(self) -> None:
        service = GeminiLookupService(project_id="")
        assert service.configured is False
        with pytest.raises(ConfigurationError):
            await service.lookup_postcode("90210")


class TestListings:
    async def test_list_locations(self, service) -> None:
        service._model.generate_content_async = AsyncMock(return_value=_response('["Goa", "Kerala"]'))
        names = await service.list_locations(LocationLevel.STATE, LocationContext(country="India"))
        assert names == ["Goa", "Kerala"]

    async def test_malformed_listing_is_empty(self, service) -> None:
        service._model.generate_content_async = AsyncMock(return_value=_response("not json"))
        names = await service.list_locations(LocationLevel.STATE, LocationContext(country="India"))
        assert names == []

    async def test_unconfigured_listing_is_empty(self) -> None:
        service = GeminiLookupService(project_id="")
        assert await service.list_locations(LocationLevel.STATE, LocationContext(country="India")) == []

    async def test_quick_suggestions_use_lite_model_and_limit(self, service) -> None:
        service._lite_model.generate_content_async = AsyncMock(
            return_value=_response('["Paris 75001", "Paris 75002", "Paris 75003", "Paris 75004"]')
        )
        names = await service.list_quick_suggestions("Par")
        assert names == ["Paris 75001", "Paris 75002", "Paris 75003"]
        service._lite_model.generate_content_async.assert_awaited_once()

    async def test_quick_suggestion_failure_is_empty(self, service) -> None:
        service._lite_model.generate_content_async = AsyncMock(side_effect=RuntimeError("boom"))
        assert await service.list_quick_suggestions("Par") == []
