"""Shared fixtures: a scripted lookup collaborator and API wiring."""

from __future__ import annotations

import asyncio
import os

# Must be set before config.settings is imported by the app.
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "10000")
os.environ.setdefault("GCP_PROJECT_ID", "")
os.environ.setdefault("LOG_FORMAT", "console")

import pytest

from worldpincode.models.enums import LocationLevel
from worldpincode.models.location import LocationContext
from worldpincode.models.search import GroundingSource, SearchResult
from worldpincode.pipeline.session import PincodeSession, SessionStore


class FakeLookup:
    """In-memory stand-in for :class:`GeminiLookupService`.

    ``locations`` maps a level to the names returned for it,
    ``answers`` maps a query to a :class:`SearchResult` or an exception
    to raise, and every call is recorded.
    """

    def __init__(self) -> None:
        self.configured = True
        self.locations: dict[LocationLevel, list[str]] = {
            LocationLevel.STATE: ["Telangana", "Karnataka"],
            LocationLevel.CITY: ["Hyderabad", "Warangal"],
            LocationLevel.AREA: ["Banjara Hills", "Ameerpet"],
            LocationLevel.MANDAL: ["Shamirpet", "Keesara"],
            LocationLevel.VILLAGE: ["Aliabad", "Thumkunta"],
        }
        self.answers: dict[str, SearchResult | Exception] = {}
        self.suggestions: list[str] = ["Hyderabad 500001", "Hyderabad 500002"]
        self.lookup_calls: list[str] = []
        self.location_calls: list[tuple[LocationLevel, LocationContext]] = []
        self.suggestion_calls: list[str] = []
        self.delay: float = 0.0

    async def lookup_postcode(self, query: str) -> SearchResult:
        self.lookup_calls.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)
        answer = self.answers.get(query)
        if isinstance(answer, Exception):
            raise answer
        if answer is None:
            return SearchResult(
                text=f"## Result\n* **{query}**: 500001",
                sources=[GroundingSource(title="India Post", uri="https://www.indiapost.gov.in/pin")],
            )
        return answer

    async def list_locations(self, level: LocationLevel, context: LocationContext) -> list[str]:
        self.location_calls.append((level, context))
        return list(self.locations.get(level, []))

    async def list_quick_suggestions(self, partial_query: str) -> list[str]:
        self.suggestion_calls.append(partial_query)
        return list(self.suggestions)


@pytest.fixture
def lookup() -> FakeLookup:
    return FakeLookup()


@pytest.fixture
def session(lookup: FakeLookup) -> PincodeSession:
    return PincodeSession("test-session", lookup, debounce_seconds=0.02, autocomplete_min_chars=3)


@pytest.fixture
def store(lookup: FakeLookup) -> SessionStore:
    return SessionStore(lookup, debounce_seconds=0.02, max_sessions=5, idle_seconds=3600)


@pytest.fixture
def client(store: SessionStore):
    """Started test client whose session store is backed by :class:`FakeLookup`.

    The app's own startup runs first; its store is swapped for the fake
    one afterwards so requests share the client's event loop and debounced
    autocomplete tasks run between requests.
    """
    from fastapi.testclient import TestClient

    from worldpincode.main import app

    with TestClient(app) as test_client:
        started = app.state.sessions
        app.state.sessions = store
        yield test_client
        test_client.portal.call(store.close_all)
        app.state.sessions = started
