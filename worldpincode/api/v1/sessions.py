"""Search session endpoints for WorldPincode API v1.

Each browser tab owns one session.  Every user event on the search page
(choosing a location, toggling the sub-mode, typing, submitting, retrying,
resetting) maps to one endpoint here, and every endpoint answers with the
full :class:`SessionSnapshot` so the client can re-render from it.

Lookup failures are not HTTP errors: they are reported inside the
snapshot's ``search.error`` so the client can offer a retry.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel, Field

from worldpincode.models.enums import LocationField, SearchMode, SubMode
from worldpincode.models.response import SessionSnapshot
from worldpincode.pipeline.session import PincodeSession, SessionStore
from worldpincode.services.errors import SelectionError, SessionNotFoundError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ModeRequest(BaseModel):
    mode: SearchMode


class FieldValueRequest(BaseModel):
    value: str = Field(default="", max_length=200, description="Empty string clears the field")


class SubModeRequest(BaseModel):
    mode: SubMode


class QuickInputRequest(BaseModel):
    text: str = Field(default="", max_length=500, description="Current quick-search input")


class SearchRequest(BaseModel):
    query: str | None = Field(
        default=None,
        max_length=500,
        description="Query to search; defaults to the current quick-search input",
    )


class SuggestionRequest(BaseModel):
    suggestion: str = Field(..., min_length=1, max_length=500)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_store(request: Request) -> SessionStore:
    store = getattr(request.app.state, "sessions", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Search sessions not available")
    return store


def _get_session(request: Request, session_id: str) -> PincodeSession:
    try:
        return _get_store(request).get(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found") from None


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


@router.post("", response_model=SessionSnapshot, status_code=201)
async def create_session(request: Request) -> SessionSnapshot:
    """Open a new search session with an empty form in quick mode."""
    session = _get_store(request).create()
    return session.snapshot()


@router.get("/{session_id}", response_model=SessionSnapshot)
async def get_session(session_id: str, request: Request) -> SessionSnapshot:
    return _get_session(request, session_id).snapshot()


@router.delete("/{session_id}", status_code=204)
async def delete_session(session_id: str, request: Request) -> Response:
    """Tear down a session, cancelling any pending autocomplete."""
    try:
        _get_store(request).close(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found") from None
    return Response(status_code=204)


@router.put("/{session_id}/mode", response_model=SessionSnapshot)
async def set_mode(session_id: str, body: ModeRequest, request: Request) -> SessionSnapshot:
    session = _get_session(request, session_id)
    session.switch_mode(body.mode)
    return session.snapshot()


@router.post("/{session_id}/reset", response_model=SessionSnapshot)
async def reset_session(session_id: str, request: Request) -> SessionSnapshot:
    session = _get_session(request, session_id)
    session.reset()
    return session.snapshot()


# ---------------------------------------------------------------------------
# Detailed search form
# ---------------------------------------------------------------------------


@router.put("/{session_id}/selection/{field}", response_model=SessionSnapshot)
async def set_selection_field(
    session_id: str,
    field: LocationField,
    body: FieldValueRequest,
    request: Request,
) -> SessionSnapshot:
    """Set one location field.

    Descendant fields are cleared and the candidates for the next level
    are loaded before the snapshot is returned.
    """
    session = _get_session(request, session_id)
    try:
        await session.set_field(field, body.value)
    except SelectionError as exc:
        logger.info(
            "sessions.selection_rejected",
            session_id=session_id,
            field=field.value,
            reason=exc.reason,
        )
        raise HTTPException(status_code=409, detail=str(exc)) from None
    return session.snapshot()


@router.put("/{session_id}/sub-mode", response_model=SessionSnapshot)
async def set_sub_mode(session_id: str, body: SubModeRequest, request: Request) -> SessionSnapshot:
    session = _get_session(request, session_id)
    await session.set_sub_mode(body.mode)
    return session.snapshot()


# ---------------------------------------------------------------------------
# Quick search
# ---------------------------------------------------------------------------


@router.put("/{session_id}/quick-input", response_model=SessionSnapshot, status_code=202)
async def update_quick_input(
    session_id: str,
    body: QuickInputRequest,
    request: Request,
) -> SessionSnapshot:
    """Record a keystroke.  Autocomplete runs after the debounce window;
    poll the session to pick up the suggestions."""
    session = _get_session(request, session_id)
    session.type_quick(body.text)
    return session.snapshot()


# ---------------------------------------------------------------------------
# Searches
# ---------------------------------------------------------------------------


@router.post("/{session_id}/search", response_model=SessionSnapshot)
async def quick_search(session_id: str, body: SearchRequest, request: Request) -> SessionSnapshot:
    session = _get_session(request, session_id)
    await session.submit_quick(body.query)
    return session.snapshot()


@router.post("/{session_id}/search/detailed", response_model=SessionSnapshot)
async def detailed_search(session_id: str, request: Request) -> SessionSnapshot:
    session = _get_session(request, session_id)
    try:
        await session.submit_detailed()
    except SelectionError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from None
    return session.snapshot()


@router.post("/{session_id}/search/autocomplete", response_model=SessionSnapshot)
async def search_autocomplete_suggestion(
    session_id: str,
    body: SuggestionRequest,
    request: Request,
) -> SessionSnapshot:
    session = _get_session(request, session_id)
    await session.pick_autocomplete(body.suggestion)
    return session.snapshot()


@router.post("/{session_id}/search/example", response_model=SessionSnapshot)
async def search_example(session_id: str, body: SuggestionRequest, request: Request) -> SessionSnapshot:
    """Run one of the catalog's suggested queries as a quick search."""
    session = _get_session(request, session_id)
    await session.pick_example(body.suggestion)
    return session.snapshot()


@router.post("/{session_id}/retry", response_model=SessionSnapshot)
async def retry_search(session_id: str, request: Request) -> SessionSnapshot:
    """Resubmit the last query unchanged."""
    session = _get_session(request, session_id)
    if not await session.retry():
        raise HTTPException(status_code=409, detail="Nothing to retry")
    return session.snapshot()
