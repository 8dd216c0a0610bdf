"""Per-session controller and the in-memory session store.

A :class:`PincodeSession` owns exactly one selection state, one view state
and one autocomplete :class:`Debouncer`.  Every public method applies a
pure transition from :mod:`worldpincode.services.selection` or
:mod:`worldpincode.services.dispatch`, performs at most one collaborator
call, and applies the follow-up transition with the response.

All methods run on the application's event loop; concurrent calls on one
session interleave only at ``await`` points, so no locking is needed.
Suggestion responses are fenced by request numbers.  The main search is
not: whichever lookup settles last is the one shown.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from uuid import uuid4

import structlog

from worldpincode.models.enums import LocationField, SearchMode, SubMode
from worldpincode.models.location import SelectionState, SuggestionFetch
from worldpincode.models.response import SearchSnapshot, SessionSnapshot
from worldpincode.models.search import ViewState
from worldpincode.services import dispatch, selection
from worldpincode.services.debounce import Debouncer
from worldpincode.services.errors import PostcodeLookupError, SelectionError, SessionNotFoundError
from worldpincode.services.formatting import format_result
from worldpincode.services.llm import LookupService

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# PincodeSession
# ---------------------------------------------------------------------------


class PincodeSession:
    """State and side effects for one search UI session.

    Parameters
    ----------
    session_id:
        Identifier handed to the client.
    lookup:
        The external lookup collaborator.
    debounce_seconds:
        Quiet period before an autocomplete request is issued.
    autocomplete_min_chars:
        Minimum quick-search input length that triggers autocomplete.
    """

    __slots__ = (
        "_closed",
        "_debouncer",
        "_generation",
        "_lookup",
        "_min_chars",
        "_selection",
        "_view",
        "last_active",
        "session_id",
    )

    def __init__(
        self,
        session_id: str,
        lookup: LookupService,
        *,
        debounce_seconds: float = 0.3,
        autocomplete_min_chars: int = 3,
    ) -> None:
        self.session_id = session_id
        self._lookup = lookup
        self._debouncer = Debouncer(debounce_seconds)
        self._min_chars = autocomplete_min_chars
        self._selection = SelectionState()
        self._view = ViewState()
        # Bumped on reset so lookups started earlier are not shown afterwards.
        self._generation = 0
        self._closed = False
        self.last_active = time.monotonic()

    # -- accessors ------------------------------------------------------------

    @property
    def selection_state(self) -> SelectionState:
        return self._selection

    @property
    def view(self) -> ViewState:
        return self._view

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def autocomplete_pending(self) -> bool:
        return self._debouncer.pending

    def touch(self) -> None:
        self.last_active = time.monotonic()

    # -- location form --------------------------------------------------------

    async def set_field(self, field: LocationField, value: str) -> None:
        """Set one form field and load the candidates that depend on it."""
        transition = selection.set_field(self._selection, field, value)
        self._selection = transition.state
        logger.debug("session.field_set", session_id=self.session_id, field=field.value)
        if transition.fetch is not None:
            await self._load_suggestions(transition.fetch)

    async def set_sub_mode(self, mode: SubMode) -> None:
        transition = selection.set_sub_mode(self._selection, mode)
        self._selection = transition.state
        logger.debug("session.sub_mode_set", session_id=self.session_id, mode=str(mode))
        if transition.fetch is not None:
            await self._load_suggestions(transition.fetch)

    async def _load_suggestions(self, fetch: SuggestionFetch) -> None:
        try:
            names = await self._lookup.list_locations(fetch.level, fetch.context)
        except Exception:
            logger.warning(
                "session.suggestions_failed",
                session_id=self.session_id,
                level=fetch.level.value,
                exc_info=True,
            )
            names = []
        if self._closed:
            return
        applied = selection.apply_suggestions(self._selection, fetch.level, fetch.seq, names)
        if applied is self._selection:
            logger.debug(
                "session.suggestions_stale",
                session_id=self.session_id,
                level=fetch.level.value,
                seq=fetch.seq,
            )
        self._selection = applied

    # -- search ---------------------------------------------------------------

    async def submit_search(self, query: str) -> None:
        """Run one lookup for *query*. Blank queries are ignored.

        Lookup failures end up in the view's error fields; they are never
        raised to the caller.
        """
        started = dispatch.begin_search(self._view, query)
        if started is None:
            return
        self._debouncer.cancel()
        self._view = started
        generation = self._generation
        logger.info("session.search_started", session_id=self.session_id, query_length=len(query))

        try:
            result = await self._lookup.lookup_postcode(query)
        except PostcodeLookupError as exc:
            if self._is_current(generation):
                self._view = dispatch.search_failed(self._view, exc.message, exc.kind)
            logger.warning(
                "session.search_failed",
                session_id=self.session_id,
                kind=exc.kind.value,
                error=exc.message,
            )
            return
        except Exception as exc:
            if self._is_current(generation):
                self._view = dispatch.search_failed(self._view, str(exc) or None)
            logger.error("session.search_failed", session_id=self.session_id, exc_info=True)
            return

        if self._is_current(generation):
            self._view = dispatch.search_succeeded(self._view, result)
        logger.info("session.search_completed", session_id=self.session_id)

    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    async def submit_quick(self, query: str | None = None) -> None:
        await self.submit_search(self._view.search.query if query is None else query)

    async def submit_detailed(self) -> None:
        query = selection.build_query(self._selection)
        if query is None:
            raise SelectionError("query", "detailed form is incomplete")
        await self.submit_search(query)

    async def pick_autocomplete(self, suggestion: str) -> None:
        self._view = dispatch.hide_autocomplete(self._view)
        await self.submit_search(suggestion)

    async def pick_example(self, suggestion: str) -> None:
        """Example queries always run as quick searches."""
        self._view = dispatch.switch_mode(self._view, SearchMode.QUICK)
        await self.submit_search(suggestion)

    async def retry(self) -> bool:
        """Resubmit the stored query. Returns ``False`` if there is none."""
        query = self._view.search.query
        if not query.strip():
            return False
        logger.info("session.retry", session_id=self.session_id)
        await self.submit_search(query)
        return True

    # -- quick search autocomplete --------------------------------------------

    def type_quick(self, text: str) -> None:
        """Record quick-search input and (re)schedule autocomplete.

        Must be called from within the running event loop.
        """
        self._view = dispatch.quick_input_changed(self._view, text)
        if dispatch.wants_autocomplete(self._view, self._min_chars):
            self._debouncer.schedule(lambda: self._autocomplete(text))
            return
        self._debouncer.cancel()
        self._view = dispatch.hide_autocomplete(self._view)

    async def _autocomplete(self, partial: str) -> None:
        try:
            suggestions = await self._lookup.list_quick_suggestions(partial)
        except Exception:
            logger.warning("session.autocomplete_failed", session_id=self.session_id, exc_info=True)
            suggestions = []
        if self._closed:
            return
        self._view = dispatch.autocomplete_resolved(self._view, partial, suggestions)

    # -- mode / reset / teardown ----------------------------------------------

    def switch_mode(self, mode: SearchMode) -> None:
        self._view = dispatch.switch_mode(self._view, mode)
        if self._view.mode is not SearchMode.QUICK:
            self._debouncer.cancel()

    def reset(self) -> None:
        self._debouncer.cancel()
        self._generation += 1
        self._selection = selection.reset_selection(self._selection)
        self._view = dispatch.reset_view(self._view)
        logger.info("session.reset", session_id=self.session_id)

    def close(self) -> None:
        self._closed = True
        self._debouncer.cancel()

    # -- rendering ------------------------------------------------------------

    def snapshot(self) -> SessionSnapshot:
        state = self._selection
        search = self._view.search
        return SessionSnapshot(
            session_id=self.session_id,
            mode=self._view.mode,
            has_searched=self._view.has_searched,
            selection=state.selection,
            sub_mode=state.sub_mode,
            enabled_fields=selection.enabled_fields(state),
            suggestions=state.suggestions,
            loading=state.loading,
            is_valid=selection.is_valid(state),
            detailed_query=selection.build_query(state),
            search=SearchSnapshot(
                query=search.query,
                loading=search.loading,
                result=format_result(search.result) if search.result is not None else None,
                error=search.error,
                error_kind=search.error_kind,
                can_retry=search.error is not None and bool(search.query.strip()),
            ),
            autocomplete=self._view.autocomplete,
        )


# ---------------------------------------------------------------------------
# SessionStore
# ---------------------------------------------------------------------------


class SessionStore:
    """In-memory ``session_id -> PincodeSession`` map.

    Bounded by *max_sessions*: creating one more evicts the least recently
    used session.  Sessions idle for more than *idle_seconds* are closed
    whenever a new session is created.
    """

    def __init__(
        self,
        lookup: LookupService,
        *,
        debounce_seconds: float = 0.3,
        autocomplete_min_chars: int = 3,
        max_sessions: int = 1000,
        idle_seconds: float = 3600.0,
    ) -> None:
        self._lookup = lookup
        self._debounce_seconds = debounce_seconds
        self._min_chars = autocomplete_min_chars
        self._max_sessions = max_sessions
        self._idle_seconds = idle_seconds
        self._sessions: OrderedDict[str, PincodeSession] = OrderedDict()

    @property
    def lookup(self) -> LookupService:
        return self._lookup

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def create(self) -> PincodeSession:
        self._expire_idle()
        while len(self._sessions) >= self._max_sessions:
            evicted_id, evicted = self._sessions.popitem(last=False)
            evicted.close()
            logger.info("session.evicted", session_id=evicted_id)

        session = PincodeSession(
            uuid4().hex,
            self._lookup,
            debounce_seconds=self._debounce_seconds,
            autocomplete_min_chars=self._min_chars,
        )
        self._sessions[session.session_id] = session
        logger.info("session.created", session_id=session.session_id, active=len(self._sessions))
        return session

    def get(self, session_id: str) -> PincodeSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        self._sessions.move_to_end(session_id)
        session.touch()
        return session

    def close(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(session_id)
        session.close()
        logger.info("session.closed", session_id=session_id)

    def close_all(self) -> None:
        for session in self._sessions.values():
            session.close()
        count = len(self._sessions)
        self._sessions.clear()
        logger.info("session.closed_all", count=count)

    def _expire_idle(self) -> None:
        cutoff = time.monotonic() - self._idle_seconds
        stale = [sid for sid, session in self._sessions.items() if session.last_active < cutoff]
        for sid in stale:
            self._sessions.pop(sid).close()
        if stale:
            logger.info("session.expired", count=len(stale))
