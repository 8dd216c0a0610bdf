"""Vertex AI Gemini lookup service for WorldPincode.

Wraps the ``vertexai`` SDK to answer postal-code queries (grounded with
Google Search), list candidate place names for each level of the location
form, and produce quick-search autocomplete suggestions.

Every payload is parsed into typed models at this boundary.  Only
:meth:`GeminiLookupService.lookup_postcode` raises; the two listing
operations degrade to an empty list because callers treat "no
candidates" and "failed to fetch candidates" the same way.
"""

from __future__ import annotations

import time
from typing import Final, Protocol, runtime_checkable

import structlog
import vertexai
from google.api_core import exceptions as gcp_exceptions
from google.auth import exceptions as auth_exceptions
from pydantic import TypeAdapter, ValidationError
from vertexai.generative_models import (
    Content,
    GenerationConfig,
    GenerativeModel,
    Part,
    Tool,
)

from worldpincode.models.enums import LocationLevel
from worldpincode.models.location import LocationContext
from worldpincode.models.search import GroundingSource, SearchResult
from worldpincode.services.errors import (
    LOOKUP_FALLBACK_MESSAGE,
    ConfigurationError,
    PostcodeLookupError,
    TransientFailure,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

_LOOKUP_PROMPT: Final[str] = """\
Find the exact and accurate postal code/pincode for: "{query}".

Strict Data Accuracy Rules:
1. **Accuracy is paramount.** If the location is in India, ensure the \
Pincode matches the official Department of Posts data.
2. If the query specifies a Village or Mandal, return the specific Pincode \
for that locality, not just the District code.
3. Clearly state the hierarchy: Country -> State -> District -> \
Tehsil/Mandal -> Village.
4. If multiple pincodes apply to a city, list them broken down by area \
(e.g., "Bangalore North: 5600XX").
5. Present the data in a clean, easy-to-read table or bullet list using \
Markdown.\
"""

_JSON_ARRAY_SUFFIX: Final[str] = " Return only a clean JSON array of names."

_LOCATION_PROMPTS: Final[dict[LocationLevel, str]] = {
    LocationLevel.STATE: "List all official States and Union Territories of {country}.",
    LocationLevel.CITY: (
        "List all administrative Districts (or major Cities if districts are "
        "not applicable) in {state}, {country}."
    ),
    LocationLevel.AREA: "List the major localities, areas, or neighborhoods within {city}, {state}.",
    LocationLevel.MANDAL: (
        "List all Mandals, Tehsils, Taluks, or Administrative Blocks in the "
        "{city} district of {state}, {country}."
    ),
    LocationLevel.VILLAGE: (
        "List the significant Villages, Towns, or Post Office locations in "
        "{mandal} (Mandal/Tehsil), {city} District, {state}."
    ),
}

_QUICK_SUGGESTION_PROMPT: Final[str] = """\
List {limit} valid geographical locations or pincode queries starting with \
"{partial}". Return only a JSON array of strings.\
"""

_NO_RESULTS_TEXT: Final[str] = "No results found."

_STRING_ARRAY_SCHEMA: Final[dict] = {"type": "ARRAY", "items": {"type": "STRING"}}

_STRING_LIST: Final[TypeAdapter[list[str]]] = TypeAdapter(list[str])

_CONFIG_EXCEPTIONS: Final[tuple[type[Exception], ...]] = (
    auth_exceptions.DefaultCredentialsError,
    auth_exceptions.RefreshError,
    gcp_exceptions.PermissionDenied,
    gcp_exceptions.Unauthenticated,
)

_CONFIG_MARKERS: Final[tuple[str, ...]] = ("api key", "api_key", "credentials")


# ---------------------------------------------------------------------------
# Collaborator interface
# ---------------------------------------------------------------------------


@runtime_checkable
class LookupService(Protocol):
    """What the session controller needs from the external lookup."""

    async def lookup_postcode(self, query: str) -> SearchResult: ...

    async def list_locations(self, level: LocationLevel, context: LocationContext) -> list[str]: ...

    async def list_quick_suggestions(self, partial_query: str) -> list[str]: ...


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def classify_error(exc: Exception) -> PostcodeLookupError:
    """Map an SDK / transport exception onto the lookup error kinds."""
    if isinstance(exc, PostcodeLookupError):
        return exc
    if isinstance(exc, _CONFIG_EXCEPTIONS):
        return ConfigurationError()
    message = str(exc)
    if any(marker in message.lower() for marker in _CONFIG_MARKERS):
        return ConfigurationError()
    return TransientFailure(message or LOOKUP_FALLBACK_MESSAGE)


def parse_name_list(raw: str, limit: int | None = None) -> list[str]:
    """Validate a JSON array of names; strip, drop blanks and duplicates.

    Raises :class:`TransientFailure` if *raw* is not a JSON string array.
    """
    if not raw.strip():
        return []
    try:
        items = _STRING_LIST.validate_json(raw)
    except ValidationError as exc:
        raise TransientFailure("Malformed suggestion payload from model.") from exc

    names: list[str] = []
    seen: set[str] = set()
    for item in items:
        name = item.strip()
        if not name or name in seen:
            continue
        seen.add(name)
        names.append(name)
        if limit is not None and len(names) >= limit:
            break
    return names


def _response_text(response: object) -> str:
    # ``.text`` raises ValueError for blocked or empty candidates.
    try:
        text = response.text  # type: ignore[attr-defined]
    except (ValueError, AttributeError):
        return ""
    return (text or "").strip()


def _grounding_sources(response: object) -> list[GroundingSource]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []

    sources: list[GroundingSource] = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", "") or ""
        title = getattr(web, "title", "") or ""
        if uri and title:
            sources.append(GroundingSource(title=title, uri=uri))
    return sources


def location_prompt(level: LocationLevel, context: LocationContext) -> str:
    return _LOCATION_PROMPTS[level].format(**context.model_dump()) + _JSON_ARRAY_SUFFIX


# ---------------------------------------------------------------------------
# GeminiLookupService
# ---------------------------------------------------------------------------


class GeminiLookupService:
    """Async interface to Vertex AI Gemini for postal-code lookups.

    Provides three operations:

    * **lookup_postcode** -- grounded answer with web citations
    * **list_locations** -- candidate names for one form level
    * **list_quick_suggestions** -- autocomplete for quick search
    """

    def __init__(
        self,
        project_id: str,
        region: str = "us-central1",
        model_name: str = "gemini-2.0-flash",
        lite_model_name: str = "gemini-2.0-flash-lite",
        quick_suggestion_limit: int = 5,
    ) -> None:
        self._project_id = project_id
        self._region = region
        self._model_name = model_name
        self._lite_model_name = lite_model_name
        self._quick_suggestion_limit = quick_suggestion_limit
        self._model: GenerativeModel | None = None
        self._lite_model: GenerativeModel | None = None
        self._search_tool: Tool | None = None
        self._initialized = False

    @property
    def configured(self) -> bool:
        return bool(self._project_id)

    # -- lifecycle ----------------------------------------------------------

    def _initialize(self) -> None:
        """Lazily initialize the Vertex AI SDK and model handles."""
        if self._initialized:
            return
        if not self._project_id:
            raise ConfigurationError()
        vertexai.init(project=self._project_id, location=self._region)
        self._model = GenerativeModel(model_name=self._model_name)
        self._lite_model = GenerativeModel(model_name=self._lite_model_name)
        self._search_tool = Tool.from_dict({"google_search": {}})
        self._initialized = True
        logger.info(
            "llm.initialized",
            project=self._project_id,
            region=self._region,
            model=self._model_name,
            lite_model=self._lite_model_name,
        )

    def _get_model(self, *, lite: bool = False) -> GenerativeModel:
        self._initialize()
        model = self._lite_model if lite else self._model
        assert model is not None  # noqa: S101
        return model

    # -- helpers ------------------------------------------------------------

    async def _generate_names(
        self,
        prompt: str,
        *,
        lite: bool,
        limit: int | None = None,
    ) -> list[str]:
        model = self._get_model(lite=lite)
        response = await model.generate_content_async(
            contents=[Content(role="user", parts=[Part.from_text(prompt)])],
            generation_config=GenerationConfig(
                temperature=0.1,
                max_output_tokens=2048,
                response_mime_type="application/json",
                response_schema=_STRING_ARRAY_SCHEMA,
            ),
        )
        return parse_name_list(_response_text(response), limit=limit)

    # -- public API ---------------------------------------------------------

    async def lookup_postcode(self, query: str) -> SearchResult:
        """Answer a postal-code query with Google Search grounding.

        Raises
        ------
        ConfigurationError
            Credentials or project setup are missing or rejected.
        TransientFailure
            Any other failure; a manual retry may succeed.
        """
        start = time.perf_counter()
        try:
            model = self._get_model()
            response = await model.generate_content_async(
                contents=[Content(role="user", parts=[Part.from_text(_LOOKUP_PROMPT.format(query=query))])],
                generation_config=GenerationConfig(temperature=0.2, max_output_tokens=2048),
                tools=[self._search_tool],
            )
            text = _response_text(response) or _NO_RESULTS_TEXT
            sources = _grounding_sources(response)
        except Exception as exc:
            error = classify_error(exc)
            logger.error(
                "llm.lookup_postcode_failed",
                kind=error.kind.value,
                error=error.message,
                exc_info=True,
            )
            raise error from exc

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "llm.lookup_postcode",
            query_length=len(query),
            answer_length=len(text),
            sources=len(sources),
            processing_time_ms=round(elapsed_ms, 2),
        )
        return SearchResult(text=text, sources=sources)

    async def list_locations(self, level: LocationLevel, context: LocationContext) -> list[str]:
        """Candidate names for *level* under the ancestors in *context*.

        Returns an empty list on any failure.
        """
        start = time.perf_counter()
        try:
            names = await self._generate_names(location_prompt(level, context), lite=False)
        except Exception:
            logger.warning("llm.list_locations_failed", level=level.value, exc_info=True)
            return []

        logger.info(
            "llm.list_locations",
            level=level.value,
            count=len(names),
            processing_time_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return names

    async def list_quick_suggestions(self, partial_query: str) -> list[str]:
        """Up to ``quick_suggestion_limit`` completions; empty on failure."""
        prompt = _QUICK_SUGGESTION_PROMPT.format(
            limit=self._quick_suggestion_limit,
            partial=partial_query,
        )
        try:
            return await self._generate_names(prompt, lite=True, limit=self._quick_suggestion_limit)
        except Exception:
            logger.warning("llm.quick_suggestions_failed", exc_info=True)
            return []
