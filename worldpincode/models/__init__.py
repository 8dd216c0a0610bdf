from worldpincode.models.enums import (
    BlockKind,
    ErrorKind,
    LocationField,
    LocationLevel,
    SearchMode,
    SubMode,
)
from worldpincode.models.location import (
    FieldLoadingFlags,
    LocationContext,
    LocationSelection,
    SelectionState,
    SuggestionFetch,
    SuggestionLists,
)
from worldpincode.models.response import FormattedResult, SearchSnapshot, SessionSnapshot
from worldpincode.models.search import (
    AnswerBlock,
    AutocompleteState,
    GroundingSource,
    SearchResult,
    SearchSession,
    SourceLink,
    TextSpan,
    ViewState,
)

__all__ = [
    "AnswerBlock",
    "AutocompleteState",
    "BlockKind",
    "ErrorKind",
    "FieldLoadingFlags",
    "FormattedResult",
    "GroundingSource",
    "LocationContext",
    "LocationField",
    "LocationLevel",
    "LocationSelection",
    "SearchMode",
    "SearchResult",
    "SearchSession",
    "SearchSnapshot",
    "SelectionState",
    "SessionSnapshot",
    "SourceLink",
    "SubMode",
    "SuggestionFetch",
    "SuggestionLists",
    "TextSpan",
    "ViewState",
]
