from __future__ import annotations

from enum import StrEnum


class SubMode(StrEnum):
    """Which branch below the district/city level a detailed query uses."""

    __slots__ = ()

    AREA = "area"
    MANDAL = "mandal"


class LocationField(StrEnum):
    """Fields of the location form, in hierarchy order."""

    __slots__ = ()

    COUNTRY = "country"
    STATE = "state"
    CITY = "city"
    AREA = "area"
    MANDAL = "mandal"
    VILLAGE = "village"


class LocationLevel(StrEnum):
    """Hierarchy levels for which candidate names are fetched."""

    __slots__ = ()

    STATE = "state"
    CITY = "city"
    AREA = "area"
    MANDAL = "mandal"
    VILLAGE = "village"


class SearchMode(StrEnum):
    __slots__ = ()

    QUICK = "quick"
    DETAILED = "detailed"


class ErrorKind(StrEnum):
    __slots__ = ()

    CONFIGURATION = "configuration"
    TRANSIENT = "transient"


class BlockKind(StrEnum):
    __slots__ = ()

    HEADING = "heading"
    LIST_ITEM = "list_item"
    PARAGRAPH = "paragraph"
