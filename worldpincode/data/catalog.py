"""Static choices offered by the search UI."""

from __future__ import annotations

from typing import Final

APP_TITLE: Final[str] = "WorldPincode"
APP_DESCRIPTION: Final[str] = "Search for postal codes, zip codes, and pincodes globally."

SUGGESTED_QUERIES: Final[tuple[str, ...]] = (
    "New York 10001",
    "Postcodes in London",
    "90210",
    "Pincodes for Bangalore",
    "Paris districts",
    "Zip code for Sydney Opera House",
)

COMMON_COUNTRIES: Final[tuple[str, ...]] = (
    "United States", "United Kingdom", "Canada", "India", "Australia",
    "Germany", "France", "Japan", "China", "Brazil", "Mexico",
    "Italy", "Spain", "Russia", "South Korea", "Netherlands",
    "Turkey", "Switzerland", "Sweden", "Poland", "Belgium",
    "Argentina", "Norway", "Austria", "United Arab Emirates",
    "Singapore", "New Zealand", "Ireland", "Denmark", "Finland",
)

MAJOR_CITIES: Final[tuple[str, ...]] = (
    "New York", "London", "Paris", "Tokyo", "Mumbai", "Delhi",
    "Bangalore", "Sydney", "Toronto", "Berlin", "Dubai",
    "Los Angeles", "Chicago", "Houston", "San Francisco",
    "Shanghai", "Beijing", "Moscow", "Seoul", "Sao Paulo",
    "Mexico City", "Istanbul", "Rome", "Madrid", "Amsterdam",
)
