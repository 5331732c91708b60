"""
COVID-19 Choropleth - Configuration Constants

Centralized configuration and constants for the entire project.
This module contains all hardcoded values, mappings, and configuration
parameters used across different modules.
"""

from datetime import date

# Data source URLs
BASE_URL = "https://tie-lukioplus.rd.tuni.fi/corona/api/"
ENDPOINTS = {
    "countries": "countries",
    "cases": "corona",
    "neighbours": "neighbours",
}
# Not derived from BASE_URL; the historical feed lives at a fixed address
TIMESERIES_URL = "https://tie-lukioplus.rd.tuni.fi/corona/api/corona/timeseries"
DEFAULT_TIMEOUT_SECONDS = 30

# Countries whose names vary between feeds (special chars, brackets, variants)
# Display name -> canonical 3-letter code. These win over the countries feed.
INITIAL_CODES = {
    "Brunei": "BRN",
    "Mainland China": "CHN",
    "US": "USA",
    "Iran": "IRN",
    "South Korea": "KOR",
    "Korea, South": "KOR",
    "Korea": "KOR",
    "Taiwan*": "TWN",
    "UK": "GBR",
    "United Kingdom": "GBR",
    "Czechia": "CZE",
    "Russia": "RUS",
    "United Arab Emirates": "UAE",
    "Macau": "MAC",
    "North Macedonia": "MKD",
    "Venezuela": "VEN",
    "Vietnam": "VNM",
    "Cote d'Ivoire": "CIV",
    "West Bank and Gaza": "PSE",
    "Kosovo": "KOS",
    "Congo (Kinshasa)": "COD",
    "Congo (Brazzaville)": "COG",
    "Tanzania": "TZA",
    "Burma": "MMR",
    "Syria": "SYR",
    "Laos": "LAO",
    "Eswatini": "SWZ",
}

# Field names in the raw feeds
COUNTRY_NAME_FIELD = "name"
COUNTRY_CODE_FIELDS = ("code", "alpha3Code")
BORDERS_FIELD = "borders"
REGION_NAME_FIELD = "Country/Region"
NAME_QUALIFIER_SEPARATOR = " ("

# Historical series layout
METRIC_INDEX = {
    "confirmed": 0,
    "deaths": 1,
}
SERIES_START_DATE = date(2020, 1, 22)
DATE_STRATEGIES = ("calendar", "rollover")

# Severity colour encoding (HSL)
HUE_CONFIRMED = 240
HUE_DEATHS = 360
SATURATION = 100
MAX_LIGHTNESS = 95
WEIGHT_SCALE = 7
DEATH_WEIGHT = 20

# Map rendering
DEFAULT_FILL = "#EEEEEE"
MAP_PROJECTION = "mercator"
MAP_HEIGHT = 600
PLAYBACK_INTERVAL_SECONDS = 1.0

# Results table
TABLE_COLUMNS = ["Country", "Confirmed", "Deaths", "Recovered"]
MISSING_VALUE_PLACEHOLDER = "-"

# Logging configuration
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVEL = "INFO"
