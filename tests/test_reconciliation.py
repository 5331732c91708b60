"""
Test suite for feed loading and reconciliation.

This test suite covers:
- Feed retrieval and error handling
- Country code table construction
- Case snapshot mapping onto country codes
- Neighbour graph construction
- Severity colour encoding
"""

import io
import logging
from unittest.mock import Mock, patch

import pytest
import requests

from covid_choropleth.case_mapper import (
    CaseRecord,
    case_records_to_frame,
    find_unresolved_names,
    map_cases,
    to_count,
)
from covid_choropleth.code_resolver import (
    build_code_table,
    lookup_display_name,
    normalize_display_name,
    search_options,
)
from covid_choropleth.color_encoder import (
    color_assignment,
    encode,
    encode_many,
    hsl_components,
    severity_weight,
)
from covid_choropleth.config.constants import INITIAL_CODES
from covid_choropleth.config.logging_config import get_logger, set_log_level
from covid_choropleth.data_loader import (
    FeedFetchError,
    build_feed_urls,
    get_json,
    load_countries,
    load_timeseries,
)
from covid_choropleth.neighbours import build_adjacency


class TestDataLoader:
    """Test cases for feed retrieval."""

    @patch("requests.get")
    def test_get_json_success(self, mock_get):
        """Test successful JSON retrieval."""
        mock_response = Mock()
        mock_response.raise_for_status.return_value = None
        mock_response.json.return_value = [{"name": "Finland", "code": "FIN"}]
        mock_get.return_value = mock_response

        data = get_json("http://test-url.com/countries")

        assert data == [{"name": "Finland", "code": "FIN"}]
        mock_get.assert_called_once_with("http://test-url.com/countries", timeout=30)

    @patch("requests.get")
    def test_get_json_request_error(self, mock_get):
        """Test that request failures surface as FeedFetchError."""
        mock_get.side_effect = requests.exceptions.RequestException("API Error")

        with pytest.raises(FeedFetchError) as excinfo:
            get_json("http://test-url.com/corona")

        assert excinfo.value.url == "http://test-url.com/corona"
        assert isinstance(excinfo.value.__cause__, requests.exceptions.RequestException)

    @patch("requests.get")
    def test_get_json_http_error(self, mock_get):
        """Test that HTTP error statuses surface as FeedFetchError."""
        mock_response = Mock()
        mock_response.raise_for_status.side_effect = requests.exceptions.HTTPError("503")
        mock_get.return_value = mock_response

        with pytest.raises(FeedFetchError):
            get_json("http://test-url.com/neighbours")

    @patch("requests.get")
    def test_get_json_invalid_body(self, mock_get):
        """Test that a non-JSON body surfaces as FeedFetchError."""
        mock_response = Mock()
        mock_response.raise_for_status.return_value = None
        mock_response.json.side_effect = ValueError("Expecting value")
        mock_get.return_value = mock_response

        with pytest.raises(FeedFetchError, match="invalid JSON"):
            get_json("http://test-url.com/countries")

    def test_build_feed_urls(self):
        """Test endpoint URL construction with and without a trailing slash."""
        urls = build_feed_urls("http://api.test/corona/api/")
        assert urls == {
            "countries": "http://api.test/corona/api/countries",
            "cases": "http://api.test/corona/api/corona",
            "neighbours": "http://api.test/corona/api/neighbours",
        }
        assert build_feed_urls("http://api.test/corona/api") == urls

    def test_load_countries_rejects_wrong_shape(self):
        """Test that a countries feed that is not a list is rejected."""
        with pytest.raises(FeedFetchError, match="expected a JSON array"):
            load_countries("http://api.test/", fetch=lambda url: {"Finland": "FIN"})

    def test_load_timeseries_uses_given_url(self):
        """Test that the time series URL is fetched as given."""
        fetch = Mock(return_value=[{"confirmed": []}, {"deaths": []}])

        payload = load_timeseries("http://api.test/timeseries", fetch=fetch)

        fetch.assert_called_once_with("http://api.test/timeseries")
        assert len(payload) == 2


class TestCodeResolver:
    """Test cases for the country code table."""

    def test_override_wins_over_feed(self):
        """Test that an override keeps its code when the feed defines the same name."""
        countries = [{"name": "Korea", "code": "PRK"}, {"name": "Finland", "code": "FIN"}]

        code_table = build_code_table(countries, {"Korea": "KOR"})

        assert code_table["Korea"] == "KOR"
        assert code_table["Finland"] == "FIN"

    def test_override_wins_after_truncation(self):
        """Test that a truncated feed name does not replace an override."""
        countries = [{"name": "Congo (Democratic Republic of the)", "code": "XXX"}]

        code_table = build_code_table(countries, {"Congo": "COD"})

        assert code_table["Congo"] == "COD"

    def test_parenthetical_qualifier_stripped(self):
        """Test that names are truncated at the first ' ('."""
        countries = [{"name": "Bolivia (Plurinational State of)", "code": "BOL"}]

        code_table = build_code_table(countries, {})

        assert code_table == {"Bolivia": "BOL"}
        assert normalize_display_name("Congo (Kinshasa)") == "Congo"
        assert normalize_display_name("Finland") == "Finland"

    def test_incomplete_records_skipped(self, caplog):
        """Test that records lacking a name or code are skipped without failing."""
        countries = [
            {"name": "Finland", "code": "FIN"},
            {"name": "Nowhere"},
            {"code": "ZZZ"},
            {"name": "", "code": "YYY"},
        ]

        code_table = build_code_table(countries, {})

        assert code_table == {"Finland": "FIN"}
        assert "Skipped 3 country records" in caplog.text

    def test_alpha3code_field_accepted(self):
        """Test that records carrying the code under alpha3Code are resolved."""
        code_table = build_code_table([{"name": "Aland Islands", "alpha3Code": "ALA"}], {})

        assert code_table["Aland Islands"] == "ALA"

    def test_overrides_not_mutated(self):
        """Test that the override mapping passed in is left untouched."""
        overrides = {"UK": "GBR"}

        build_code_table([{"name": "Finland", "code": "FIN"}], overrides)

        assert overrides == {"UK": "GBR"}

    def test_default_overrides(self, countries_feed):
        """Test that the curated overrides are applied by default."""
        code_table = build_code_table(countries_feed)

        for name, code in INITIAL_CODES.items():
            assert code_table[name] == code
        assert code_table["Congo"] == "COD"

    def test_lookup_display_name(self):
        """Test reverse lookup of a display name by code."""
        code_table = {"UK": "GBR", "United Kingdom": "GBR", "Finland": "FIN"}

        assert lookup_display_name(code_table, "GBR") == "UK"
        assert lookup_display_name(code_table, "FIN") == "Finland"
        assert lookup_display_name(code_table, "SWE") is None

    def test_search_options_sorted(self):
        """Test that search options list every name alphabetically."""
        code_table = {"Sweden": "SWE", "Finland": "FIN", "Norway": "NOR"}

        assert search_options(code_table) == ["Finland", "Norway", "Sweden"]


class TestCaseMapper:
    """Test cases for mapping case entries onto country codes."""

    def test_to_count_keeps_large_integers_exact(self):
        """Test that counts beyond float precision are not rounded."""
        big = 2**53 + 1

        assert to_count(big) == big
        assert to_count(str(big)) == big
        assert to_count("12.7") == 12
        assert to_count(-4) == 0
        assert to_count(None) == 0
        assert to_count("n/a") == 0

    def test_single_country_scenario(self):
        """Test the minimal countries + cases reconciliation."""
        code_table = build_code_table([{"name": "Aland", "code": "ALA"}], {})

        case_map = map_cases({"Aland": {"confirmed": 3, "deaths": 1, "recovered": 1}}, code_table)

        assert case_map == {
            "ALA": CaseRecord(code="ALA", country="Aland", confirmed=3, deaths=1, recovered=1)
        }

    def test_underscores_replaced(self):
        """Test that underscores in raw keys become spaces in the country name."""
        code_table = build_code_table([], INITIAL_CODES)

        case_map = map_cases(
            {"Korea,_South": {"confirmed": 10, "deaths": 0, "recovered": 5}}, code_table
        )

        assert case_map["KOR"].country == "Korea, South"
        assert "_" not in case_map["KOR"].country

    def test_unresolved_entries_dropped(self, countries_feed, cases_feed):
        """Test that entries without a code are dropped and reported."""
        code_table = build_code_table(countries_feed)

        case_map = map_cases(cases_feed, code_table)

        assert set(case_map) == {"FIN", "SWE", "RUS"}
        assert find_unresolved_names(cases_feed, code_table) == ["Diamond Princess"]

    def test_collision_last_entry_wins(self, caplog):
        """Test that two names resolving to one code keep the later entry."""
        code_table = {"UK": "GBR", "United Kingdom": "GBR"}
        cases = {
            "UK": {"confirmed": 1, "deaths": 0, "recovered": 0},
            "United_Kingdom": {"confirmed": 2, "deaths": 0, "recovered": 0},
        }

        case_map = map_cases(cases, code_table)

        assert case_map["GBR"].country == "United Kingdom"
        assert case_map["GBR"].confirmed == 2
        assert "both resolve to GBR" in caplog.text

    def test_counts_coerced(self):
        """Test that missing, null or negative counts become 0."""
        case_map = map_cases(
            {"Finland": {"confirmed": "12", "deaths": None, "recovered": -3}}, {"Finland": "FIN"}
        )

        record = case_map["FIN"]
        assert (record.confirmed, record.deaths, record.recovered) == (12, 0, 0)

    def test_records_are_immutable(self):
        """Test that case records cannot be modified after creation."""
        record = CaseRecord(code="FIN", country="Finland", confirmed=1)

        with pytest.raises(AttributeError):
            record.confirmed = 2

    def test_case_records_to_frame(self, countries_feed, cases_feed):
        """Test conversion of case records to a sorted DataFrame."""
        case_map = map_cases(cases_feed, build_code_table(countries_feed))

        df = case_records_to_frame(case_map)

        assert list(df.columns) == ["code", "country", "confirmed", "deaths", "recovered"]
        assert df["country"].tolist() == ["Finland", "Russia", "Sweden"]
        assert df.loc[0, "confirmed"] == 1000


class TestNeighbourGraph:
    """Test cases for the adjacency map."""

    def test_build_adjacency(self, neighbours_feed):
        """Test that borders are copied per code in their original order."""
        adjacency = build_adjacency(neighbours_feed)

        assert adjacency["FIN"] == ["NOR", "SWE", "RUS"]
        assert adjacency["SWE"] == ["FIN", "NOR"]
        assert len(adjacency) == 3

    def test_unknown_neighbours_kept(self):
        """Test that neighbour codes are not validated against any other feed."""
        adjacency = build_adjacency([{"code": "FIN", "borders": ["XXX"]}])

        assert adjacency == {"FIN": ["XXX"]}

    def test_incomplete_records(self):
        """Test records without a code or without borders."""
        adjacency = build_adjacency(
            [{"borders": ["FIN"]}, {"alpha3Code": "ISL", "borders": []}, {"code": "AUS"}]
        )

        assert adjacency == {"ISL": [], "AUS": []}


class TestColorEncoder:
    """Test cases for the severity colour encoding."""

    def test_no_cases_is_palest(self):
        """Test that zero confirmed and zero deaths give lightness 95."""
        assert hsl_components(0, 0) == (240, 100, 95)
        assert encode(0, 0) == "hsl(240, 100%, 95%)"

    def test_known_value(self):
        """Test hue, weight and lightness for a small case count."""
        # severity 3 + 20 = 23, weight floor(7 * ln 23) = 21
        assert severity_weight(3, 1) == 21
        assert encode(3, 1) == "hsl(270, 100%, 74%)"

    def test_deaths_raise_hue(self):
        """Test that deaths move the hue towards red."""
        for confirmed in (0, 10, 100):
            assert hsl_components(confirmed, 10)[0] > hsl_components(confirmed, 0)[0]
        assert hsl_components(0, 5)[0] == 360

    def test_lightness_monotonic(self):
        """Test that lightness never increases as severity grows."""
        pairs = [
            (0, 0), (1, 0), (10, 0), (0, 1), (100, 0), (50, 5),
            (1000, 0), (0, 100), (10**6, 0), (10**6, 10**5), (10**9, 10**8),
        ]
        pairs.sort(key=lambda pair: pair[0] + 20 * pair[1])

        lightness = [hsl_components(c, d)[2] for c, d in pairs]

        assert lightness == sorted(lightness, reverse=True)

    def test_weight_saturates(self):
        """Test that very large counts clamp the weight at 95."""
        assert severity_weight(10**9, 10**8) == 95
        assert hsl_components(10**9, 10**8)[2] == 0

    def test_encode_many_matches_encode(self):
        """Test that the vectorised encoder agrees with the scalar one."""
        confirmed = [0, 1, 3, 250, 10**6, 42]
        deaths = [0, 0, 1, 30, 10**5, 42]

        assert encode_many(confirmed, deaths) == [encode(c, d) for c, d in zip(confirmed, deaths)]

    def test_encode_many_length_mismatch(self):
        """Test that misaligned inputs are rejected."""
        with pytest.raises(ValueError):
            encode_many([1, 2], [1])

    def test_color_assignment(self, countries_feed, cases_feed):
        """Test the static colour for every country with case data."""
        case_map = map_cases(cases_feed, build_code_table(countries_feed))

        colors = color_assignment(case_map)

        assert set(colors) == {"FIN", "SWE", "RUS"}
        assert colors["FIN"] == encode(1000, 10)


class TestLoggingConfig:
    """Test cases for the centralized logging setup."""

    def test_get_logger_has_no_own_handler(self):
        """Test that package loggers rely on the root handler."""
        first = get_logger("covid_choropleth.test_logging")
        second = get_logger("covid_choropleth.test_logging")

        assert first is second
        assert first.handlers == []
        assert first.propagate

    def test_one_output_line_per_record(self):
        """Test that a package log record is written exactly once."""
        stream = io.StringIO()
        handler = logging.StreamHandler(stream)
        root = logging.getLogger()
        root.addHandler(handler)
        try:
            build_code_table([{"name": "Finland", "code": "FIN"}], {})
        finally:
            root.removeHandler(handler)

        assert stream.getvalue().count("Built code table") == 1

    def test_set_log_level(self):
        """Test that the level applies to every package logger."""
        logger = get_logger("covid_choropleth.test_levels")

        set_log_level("DEBUG")
        assert logger.level == logging.DEBUG
        assert logging.getLogger("covid_choropleth.code_resolver").level == logging.DEBUG

        set_log_level("INFO")
        assert logger.level == logging.INFO
