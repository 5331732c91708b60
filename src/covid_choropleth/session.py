"""
COVID-19 Choropleth Session Module

This module assembles the reconciled session context from the four feeds:
the code table, the code-keyed case records, the adjacency map, the static
colour assignment and the reconstructed confirmed/deaths series. Each load step
is a plain function; ``initialize_session`` only sequences them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from .case_mapper import CaseRecord, find_unresolved_names, map_cases
from .code_resolver import CodeTable, build_code_table
from .color_encoder import color_assignment
from .config.constants import BASE_URL, INITIAL_CODES, TIMESERIES_URL
from .config.logging_config import get_logger
from .data_loader import (
    FeedFetchError,
    JsonFetcher,
    get_json,
    load_cases,
    load_countries,
    load_neighbours,
    load_timeseries,
)
from .neighbours import AdjacencyMap, build_adjacency
from .playback import MapRenderer
from .timeseries import MalformedSeriesError, Series, reconstruct, today_date_key

logger = get_logger(__name__)


@dataclass
class Session:
    """Reconciled data for one dashboard session. Built once, read-only afterwards."""

    code_table: CodeTable
    case_map: Dict[str, CaseRecord]
    adjacency: AdjacencyMap
    country_colors: Dict[str, str]
    confirmed: Series = field(default_factory=dict)
    deaths: Series = field(default_factory=dict)
    diagnostics: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_series(self) -> bool:
        return bool(self.confirmed)


def reconstruct_series(raw_series: Any, date_strategy: str = "calendar") -> Dict[str, Series]:
    """
    Reconstruct both metrics from the raw time series payload.

    Returns:
        Dictionary with "confirmed" and "deaths" Series
    """
    return {
        metric: reconstruct(raw_series, metric, date_strategy=date_strategy)
        for metric in ("confirmed", "deaths")
    }


def build_session(
    countries: List[Mapping],
    cases: Mapping[str, Mapping],
    neighbours: List[Mapping],
    timeseries: Optional[Any] = None,
    overrides: Mapping[str, str] = INITIAL_CODES,
    date_strategy: str = "calendar",
) -> Session:
    """
    Reconcile already-fetched feeds into a Session.

    Args:
        countries: Countries feed
        cases: Current case feed
        neighbours: Adjacency feed
        timeseries: Historical series payload (optional)
        overrides: Curated name -> code overrides
        date_strategy: Date reconstruction strategy for the series

    Returns:
        Fully reconciled Session
    """
    code_table = build_code_table(countries, overrides)
    case_map = map_cases(cases, code_table)
    adjacency = build_adjacency(neighbours)

    session = Session(
        code_table=code_table,
        case_map=case_map,
        adjacency=adjacency,
        country_colors=color_assignment(case_map),
        diagnostics={"unresolved_case_names": find_unresolved_names(cases, code_table)},
    )

    unresolved = session.diagnostics["unresolved_case_names"]
    if unresolved:
        logger.info(f"{len(unresolved)} case entries without a country code, e.g. {unresolved[:5]}")

    if timeseries is not None:
        series = reconstruct_series(timeseries, date_strategy)
        session.confirmed = series["confirmed"]
        session.deaths = series["deaths"]

    return session


def initialize_session(
    base_url: str = BASE_URL,
    timeseries_url: str = TIMESERIES_URL,
    fetch: JsonFetcher = get_json,
    date_strategy: str = "calendar",
) -> Session:
    """
    Fetch every feed in order and build the Session.

    Countries, cases and neighbours are fetched one after another and any failure
    among them propagates. The historical series is fetched last; if it cannot be
    fetched or parsed the session is returned without a series.

    Args:
        base_url: Base URL of the corona API
        timeseries_url: Absolute URL of the historical series feed
        fetch: JSON fetch function
        date_strategy: Date reconstruction strategy for the series

    Returns:
        Session ready for rendering

    Raises:
        FeedFetchError: If one of the core feeds cannot be loaded
    """
    logger.info("Starting session initialization...")

    countries = load_countries(base_url, fetch)
    cases = load_cases(base_url, fetch)
    neighbours = load_neighbours(base_url, fetch)

    session = build_session(countries, cases, neighbours)

    try:
        raw_series = load_timeseries(timeseries_url, fetch)
        series = reconstruct_series(raw_series, date_strategy)
        session.confirmed = series["confirmed"]
        session.deaths = series["deaths"]
    except (FeedFetchError, MalformedSeriesError) as e:
        logger.error(f"Time series unavailable, playback disabled: {e}")
        session.diagnostics["series_error"] = str(e)

    logger.info("Session initialization completed successfully!")

    return session


def render_static_view(session: Session, renderer: MapRenderer) -> None:
    """Paint the current-case colours with today's date label."""
    renderer.reset()
    renderer.update_choropleth(session.country_colors)
    renderer.show_date(today_date_key())


def summarize_session(session: Session) -> Dict:
    """
    Summarize the reconciled session for display and logging.

    Args:
        session: Reconciled Session

    Returns:
        Dictionary with counts, series coverage and resolution diagnostics
    """
    dates = list(session.confirmed)
    summary = {
        "summary_timestamp": datetime.now().isoformat(),
        "known_names": len(session.code_table),
        "known_codes": len(set(session.code_table.values())),
        "countries_with_cases": len(session.case_map),
        "countries_with_neighbours": len(session.adjacency),
        "unresolved_case_names": list(session.diagnostics.get("unresolved_case_names", [])),
        "series_error": session.diagnostics.get("series_error"),
        "series_dates": len(dates),
        "series_first_date": dates[0] if dates else None,
        "series_last_date": dates[-1] if dates else None,
        "series_regions": len(session.confirmed[dates[-1]]) if dates else 0,
    }

    logger.info(
        f"Session summary: {summary['countries_with_cases']} countries with cases, "
        f"{summary['series_dates']} series dates"
    )

    return summary


if __name__ == "__main__":
    try:
        session = initialize_session()

        print("\n=== Session Summary ===")
        for key, value in summarize_session(session).items():
            print(f"{key}: {value}")

    except Exception as e:
        logger.error(f"Session initialization failed: {e}")
        raise
