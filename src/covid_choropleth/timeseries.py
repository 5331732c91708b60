"""
COVID-19 Time Series Reconstruction Module

This module turns the historical confirmed/deaths payload into a chronological
Series: an ordered mapping of "M/D/YY" date keys to per-country snapshots.

The payload holds one entry per metric. Each entry names a single statistic
whose value is a list of region records; a record carries its region name and
one count per date key. Several records can share a region name (provinces of
one country), and their counts are summed into one snapshot entry.
"""

import re
from datetime import date, timedelta
from typing import Any, Dict, Iterator, List, Mapping, Union

import pandas as pd

from .case_mapper import display_name_from_key, to_count
from .config.constants import (
    DATE_STRATEGIES,
    METRIC_INDEX,
    REGION_NAME_FIELD,
    SERIES_START_DATE,
)
from .config.logging_config import get_logger

logger = get_logger(__name__)

Snapshot = Dict[str, int]
Series = Dict[str, Snapshot]

DATE_KEY_PATTERN = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2})$")


class MalformedSeriesError(ValueError):
    """Raised when a payload or a reconstructed series breaks the expected date layout."""


def format_date_key(day: date) -> str:
    """Format a date the way the series feed keys it: M/D/YY, no zero padding."""
    return f"{day.month}/{day.day}/{day.year % 100:02d}"


def parse_date_key(key: str) -> date:
    """Parse an "M/D/YY" key back into a date (years are taken as 20YY)."""
    match = DATE_KEY_PATTERN.match(key)
    if not match:
        raise MalformedSeriesError(f"Not a date key: {key!r}")
    month, day, year = (int(part) for part in match.groups())
    try:
        return date(2000 + year, month, day)
    except ValueError as e:
        raise MalformedSeriesError(f"Invalid date key {key!r}: {e}") from e


def today_date_key() -> str:
    """Label for the static (current) map view."""
    return format_date_key(date.today())


def resolve_metric_index(metric: Union[str, int]) -> int:
    if isinstance(metric, str) and metric in METRIC_INDEX:
        return METRIC_INDEX[metric]
    if isinstance(metric, int) and metric in METRIC_INDEX.values():
        return metric
    raise ValueError(f"Unknown metric {metric!r}; expected one of {sorted(METRIC_INDEX)}")


def metric_records(raw_series: Any, metric: Union[str, int]) -> List[Mapping]:
    """
    Extract the region records for one metric from the raw payload.

    Args:
        raw_series: Payload as a JSON array or an object keyed by metric index
        metric: "confirmed", "deaths" or the raw index 0/1

    Returns:
        List of region records (possibly empty)

    Raises:
        MalformedSeriesError: If the payload does not have the expected nesting
    """
    index = resolve_metric_index(metric)

    if isinstance(raw_series, list):
        entry = raw_series[index] if index < len(raw_series) else None
    elif isinstance(raw_series, dict):
        entry = raw_series.get(str(index), raw_series.get(index))
    else:
        raise MalformedSeriesError(f"Unexpected time series payload: {type(raw_series).__name__}")

    if not isinstance(entry, dict) or not entry:
        raise MalformedSeriesError(f"No statistic found for metric {metric!r}")

    statistic = next(iter(entry))
    records = entry[statistic]
    if not isinstance(records, list):
        raise MalformedSeriesError(f"Statistic '{statistic}' does not hold a list of region records")

    logger.debug(f"Metric {metric!r}: statistic '{statistic}' with {len(records)} region records")
    return records


def date_keys(record: Mapping) -> List[str]:
    """Keys of a region record that look like "M/D/YY" dates."""
    return [key for key in record if DATE_KEY_PATTERN.match(key)]


def _calendar_dates(first_record: Mapping, bound: int) -> Iterator[str]:
    cursor = SERIES_START_DATE
    for _ in range(bound):
        key = format_date_key(cursor)
        if key in first_record:
            yield key
        else:
            logger.warning(f"Date {key} missing from time series, skipping it")
        cursor += timedelta(days=1)


def _rollover_dates(first_record: Mapping, bound: int) -> Iterator[str]:
    # A missing key is read as "past the end of the month". The year is never advanced.
    month, day, year = SERIES_START_DATE.month, SERIES_START_DATE.day, SERIES_START_DATE.year % 100
    for _ in range(bound):
        key = f"{month}/{day}/{year:02d}"
        if key in first_record:
            yield key
        else:
            month += 1
            day = 0
        day += 1


def build_snapshot(records: List[Mapping], date_key: str) -> Snapshot:
    """
    Total one date's counts per region name.

    Records sharing a region name are added together.
    """
    snapshot: Snapshot = {}
    for record in records:
        raw_name = record.get(REGION_NAME_FIELD)
        if not raw_name:
            continue
        name = display_name_from_key(raw_name)
        snapshot[name] = snapshot.get(name, 0) + to_count(record.get(date_key))
    return snapshot


def reconstruct(raw_series: Any, metric: Union[str, int], date_strategy: str = "calendar") -> Series:
    """
    Reconstruct the chronological Series for one metric.

    The number of iterations equals the number of date keys on the first region
    record. With the "calendar" strategy the cursor is a real date advanced one day
    per iteration; the "rollover" strategy infers month ends from missing keys.

    Args:
        raw_series: Raw time series payload
        metric: "confirmed", "deaths" or the raw index 0/1
        date_strategy: "calendar" or "rollover"

    Returns:
        Series of date key -> Snapshot, in chronological order
    """
    if date_strategy not in DATE_STRATEGIES:
        raise ValueError(f"Unknown date strategy {date_strategy!r}; expected one of {DATE_STRATEGIES}")

    records = metric_records(raw_series, metric)
    if not records:
        logger.warning(f"Time series for metric {metric!r} has no region records")
        return {}

    first_record = records[0]
    bound = len(date_keys(first_record))

    dates = (
        _calendar_dates(first_record, bound)
        if date_strategy == "calendar"
        else _rollover_dates(first_record, bound)
    )

    series: Series = {}
    for key in dates:
        series[key] = build_snapshot(records, key)

    if series:
        first, last = next(iter(series)), list(series)[-1]
        logger.info(
            f"Reconstructed {metric!r} series: {len(series)} dates ({first} to {last}), "
            f"{len(series[first])} regions"
        )
    else:
        logger.warning(f"Reconstructed {metric!r} series is empty")

    return series


def validate_series(series: Mapping[str, Snapshot]) -> None:
    """
    Check that a series starts at 1/22/20 and advances one calendar day per entry.

    Raises:
        MalformedSeriesError: On the first violation found
    """
    keys = list(series)
    if not keys:
        return

    expected_first = format_date_key(SERIES_START_DATE)
    if keys[0] != expected_first:
        raise MalformedSeriesError(f"Series starts at {keys[0]}, expected {expected_first}")

    previous = parse_date_key(keys[0])
    for key in keys[1:]:
        current = parse_date_key(key)
        if current - previous != timedelta(days=1):
            raise MalformedSeriesError(
                f"Series jumps from {format_date_key(previous)} to {key}"
            )
        previous = current


def series_to_frame(series: Mapping[str, Snapshot]) -> pd.DataFrame:
    """
    Convert a Series into a DataFrame with one row per date and one column per region.

    Args:
        series: Reconstructed Series

    Returns:
        DataFrame indexed by date (DatetimeIndex); regions absent on a date count as 0
    """
    if not series:
        return pd.DataFrame()

    df = pd.DataFrame.from_dict(series, orient="index").fillna(0).astype(int)
    df.index = pd.to_datetime([parse_date_key(key) for key in df.index])
    df.index.name = "date"
    return df
