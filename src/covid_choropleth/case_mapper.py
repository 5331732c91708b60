"""
Case Snapshot Mapping Module

Re-keys the current case snapshot (keyed by underscore-separated region names)
onto canonical country codes so it can be joined with the other feeds.
"""

from dataclasses import asdict, dataclass
from typing import Dict, List, Mapping

import pandas as pd

from .config.logging_config import get_logger

logger = get_logger(__name__)


def to_count(value) -> int:
    """Convert a raw count to a non-negative int, treating blanks as 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    try:
        if isinstance(value, str) and value.strip().lstrip("+-").isdigit():
            count = int(value)
        else:
            count = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(count, 0)


@dataclass(frozen=True)
class CaseRecord:
    """Current case counts for one country."""

    code: str
    country: str
    confirmed: int = 0
    deaths: int = 0
    recovered: int = 0

    @classmethod
    def from_raw(cls, code: str, country: str, raw: Mapping) -> "CaseRecord":
        return cls(
            code=code,
            country=country,
            confirmed=to_count(raw.get("confirmed")),
            deaths=to_count(raw.get("deaths")),
            recovered=to_count(raw.get("recovered")),
        )


def display_name_from_key(raw_key: str) -> str:
    """Case feed keys use underscores where the display name has spaces."""
    return raw_key.replace("_", " ")


def map_cases(raw_cases: Mapping[str, Mapping], code_table: Mapping[str, str]) -> Dict[str, CaseRecord]:
    """
    Map raw case entries onto canonical country codes.

    Entries whose display name does not resolve are dropped. If two raw keys
    resolve to the same code, the one iterated later wins.

    Args:
        raw_cases: Raw case feed (region key -> {confirmed, deaths, recovered})
        code_table: Display name -> country code lookup

    Returns:
        Dictionary of country code -> CaseRecord
    """
    case_map: Dict[str, CaseRecord] = {}
    unresolved = 0

    for raw_key, raw_record in raw_cases.items():
        country = display_name_from_key(raw_key)
        code = code_table.get(country)
        if not code:
            unresolved += 1
            logger.debug(f"No country code for case entry '{raw_key}', dropping it")
            continue

        if code in case_map:
            logger.warning(
                f"Case entries '{case_map[code].country}' and '{country}' both resolve to {code}; "
                f"keeping '{country}'"
            )

        case_map[code] = CaseRecord.from_raw(code, country, raw_record)

    logger.info(f"Mapped {len(case_map)} case entries to country codes ({unresolved} unresolved)")

    return case_map


def find_unresolved_names(raw_cases: Mapping[str, Mapping], code_table: Mapping[str, str]) -> List[str]:
    """Return the sorted display names from the case feed that have no country code."""
    return sorted(
        display_name_from_key(raw_key)
        for raw_key in raw_cases
        if display_name_from_key(raw_key) not in code_table
    )


def case_records_to_frame(case_map: Mapping[str, CaseRecord]) -> pd.DataFrame:
    """
    Convert mapped case records into a DataFrame sorted by country name.

    Args:
        case_map: Country code -> CaseRecord

    Returns:
        DataFrame with code, country, confirmed, deaths and recovered columns
    """
    columns = ["code", "country", "confirmed", "deaths", "recovered"]
    df = pd.DataFrame([asdict(record) for record in case_map.values()], columns=columns)
    return df.sort_values("country").reset_index(drop=True)
