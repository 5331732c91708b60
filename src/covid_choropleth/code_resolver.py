"""
Country Code Resolution Module

This module builds the canonical country-code lookup that joins every feed together.
Display names from the countries feed are normalized (parenthetical qualifiers dropped)
and merged with a curated override table for countries whose names differ between feeds.
"""

from typing import Dict, Iterable, List, Mapping, Optional

from .config.constants import (
    COUNTRY_CODE_FIELDS,
    COUNTRY_NAME_FIELD,
    INITIAL_CODES,
    NAME_QUALIFIER_SEPARATOR,
)
from .config.logging_config import get_logger

logger = get_logger(__name__)

CodeTable = Dict[str, str]


def normalize_display_name(name: str) -> str:
    """
    Strip a parenthetical qualifier from a country name.

    "Congo (Kinshasa)" becomes "Congo"; names without " (" are returned unchanged.
    """
    return name.split(NAME_QUALIFIER_SEPARATOR, 1)[0]


def record_code(record: Mapping) -> Optional[str]:
    """Return the 3-letter code of a feed record, whichever field carries it."""
    for field in COUNTRY_CODE_FIELDS:
        code = record.get(field)
        if code:
            return code
    return None


def build_code_table(
    country_records: Iterable[Mapping], overrides: Mapping[str, str] = INITIAL_CODES
) -> CodeTable:
    """
    Build the display name -> country code lookup.

    Override entries are inserted first and are never replaced by a derived
    entry for the same name. Two records truncating to the same display name
    keep the later record's code.

    Args:
        country_records: Records from the countries feed ({name, code})
        overrides: Curated name -> code entries for name variants

    Returns:
        CodeTable mapping every known display name to its code
    """
    code_table: CodeTable = dict(overrides)
    skipped = 0

    for record in country_records:
        name = record.get(COUNTRY_NAME_FIELD)
        code = record_code(record)
        if not name or not code:
            skipped += 1
            continue

        display_name = normalize_display_name(name)
        if display_name in overrides:
            continue
        code_table[display_name] = code

    if skipped:
        logger.warning(f"Skipped {skipped} country records without a name or code")

    logger.info(
        f"Built code table: {len(code_table)} names "
        f"({len(overrides)} overrides, {len(set(code_table.values()))} distinct codes)"
    )

    return code_table


def lookup_display_name(code_table: Mapping[str, str], code: str) -> Optional[str]:
    """Return the first display name that resolves to ``code``, or None."""
    for name, candidate in code_table.items():
        if candidate == code:
            return name
    return None


def search_options(code_table: Mapping[str, str]) -> List[str]:
    """Sorted display names offered by the country search widget."""
    return sorted(code_table)
