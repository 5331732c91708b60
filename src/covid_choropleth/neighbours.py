"""
Neighbour graph construction from the adjacency feed.
"""

from typing import Dict, Iterable, List, Mapping

from .code_resolver import record_code
from .config.constants import BORDERS_FIELD
from .config.logging_config import get_logger

logger = get_logger(__name__)

AdjacencyMap = Dict[str, List[str]]


def build_adjacency(raw_neighbours: Iterable[Mapping]) -> AdjacencyMap:
    """
    Key the adjacency feed by country code.

    Border order is preserved and neighbour codes are not checked against any
    other feed; a neighbour may have no case data at all.

    Args:
        raw_neighbours: Records of the form {code, borders}

    Returns:
        AdjacencyMap of country code -> list of neighbour codes
    """
    adjacency: AdjacencyMap = {}

    for record in raw_neighbours:
        code = record_code(record)
        if not code:
            logger.warning(f"Skipping neighbour record without a country code: {record!r}")
            continue
        adjacency[code] = list(record.get(BORDERS_FIELD) or [])

    logger.info(f"Built adjacency map for {len(adjacency)} countries")

    return adjacency
