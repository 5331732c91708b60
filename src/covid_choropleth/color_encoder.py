"""
Severity Colour Encoding Module

Maps (confirmed, deaths) counts to an HSL colour. The hue moves from blue (240,
all confirmed) towards red (360, all deaths) with the share of deaths; the
lightness drops with the log-scaled severity ``confirmed + 20 * deaths``, so the
darker the colour the more alarming the situation.
"""

import math
from typing import Dict, Iterable, List, Mapping, Tuple

import numpy as np

from .case_mapper import CaseRecord
from .config.constants import (
    DEATH_WEIGHT,
    HUE_CONFIRMED,
    HUE_DEATHS,
    MAX_LIGHTNESS,
    SATURATION,
    WEIGHT_SCALE,
)

HUE_RANGE = HUE_DEATHS - HUE_CONFIRMED


def severity_weight(confirmed: int, deaths: int) -> int:
    """Log-scaled, deaths-amplified magnitude in [0, 95]."""
    severity = confirmed + DEATH_WEIGHT * deaths
    if severity <= 0:
        return 0
    weight = math.floor(WEIGHT_SCALE * math.log(severity))
    return min(max(weight, 0), MAX_LIGHTNESS)


def hsl_components(confirmed: int, deaths: int) -> Tuple[int, int, int]:
    """
    Compute the (hue, saturation, lightness) triple for one country.

    Args:
        confirmed: Number of confirmed cases
        deaths: Number of deaths

    Returns:
        Tuple of integer hue, saturation and lightness
    """
    denominator = max(1, confirmed + deaths)
    hue = int(HUE_CONFIRMED + HUE_RANGE * deaths / denominator)
    lightness = max(0, MAX_LIGHTNESS - severity_weight(confirmed, deaths))
    return hue, SATURATION, lightness


def format_hsl(hue: int, saturation: int, lightness: int) -> str:
    return f"hsl({hue}, {saturation}%, {lightness}%)"


def encode(confirmed: int, deaths: int) -> str:
    """Severity colour for one country as an HSL string."""
    return format_hsl(*hsl_components(confirmed, deaths))


def encode_many(confirmed: Iterable[int], deaths: Iterable[int]) -> List[str]:
    """
    Vectorised form of :func:`encode` for aligned sequences of counts.

    Args:
        confirmed: Confirmed counts
        deaths: Death counts, same length as ``confirmed``

    Returns:
        List of HSL colour strings
    """
    c = np.asarray(list(confirmed), dtype=float)
    d = np.asarray(list(deaths), dtype=float)
    if c.shape != d.shape:
        raise ValueError(f"Mismatched inputs: {c.shape[0]} confirmed vs {d.shape[0]} deaths")

    hue = (HUE_CONFIRMED + HUE_RANGE * d / np.maximum(c + d, 1)).astype(int)

    severity = c + DEATH_WEIGHT * d
    safe_severity = np.where(severity > 0, severity, 1)
    weight = np.where(severity > 0, np.floor(WEIGHT_SCALE * np.log(safe_severity)), 0)
    weight = np.clip(weight, 0, MAX_LIGHTNESS).astype(int)
    lightness = np.maximum(0, MAX_LIGHTNESS - weight)

    return [format_hsl(h, SATURATION, l) for h, l in zip(hue.tolist(), lightness.tolist())]


def color_assignment(case_map: Mapping[str, CaseRecord]) -> Dict[str, str]:
    """Static colour per country code, derived from the current case records."""
    codes = list(case_map)
    colors = encode_many(
        [case_map[code].confirmed for code in codes],
        [case_map[code].deaths for code in codes],
    )
    return dict(zip(codes, colors))
