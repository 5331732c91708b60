"""
COVID-19 Feed Loading Module

This module handles retrieval of the four JSON feeds the choropleth is built from:
- Country metadata (display names and 3-letter codes)
- Current case snapshot per region
- Country adjacency (land borders)
- Historical confirmed/deaths time series
"""

import json
from typing import Any, Callable, Dict, List

import requests

from .config.constants import BASE_URL, DEFAULT_TIMEOUT_SECONDS, ENDPOINTS, TIMESERIES_URL
from .config.logging_config import get_logger

logger = get_logger(__name__)

JsonFetcher = Callable[[str], Any]


class FeedFetchError(RuntimeError):
    """Raised when a feed cannot be retrieved or does not contain the expected JSON."""

    def __init__(self, url: str, message: str):
        super().__init__(f"{url}: {message}")
        self.url = url


def get_json(url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> Any:
    """
    Fetch one URL and parse its JSON body.

    Args:
        url: Feed URL
        timeout: Request timeout in seconds

    Returns:
        Parsed JSON content

    Raises:
        FeedFetchError: If the request fails or the body is not valid JSON
    """
    try:
        logger.info(f"Fetching {url}")
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        return response.json()

    except requests.RequestException as e:
        logger.error(f"Failed to fetch {url}: {e}")
        raise FeedFetchError(url, str(e)) from e
    except (json.JSONDecodeError, ValueError) as e:
        logger.error(f"Failed to parse JSON from {url}: {e}")
        raise FeedFetchError(url, f"invalid JSON ({e})") from e


def build_feed_urls(base_url: str = BASE_URL) -> Dict[str, str]:
    """
    Build the endpoint URLs served under the configurable base URL.

    Args:
        base_url: Base URL of the corona API

    Returns:
        Dictionary of feed name -> absolute URL
    """
    if not base_url.endswith("/"):
        base_url = base_url + "/"
    return {feed: f"{base_url}{path}" for feed, path in ENDPOINTS.items()}


def _expect_list(data: Any, url: str) -> List[Dict]:
    if not isinstance(data, list):
        raise FeedFetchError(url, f"expected a JSON array, got {type(data).__name__}")
    return data


def _expect_mapping(data: Any, url: str) -> Dict:
    if not isinstance(data, dict):
        raise FeedFetchError(url, f"expected a JSON object, got {type(data).__name__}")
    return data


def load_countries(base_url: str = BASE_URL, fetch: JsonFetcher = get_json) -> List[Dict]:
    """Load the country metadata feed: a list of {name, code} records."""
    url = build_feed_urls(base_url)["countries"]
    countries = _expect_list(fetch(url), url)
    logger.info(f"Loaded {len(countries)} country records")
    return countries


def load_cases(base_url: str = BASE_URL, fetch: JsonFetcher = get_json) -> Dict[str, Dict]:
    """Load the current case snapshot keyed by underscore-separated region name."""
    url = build_feed_urls(base_url)["cases"]
    cases = _expect_mapping(fetch(url), url)
    logger.info(f"Loaded case data for {len(cases)} regions")
    return cases


def load_neighbours(base_url: str = BASE_URL, fetch: JsonFetcher = get_json) -> List[Dict]:
    """Load the adjacency feed: a list of {code, borders} records."""
    url = build_feed_urls(base_url)["neighbours"]
    neighbours = _expect_list(fetch(url), url)
    logger.info(f"Loaded neighbour data for {len(neighbours)} countries")
    return neighbours


def load_timeseries(url: str = TIMESERIES_URL, fetch: JsonFetcher = get_json) -> Any:
    """
    Load the historical series payload.

    The payload holds one entry per metric (0 = confirmed, 1 = deaths), either as a
    JSON array or as an object keyed by the metric index.

    Args:
        url: Absolute URL of the time series feed
        fetch: JSON fetch function

    Returns:
        Raw time series payload
    """
    data = fetch(url)
    if not isinstance(data, (list, dict)):
        raise FeedFetchError(url, f"unexpected time series payload {type(data).__name__}")
    logger.info(f"Loaded time series payload with {len(data)} metrics")
    return data
