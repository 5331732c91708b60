"""
Shared fixtures: small but realistic feed payloads and a recording map renderer.
"""

from datetime import date, timedelta

import pytest

from covid_choropleth.playback import ManualTimer, PlaybackScheduler
from covid_choropleth.session import build_session


def date_keys_from(start: date, days: int):
    """Consecutive "M/D/YY" keys starting at ``start``."""
    keys = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        keys.append(f"{day.month}/{day.day}/{day.year % 100}")
    return keys


def make_region(name, counts, province=""):
    """Region record shaped like the historical feed's rows."""
    record = {"Province/State": province, "Country/Region": name, "Lat": 0.0, "Long": 0.0}
    record.update(counts)
    return record


class RecordingRenderer:
    """Map renderer double that remembers every call."""

    def __init__(self):
        self.colors = {}
        self.date_label = None
        self.calls = []

    def reset(self):
        self.colors = {}
        self.calls.append(("reset",))

    def update_choropleth(self, colors):
        self.colors.update(colors)
        self.calls.append(("update", dict(colors)))

    def show_date(self, label):
        self.date_label = label
        self.calls.append(("date", label))


@pytest.fixture
def countries_feed():
    return [
        {"name": "Finland", "code": "FIN"},
        {"name": "Sweden", "code": "SWE"},
        {"name": "Norway", "code": "NOR"},
        {"name": "Russian Federation", "code": "RUS"},
        {"name": "Congo (Kinshasa)", "code": "COD"},
    ]


@pytest.fixture
def cases_feed():
    return {
        "Finland": {"confirmed": 1000, "deaths": 10, "recovered": 900},
        "Sweden": {"confirmed": 5000, "deaths": 400, "recovered": 4000},
        "Russia": {"confirmed": 20000, "deaths": 150, "recovered": 15000},
        "Diamond_Princess": {"confirmed": 712, "deaths": 13, "recovered": 651},
    }


@pytest.fixture
def neighbours_feed():
    return [
        {"code": "FIN", "borders": ["NOR", "SWE", "RUS"]},
        {"code": "SWE", "borders": ["FIN", "NOR"]},
        {"code": "NOR", "borders": ["FIN", "SWE", "RUS"]},
    ]


@pytest.fixture
def series_dates():
    # Crosses the January/February boundary
    return date_keys_from(date(2020, 1, 22), 14)


@pytest.fixture
def timeseries_feed(series_dates):
    confirmed = [
        make_region("Finland", {key: i for i, key in enumerate(series_dates)}),
        make_region("Sweden", {key: 2 * i for i, key in enumerate(series_dates)}),
        make_region("Russia", {key: 0 for key in series_dates}),
        make_region("Norway", {key: 1 for key in series_dates}, province="Svalbard"),
        make_region("Norway", {key: 2 for key in series_dates}),
    ]
    deaths = [
        make_region("Finland", {key: 0 for key in series_dates}),
        make_region("Sweden", {key: i // 2 for i, key in enumerate(series_dates)}),
        make_region("Russia", {key: 0 for key in series_dates}),
        make_region("Norway", {key: 0 for key in series_dates}, province="Svalbard"),
        make_region("Norway", {key: 0 for key in series_dates}),
    ]
    return [{"confirmed": confirmed}, {"deaths": deaths}]


@pytest.fixture
def session(countries_feed, cases_feed, neighbours_feed, timeseries_feed):
    return build_session(countries_feed, cases_feed, neighbours_feed, timeseries_feed)


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def timer():
    return ManualTimer()


@pytest.fixture
def scheduler(session, renderer, timer):
    return PlaybackScheduler(session.confirmed, session.deaths, session.code_table, renderer, timer)
