"""
Country selection: highlight a country with its neighbours and keep the results table.
"""

from typing import Dict, List, NamedTuple, Optional, Union

import pandas as pd

from .code_resolver import lookup_display_name
from .config.constants import MISSING_VALUE_PLACEHOLDER, TABLE_COLUMNS
from .config.logging_config import get_logger
from .playback import MapRenderer, PlaybackScheduler
from .session import Session, render_static_view

logger = get_logger(__name__)


class TableRow(NamedTuple):
    country: str
    confirmed: Union[int, str]
    deaths: Union[int, str]
    recovered: Union[int, str]


class SelectionController:
    """
    Keeps the ordered list of selected country codes and the table built from it.

    The newest selection's row is shown first. Selecting a country that is
    already selected removes it again.
    """

    def __init__(
        self, session: Session, renderer: MapRenderer, scheduler: Optional[PlaybackScheduler] = None
    ):
        self.session = session
        self.renderer = renderer
        self.scheduler = scheduler
        self.selection: List[str] = []
        self.table_rows: List[TableRow] = []

    def construct_table_row(self, code: str) -> Optional[TableRow]:
        """Table row for a country code, with dashes when it has no case data."""
        record = self.session.case_map.get(code)
        if record is not None:
            return TableRow(record.country, record.confirmed, record.deaths, record.recovered)

        name = lookup_display_name(self.session.code_table, code)
        if name is not None:
            return TableRow(name, *([MISSING_VALUE_PLACEHOLDER] * 3))

        return None

    def highlight_colors(self, code: str) -> Dict[str, str]:
        """Current colours of a country and its neighbours, skipping those without one."""
        colors = self.session.country_colors
        highlight = {}
        if code in colors:
            highlight[code] = colors[code]
        for neighbour in self.session.adjacency.get(code, []):
            if neighbour in colors:
                highlight[neighbour] = colors[neighbour]
        return highlight

    def _stop_playback(self) -> None:
        if self.scheduler is not None and self.scheduler.is_playing:
            self.scheduler.stop()

    def _rebuild_table(self) -> None:
        """Rebuild the table in alphabetical order of country name."""
        rows = [self.construct_table_row(code) for code in self.selection]
        self.table_rows = sorted((row for row in rows if row is not None), key=lambda row: row.country)

    def select(self, display_name: str) -> bool:
        """
        Handle a country entered in the search widget.

        Args:
            display_name: Name as offered by the search options

        Returns:
            False if the name does not resolve to a country code, True otherwise
        """
        code = self.session.code_table.get(display_name)
        if not code:
            logger.debug(f"Ignoring selection of unknown country '{display_name}'")
            return False

        if code in self.selection:
            self.selection.remove(code)
            self._rebuild_table()
            self._stop_playback()
            render_static_view(self.session, self.renderer)
            logger.info(f"Deselected {display_name} ({code})")
            return True

        highlight = self.highlight_colors(code)

        self._stop_playback()
        self.renderer.reset()
        self.renderer.update_choropleth(highlight)

        self.selection.append(code)
        row = self.construct_table_row(code)
        if row is not None:
            self.table_rows.insert(0, row)

        logger.info(f"Selected {display_name} ({code}) with {len(highlight)} highlighted countries")
        return True

    def table_frame(self) -> pd.DataFrame:
        """Results table as a DataFrame, newest selection first."""
        return pd.DataFrame([tuple(row) for row in self.table_rows], columns=TABLE_COLUMNS)
