"""
COVID-19 Choropleth Visualization Module

This module paints the world map. Countries are coloured individually from a
country code -> colour mapping; land without an entry keeps the default fill.
"""

from typing import Dict, Mapping, Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .config.constants import DEFAULT_FILL, MAP_HEIGHT, MAP_PROJECTION
from .config.logging_config import get_logger

logger = get_logger(__name__)


def build_choropleth_figure(
    colors: Mapping[str, str], title: Optional[str] = None, default_fill: str = DEFAULT_FILL
) -> go.Figure:
    """
    Create a world choropleth with one explicit colour per country.

    Args:
        colors: Country code (ISO-3) -> colour string
        title: Figure title, typically the date label
        default_fill: Fill for countries without a colour

    Returns:
        Plotly figure
    """
    if colors:
        map_df = pd.DataFrame({"code": list(colors), "color": list(colors.values())})
        fig = px.choropleth(
            map_df,
            locations="code",
            locationmode="ISO-3",
            color="code",
            color_discrete_map=dict(colors),
            hover_name="code",
        )
    else:
        fig = go.Figure()

    fig.update_geos(
        projection_type=MAP_PROJECTION,
        showland=True,
        landcolor=default_fill,
        showcountries=True,
        countrycolor="#FFFFFF",
        showframe=False,
    )
    fig.update_traces(marker_line_color="#FFFFFF", marker_line_width=0.5)
    fig.update_layout(
        height=MAP_HEIGHT,
        showlegend=False,
        margin={"l": 0, "r": 0, "t": 40 if title else 0, "b": 0},
        title=title,
    )

    logger.debug(f"Built choropleth figure with {len(colors)} coloured countries")
    return fig


class PlotlyMapRenderer:
    """
    Map renderer keeping the current colour map and date label.

    ``reset`` returns every country to the default fill; ``update_choropleth``
    merges new colours over the current ones.
    """

    def __init__(self, default_fill: str = DEFAULT_FILL):
        self.default_fill = default_fill
        self.colors: Dict[str, str] = {}
        self.date_label: Optional[str] = None

    def reset(self) -> None:
        self.colors = {}

    def update_choropleth(self, colors: Mapping[str, str]) -> None:
        self.colors.update(colors)

    def show_date(self, label: str) -> None:
        self.date_label = label

    def figure(self) -> go.Figure:
        return build_choropleth_figure(self.colors, self.date_label, self.default_fill)
