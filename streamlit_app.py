"""
COVID-19 Choropleth Dashboard

Interactive Streamlit application showing current COVID-19 severity per country on
a world map, an animated replay of the historical series, and a country search that
highlights a country together with its neighbours.
"""

import os
import sys
import time

import streamlit as st

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "src"))

from covid_choropleth.code_resolver import search_options
from covid_choropleth.config.logging_config import set_log_level
from covid_choropleth.data_loader import FeedFetchError
from covid_choropleth.playback import ManualTimer, PlaybackScheduler
from covid_choropleth.selection import SelectionController
from covid_choropleth.session import initialize_session, render_static_view, summarize_session
from covid_choropleth.visualizer import PlotlyMapRenderer

# Configure page
st.set_page_config(
    page_title="COVID-19 Choropleth",
    page_icon="🦠",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Keep package logs to warnings and above in the dashboard
set_log_level("WARNING")


@st.cache_resource
def load_session():
    """Fetch and reconcile all feeds once per server process."""
    try:
        with st.spinner("Loading COVID-19 feeds..."):
            session = initialize_session()
        return session, True
    except FeedFetchError as e:
        st.error(f"Failed to load data: {str(e)}")
        return None, False


def get_controls(session):
    """Per-browser-session renderer, playback scheduler and selection controller."""
    if "controller" not in st.session_state:
        renderer = PlotlyMapRenderer()
        timer = ManualTimer()
        scheduler = PlaybackScheduler(
            session.confirmed, session.deaths, session.code_table, renderer, timer
        )
        render_static_view(session, renderer)

        st.session_state["renderer"] = renderer
        st.session_state["timer"] = timer
        st.session_state["scheduler"] = scheduler
        st.session_state["controller"] = SelectionController(session, renderer, scheduler)

    return (
        st.session_state["renderer"],
        st.session_state["timer"],
        st.session_state["scheduler"],
        st.session_state["controller"],
    )


def on_country_selected():
    """Search box callback: select the entered country and clear the input."""
    name = st.session_state.get("country_search")
    if name:
        st.session_state["controller"].select(name)
    st.session_state["country_search"] = None


def main():
    """Main dashboard application."""
    st.title("🦠 COVID-19 Choropleth")

    session, success = load_session()
    if not success or session is None:
        st.error("Failed to load data. Please check your internet connection and try again.")
        return

    renderer, timer, scheduler, controller = get_controls(session)
    summary = summarize_session(session)

    # Sidebar controls
    st.sidebar.header("🔍 Search & Playback")
    st.sidebar.selectbox(
        "Country:",
        options=search_options(session.code_table),
        index=None,
        placeholder="Type a country name...",
        key="country_search",
        on_change=on_country_selected,
        help="Selecting a country again removes it from the table",
    )

    st.sidebar.button(
        "⏹️ Stop timeseries" if scheduler.is_playing else "▶️ Play timeseries",
        on_click=scheduler.toggle,
        disabled=not session.has_series,
    )

    if summary["series_dates"]:
        st.sidebar.caption(
            f"Series: {summary['series_first_date']} to {summary['series_last_date']} "
            f"({summary['series_dates']} days)"
        )
    else:
        st.sidebar.warning("Historical series unavailable")

    if summary["unresolved_case_names"]:
        with st.sidebar.expander("🔧 Unmatched case entries"):
            st.write(summary["unresolved_case_names"])

    # Map and table
    date_placeholder = st.empty()
    map_placeholder = st.empty()

    st.subheader("📋 Selected Countries")
    st.dataframe(controller.table_frame(), use_container_width=True, hide_index=True)

    date_placeholder.markdown(f"### {renderer.date_label}")
    map_placeholder.plotly_chart(renderer.figure(), use_container_width=True)

    # A rerun (button press, new selection) interrupts this loop
    frame = 0
    while scheduler.is_playing:
        time.sleep(timer.interval or scheduler.interval)
        timer.fire()
        frame += 1
        date_placeholder.markdown(f"### {renderer.date_label}")
        map_placeholder.plotly_chart(
            renderer.figure(), use_container_width=True, key=f"playback-frame-{frame}"
        )


if __name__ == "__main__":
    main()
