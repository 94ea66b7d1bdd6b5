"""SVG rendering of cumulative star series with Plotly."""

import logging
from typing import List, Sequence

import plotly.graph_objects as go

from star_trends.domain.errors import RenderError
from star_trends.domain.models import TimeSeriesPoint

logger = logging.getLogger(__name__)

SERIES_COLOR = "rgb(129, 199, 239)"
AXIS_COLOR = "rgb(85, 85, 85)"


class SvgRenderer:
    """Renders a cumulative series as a single-line SVG chart."""

    def __init__(self, width: int = 1024, height: int = 400):
        self.width = width
        self.height = height

    def build_figure(self, series: Sequence[TimeSeriesPoint]) -> go.Figure:
        """Build the figure for series. Pure: equal series give equal figures."""
        xs: List = [point.timestamp for point in series]
        ys: List[int] = [point.cumulative_count for point in series]

        axis = dict(showline=True, linewidth=2, linecolor=AXIS_COLOR)
        fig = go.Figure()
        fig.add_trace(go.Scatter(
            x=xs,
            y=ys,
            mode="lines",
            name="Stargazers",
            line=dict(color=SERIES_COLOR, width=2),
        ))
        fig.update_layout(
            xaxis=dict(title=dict(text="Time"), **axis),
            yaxis=dict(title=dict(text="Stargazers"), tickformat="d", rangemode="tozero", **axis),
            showlegend=False,
            plot_bgcolor="white",
            margin=dict(l=60, r=20, t=20, b=60),
        )
        return fig

    def render(self, series: Sequence[TimeSeriesPoint]) -> bytes:
        """
        Render series to SVG bytes.

        Raises:
            RenderError: If the series is not drawable or the export fails
        """
        logger.info(f"Render SVG for {len(series)} points.")
        if len(series) < 2:
            raise RenderError(f"A series needs at least two points, got {len(series)}")

        try:
            fig = self.build_figure(series)
            return fig.to_image(format="svg", width=self.width, height=self.height)
        except Exception as e:
            raise RenderError(f"Unable to render SVG: {e}") from e
