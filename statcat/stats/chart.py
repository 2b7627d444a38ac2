"""Line chart rendering for weekly word counts (ECharts via pyecharts)."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from pyecharts import options as opts
from pyecharts.charts import Line
from pyecharts.commons.utils import JsCode

from statcat.db.repositories import WeeklyCount

CHART_WIDTH = "1000px"
CHART_HEIGHT = "800px"

# Percent of the week axis visible when the chart opens
INITIAL_ZOOM_END = 10

LINE_COLOR = "rgb(255, 70, 131)"
AREA_GRADIENT = JsCode(
    "new echarts.graphic.LinearGradient(0, 0, 0, 1, ["
    "{offset: 0, color: 'rgb(255, 158, 68)'}, "
    "{offset: 1, color: 'rgb(255, 70, 131)'}])"
)


def build_word_chart(word: str, rows: Sequence[WeeklyCount]) -> Line:
    """Build an area line chart of matching messages per week."""
    weeks = [row.week for row in rows]
    counts = [row.count for row in rows]

    return (
        Line(
            init_opts=opts.InitOpts(
                width=CHART_WIDTH,
                height=CHART_HEIGHT,
                page_title=f"statcat: {word}",
            )
        )
        .add_xaxis(weeks)
        .add_yaxis(
            "Messages",
            counts,
            is_symbol_show=False,
            label_opts=opts.LabelOpts(is_show=False),
            linestyle_opts=opts.LineStyleOpts(color=LINE_COLOR),
            areastyle_opts=opts.AreaStyleOpts(opacity=1, color=AREA_GRADIENT),
        )
        .set_global_opts(
            title_opts=opts.TitleOpts(
                title=f"Messages containing the word {word}", pos_left="center"
            ),
            legend_opts=opts.LegendOpts(is_show=False),
            tooltip_opts=opts.TooltipOpts(trigger="axis"),
            toolbox_opts=opts.ToolboxOpts(is_show=True),
            xaxis_opts=opts.AxisOpts(type_="category", boundary_gap=False),
            yaxis_opts=opts.AxisOpts(type_="value"),
            datazoom_opts=[
                opts.DataZoomOpts(
                    type_="inside", range_start=0, range_end=INITIAL_ZOOM_END
                ),
                opts.DataZoomOpts(range_start=0, range_end=INITIAL_ZOOM_END),
            ],
        )
    )


def render_word_chart(
    word: str, rows: Sequence[WeeklyCount], output_path: str | Path
) -> Path:
    """Render the chart to a standalone HTML file, creating parent directories."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    build_word_chart(word, rows).render(str(path))
    return path
