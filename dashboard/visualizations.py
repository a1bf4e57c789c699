from __future__ import annotations

import numpy as np
import plotly.graph_objects as go

TEXT_MAIN = "#3f3a4a"
TEXT_SOFT = "#7d7590"
PLOT_GRID = "rgba(125, 117, 144, 0.15)"
BORDER = "rgba(125, 117, 144, 0.35)"


def apply_common_plot_style(fig, title, show_xgrid=True, show_ygrid=True):
    fig.update_layout(
        title=title,
        title_font=dict(color=TEXT_MAIN, size=16),
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        font=dict(color=TEXT_MAIN),
        margin=dict(l=40, r=20, t=40, b=30),
        xaxis=dict(
            showgrid=show_xgrid,
            gridcolor=PLOT_GRID,
            tickfont=dict(color=TEXT_SOFT),
            zeroline=False,
            showline=True,
            linecolor=BORDER,
            mirror=True,
        ),
        yaxis=dict(
            showgrid=show_ygrid,
            gridcolor=PLOT_GRID,
            zeroline=False,
            tickfont=dict(color=TEXT_SOFT),
            showline=True,
            linecolor=BORDER,
            mirror=True,
        ),
    )
    return fig


def dot_chart(values, dates, title, color, height=260):
    fig = go.Figure(
        data=go.Scatter(
            x=list(dates),
            y=list(values),
            mode="lines+markers",
            line=dict(color=color, width=2),
            marker=dict(size=8, color=color, line=dict(width=1, color="#ffffff")),
            connectgaps=False,
        )
    )
    apply_common_plot_style(fig, title, show_xgrid=False, show_ygrid=True)
    fig.update_layout(height=height)
    fig.update_xaxes(categoryorder="array", categoryarray=list(dates), tickfont=dict(size=10, color=TEXT_SOFT))
    return fig


def bar_chart(labels, values, title, color, height=260):
    fig = go.Figure(data=go.Bar(x=list(labels), y=list(values), marker=dict(color=color)))
    apply_common_plot_style(fig, title, show_xgrid=False, show_ygrid=True)
    fig.update_layout(height=height, bargap=0.35)
    return fig


def grouped_bar_chart(labels, series, title, height=280):
    """``series`` maps a legend name to ``(values, color)``."""
    fig = go.Figure()
    for name, (values, color) in series.items():
        fig.add_trace(go.Bar(name=name, x=list(labels), y=list(values), marker=dict(color=color)))
    apply_common_plot_style(fig, title, show_xgrid=False, show_ygrid=True)
    fig.update_layout(height=height, barmode="group", legend=dict(orientation="h", y=-0.2))
    return fig


def donut_chart(totals, title, height=280):
    fig = go.Figure(data=go.Pie(labels=list(totals.keys()), values=list(totals.values()), hole=0.55))
    fig.update_layout(
        title=title,
        title_font=dict(color=TEXT_MAIN, size=16),
        paper_bgcolor="rgba(0,0,0,0)",
        font=dict(color=TEXT_MAIN),
        margin=dict(l=20, r=20, t=40, b=20),
        height=height,
    )
    return fig


def completion_heatmap(days, title, height=220):
    """``days`` maps ISO dates to ``(done, due)`` counts."""
    ordered = sorted(days)
    z = np.full((1, len(ordered)), np.nan)
    for col, day in enumerate(ordered):
        done, due = days[day]
        if due:
            z[0, col] = done / due
    hover = [f"{day}: {days[day][0]}/{days[day][1]}" for day in ordered]
    fig = go.Figure(
        data=go.Heatmap(
            z=z,
            x=ordered,
            y=[""],
            text=[hover],
            hoverinfo="text",
            colorscale=[(0, "#f3eef8"), (1, "#7b5ea7")],
            zmin=0,
            zmax=1,
            showscale=False,
            xgap=2,
        )
    )
    apply_common_plot_style(fig, title, show_xgrid=False, show_ygrid=False)
    fig.update_layout(height=height)
    return fig
