"""
Expense Pie Chart

A donut chart drawn with one SVG circle per slice. Each circle has
the same radius and a dash pattern the length of its slice, rotated
to start where the previous slice ended.

DESIGN DECISION: Geometry is computed separately from rendering so
the numbers can be checked without parsing SVG.
"""

import html
import math
from decimal import Decimal
from typing import Mapping

from clario.models.ledger import ZERO
from clario.models.reports import PieChart, PieSlice


PIE_COLORS = ["#5A32D6", "#8A6FDF", "#B9A9E8", "#6B7280", "#9CA3AF", "#D1D5DB"]
PIE_RADIUS = 80.0
PIE_STROKE_WIDTH = 40.0
SVG_SIZE = 200


def build_pie_chart(totals: Mapping[str, Decimal]) -> PieChart:
    """
    Compute slice geometry for per-category expense totals.

    More categories than colors: the top five stay, the rest are
    grouped under "Other". A zero total gives an empty chart.
    """
    circumference = 2 * math.pi * PIE_RADIUS
    chart = PieChart(
        radius=PIE_RADIUS,
        stroke_width=PIE_STROKE_WIDTH,
        circumference=circumference,
    )

    items = sorted(
        ((label, value) for label, value in totals.items() if value > 0),
        key=lambda item: item[1],
        reverse=True,
    )
    if len(items) > len(PIE_COLORS):
        keep = len(PIE_COLORS) - 1
        other = sum((value for _, value in items[keep:]), ZERO)
        items = items[:keep] + [("Other", other)]

    total = sum((value for _, value in items), ZERO)
    chart.total = total
    if total <= 0:
        return chart

    cumulative = 0.0
    for i, (label, value) in enumerate(items):
        percent = float(value / total)
        chart.slices.append(PieSlice(
            label=label,
            value=value,
            percent=min(percent, 1.0),
            color=PIE_COLORS[i],
            arc_length=percent * circumference,
            rotation=cumulative * 360,
        ))
        cumulative += percent

    return chart


def render_pie_svg(chart: PieChart) -> str:
    """SVG donut for a PieChart. Empty string when there is nothing to draw."""
    if chart.is_empty:
        return ""

    center = SVG_SIZE / 2
    circles = []
    for s in chart.slices:
        circles.append(
            f'<circle r="{chart.radius:g}" cx="0" cy="0" fill="transparent" '
            f'stroke="{s.color}" stroke-width="{chart.stroke_width:g}" '
            f'stroke-dasharray="{s.arc_length:.2f} {chart.circumference:.2f}" '
            f'transform="rotate({s.rotation:.2f})"/>'
        )

    return (
        f'<svg width="{SVG_SIZE}" height="{SVG_SIZE}" '
        f'viewBox="0 0 {SVG_SIZE} {SVG_SIZE}" xmlns="http://www.w3.org/2000/svg">'
        f'<g transform="translate({center:g},{center:g}) rotate(-90)">'
        + "".join(circles)
        + "</g></svg>"
    )


def render_pie_legend(chart: PieChart, currency_symbol: str = "$") -> str:
    """HTML legend: color swatch, label, amount and share."""
    rows = []
    for s in chart.slices:
        rows.append(
            '<div style="display:flex;align-items:center;gap:8px;margin:2px 0;">'
            f'<span style="width:12px;height:12px;border-radius:50%;background:{s.color};'
            'display:inline-block;"></span>'
            f'<span style="flex:1;">{html.escape(s.label)}</span>'
            f'<span>{currency_symbol}{s.value:,.2f} ({s.percent:.0%})</span>'
            '</div>'
        )
    return "".join(rows)
