"""Plotly surface: pixel mapping and shapes drawn per overlay item."""
from datetime import datetime, timedelta, timezone

import math
import re
import pandas as pd
import pytest

from strike_overlay.config import OverlaySettings
from strike_overlay.layout import Viewport, layout_overlay
from strike_overlay.render import OverlayRenderer, estimate_text_size, linear_price_to_y
from strike_overlay.strikes import StrikeLevel

T0 = datetime(2025, 3, 14, 14, 30, tzinfo=timezone.utc)


def target_frame(n=30, base=5740.0):
    return pd.DataFrame([
        {'timestamp': T0 + timedelta(minutes=i), 'open': base + i * 0.5,
         'high': base + i * 0.5 + 1.0, 'low': base + i * 0.5 - 1.0,
         'close': base + i * 0.5 + 0.25, 'volume': 100.0}
        for i in range(n)
    ])


def test_linear_price_to_y_maps_range_onto_viewport():
    vp = Viewport(top=50, bottom=650, left=20, right=1130)
    to_y = linear_price_to_y(5700.0, 5800.0, vp)

    assert to_y(5800.0) == pytest.approx(50)
    assert to_y(5700.0) == pytest.approx(650)
    assert to_y(5750.0) == pytest.approx(350)
    assert math.isnan(linear_price_to_y(5700.0, 5700.0, vp)(5700.0))


def test_estimate_text_size_scales_with_length():
    w1, h1 = estimate_text_size("SPY 5")
    w2, h2 = estimate_text_size("SPY 500")
    assert w2 > w1
    assert h1 == h2


def test_to_paper_corners():
    renderer = OverlayRenderer(OverlaySettings())
    vp = renderer.viewport

    assert renderer.to_paper(vp.left, vp.bottom) == pytest.approx((0.0, 0.0))
    assert renderer.to_paper(vp.right, vp.top) == pytest.approx((1.0, 1.0))


def test_build_figure_adds_line_and_pill_per_item():
    settings = OverlaySettings(line_color='#787b86', line_style=2, line_thickness=3)
    renderer = OverlayRenderer(settings)
    df = target_frame()
    levels = [
        StrikeLevel(499, 5745.0, "SPY 499"),
        StrikeLevel(500, 5750.0, "SPY 500"),
        StrikeLevel(501, 5900.0, "SPY 501"),  # above the chart
    ]
    frame = layout_overlay(levels, renderer.price_to_y(df), renderer.viewport,
                           settings.horizontal_offset, estimate_text_size)

    fig = renderer.build_figure(df, frame, title="ESM5")

    lines = [s for s in fig.layout.shapes if s.type == 'line']
    pills = [s for s in fig.layout.shapes if s.type == 'path']
    assert len(frame) == 2
    assert len(lines) == 2
    assert len(pills) == 2
    assert lines[0].line.dash == 'dot'
    assert lines[0].line.width == 3
    assert lines[0].line.color == '#787b86'
    assert pills[0].path.startswith("M ")
    assert [a.text for a in fig.layout.annotations] == ["<b>SPY 499</b>", "<b>SPY 500</b>"]


def pill_xs(path):
    return [float(x) for x in re.findall(r"(-?[\d.e+-]+),", path)]


@pytest.mark.parametrize("offset", [-500, -20, 100, 300, 500])
def test_lines_and_labels_are_clipped_to_plot_area(offset):
    settings = OverlaySettings(horizontal_offset=offset)
    renderer = OverlayRenderer(settings)
    df = target_frame()
    frame = layout_overlay([StrikeLevel(500, 5750.0, "SPY 500")], renderer.price_to_y(df),
                           renderer.viewport, settings.horizontal_offset, estimate_text_size)
    assert len(frame) == 1

    fig = renderer.build_figure(df, frame, title="ESM5")
    lines = [s for s in fig.layout.shapes if s.type == 'line']
    pills = [s for s in fig.layout.shapes if s.type == 'path']

    assert len(lines) == 1
    assert 0.0 <= lines[0].x0 <= lines[0].x1 <= 1.0
    for pill in pills:
        assert all(0.0 <= x <= 1.0 for x in pill_xs(pill.path))
    for annotation in fig.layout.annotations:
        assert 0.0 <= annotation.x <= 1.0
    assert len(pills) == len(fig.layout.annotations)


def test_label_past_right_edge_is_not_drawn():
    settings = OverlaySettings(horizontal_offset=300)
    renderer = OverlayRenderer(settings)
    df = target_frame()
    frame = layout_overlay([StrikeLevel(500, 5750.0, "SPY 500")], renderer.price_to_y(df),
                           renderer.viewport, settings.horizontal_offset, estimate_text_size)

    fig = renderer.build_figure(df, frame, title="ESM5")
    assert [s.type for s in fig.layout.shapes] == ['line']
    assert len(fig.layout.annotations) == 0


def test_debug_lines_are_annotated():
    renderer = OverlayRenderer(OverlaySettings())
    df = target_frame()
    fig = renderer.build_figure(df, layout_overlay([], renderer.price_to_y(df), renderer.viewport,
                                                   0, estimate_text_size),
                                title="ESM5", debug_lines=["Test: SPY", "Ratio: n/a"])

    texts = [a.text for a in fig.layout.annotations]
    assert texts == ["<b>Test: SPY</b>", "<b>Ratio: n/a</b>"]
    assert fig.layout.annotations[0].y > fig.layout.annotations[1].y


def test_save_writes_html(tmp_path):
    renderer = OverlayRenderer(OverlaySettings())
    df = target_frame()
    fig = renderer.build_figure(df, layout_overlay([], renderer.price_to_y(df), renderer.viewport,
                                                   0, estimate_text_size), title="ESM5")
    out = renderer.save(fig, str(tmp_path / "charts" / "overlay.html"))
    assert (tmp_path / "charts" / "overlay.html").exists()
    assert out.endswith("overlay.html")
