"""Overlay layout: clipping, ordering and pill geometry."""
import pytest

from strike_overlay.layout import (
    Arc, PillPath, Viewport, build_pill, layout_overlay, MARGIN, PAD, OK, INVALID_VIEWPORT,
)
from strike_overlay.strikes import StrikeLevel

VIEWPORT = Viewport(top=0, bottom=500, left=0, right=1000)


def price_to_y(price):
    # higher price -> smaller y
    return 6000.0 - price


def measure_text(text):
    return 40.0, 10.0


def levels(*prices):
    return [StrikeLevel(reference_strike=498 + i, target_price=p, label=f"SPY {498 + i}")
            for i, p in enumerate(prices)]


def test_line_spans_viewport_shifted_by_offset():
    frame = layout_overlay(levels(5745.75), price_to_y, VIEWPORT, -20, measure_text)

    assert frame.status == OK
    assert len(frame) == 1
    line = frame.items[0].line
    assert line.y == pytest.approx(254.25)
    assert line.x_start == -20
    assert line.x_end == 980


def test_label_right_aligned_and_vertically_centered():
    frame = layout_overlay(levels(5745.75), price_to_y, VIEWPORT, -20, measure_text)
    label = frame.items[0].label

    assert label.text == "SPY 498"
    assert label.anchor_x == pytest.approx(980 - 40 - MARGIN)
    assert label.anchor_y == pytest.approx(254.25 - 5)


def test_pill_wraps_text_with_half_height_radius():
    frame = layout_overlay(levels(5745.75), price_to_y, VIEWPORT, -20, measure_text)
    pill = frame.items[0].label.pill

    assert pill.width == pytest.approx(40 + PAD)
    assert pill.height == pytest.approx(10 + PAD / 2)
    assert pill.radius == pytest.approx(pill.height / 2)
    assert pill.x == pytest.approx(935 - PAD / 2)
    assert pill.y == pytest.approx(249.25 - PAD / 4)


def test_levels_outside_viewport_are_dropped():
    # y = 6000 - price: 5400 -> 600 (below), 5700 -> 300, 6100 -> -100 (above)
    frame = layout_overlay(levels(5400.0, 5700.0, 6100.0), price_to_y, VIEWPORT, 0, measure_text)

    assert [item.reference_strike for item in frame.items] == [499]


def test_boundaries_are_inclusive():
    frame = layout_overlay(levels(6000.0, 5500.0), price_to_y, VIEWPORT, 0, measure_text)
    assert [item.line.y for item in frame.items] == [0.0, 500.0]


def test_non_finite_y_is_skipped():
    frame = layout_overlay(levels(5745.75), lambda p: float("nan"), VIEWPORT, 0, measure_text)
    assert frame.items == []


def test_order_follows_ascending_strikes():
    frame = layout_overlay(levels(5720.0, 5731.5, 5743.0, 5754.5, 5766.0),
                           price_to_y, VIEWPORT, -20, measure_text)
    strikes = [item.reference_strike for item in frame.items]
    ys = [item.line.y for item in frame.items]

    assert strikes == sorted(strikes)
    # descending strike order -> increasing y
    assert list(reversed(ys)) == sorted(ys)
    for item in frame.items:
        assert item.label.text == f"SPY {item.reference_strike}"


def test_empty_levels_give_empty_frame():
    frame = layout_overlay([], price_to_y, VIEWPORT, -20, measure_text)
    assert frame.status == OK
    assert frame.items == []


@pytest.mark.parametrize("top,bottom", [(500, 500), (600, 100)])
def test_invalid_viewport(top, bottom):
    viewport = Viewport(top=top, bottom=bottom, left=0, right=1000)
    frame = layout_overlay(levels(5745.75), price_to_y, viewport, 0, measure_text)
    assert frame.status == INVALID_VIEWPORT
    assert frame.items == []


def test_pill_arcs_form_closed_contour():
    pill = build_pill(100, 50, 40, 10)
    arcs = pill.arcs

    assert [arc.start_angle for arc in arcs] == [180, 270, 0, 90]
    assert all(arc.width == arc.height == pill.radius * 2 for arc in arcs)
    # straight edges connect each arc end to the next arc start
    assert arcs[0].end[1] == pytest.approx(pill.y)
    assert arcs[1].start[1] == pytest.approx(pill.y)
    assert arcs[1].end[0] == pytest.approx(pill.right)
    assert arcs[2].start[0] == pytest.approx(pill.right)
    assert arcs[2].end[1] == pytest.approx(pill.bottom)
    assert arcs[3].start[1] == pytest.approx(pill.bottom)
    assert arcs[3].end == pytest.approx(arcs[0].start)


def test_arc_bezier_ends_on_arc():
    arc = Arc(0, 0, 20, 20, 180)
    c0, c1, end = arc.bezier()

    assert end == pytest.approx(arc.end)
    assert end == pytest.approx((10, 0))
    # handles stay tangent: vertical at the left point, horizontal at the top
    assert c0[0] == pytest.approx(0)
    assert c1[1] == pytest.approx(0)


def test_svg_path_uses_plotly_safe_commands():
    pill = PillPath(x=10, y=20, width=44, height=12, radius=6)
    path = pill.to_svg()

    assert path.startswith("M 10,26 ")
    assert path.endswith("Z")
    assert path.count("C ") == 4
    assert "A " not in path

    shifted = pill.to_svg(lambda x, y: (x + 1, y + 1))
    assert shifted.startswith("M 11,27 ")
