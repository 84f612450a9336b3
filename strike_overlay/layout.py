"""
Overlay Layout Engine
Turns strike levels into line + pill-label geometry inside the chart viewport
"""

import math
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple

MARGIN = 5      # px between label right edge and line end
PAD = 4.0       # px pill padding around the text
KAPPA = 0.5522847498  # cubic Bezier handle length for a 90 degree arc

OK = 'ok'
INVALID_VIEWPORT = 'invalid_viewport'


@dataclass(frozen=True)
class Viewport:
    """Plot-area rectangle in pixels (y grows downward)"""
    top: float
    bottom: float
    left: float
    right: float

    @property
    def is_valid(self) -> bool:
        return self.top < self.bottom

    def contains_y(self, y: float) -> bool:
        return self.top <= y <= self.bottom


@dataclass(frozen=True)
class Arc:
    """90 degree arc of the ellipse inscribed in (x, y, width, height)"""
    x: float
    y: float
    width: float
    height: float
    start_angle: float
    sweep_angle: float = 90.0

    def point(self, angle: float) -> Tuple[float, float]:
        rad = math.radians(angle)
        rx, ry = self.width / 2, self.height / 2
        cx, cy = self.x + rx, self.y + ry
        return cx + rx * math.cos(rad), cy + ry * math.sin(rad)

    @property
    def start(self) -> Tuple[float, float]:
        return self.point(self.start_angle)

    @property
    def end(self) -> Tuple[float, float]:
        return self.point(self.start_angle + self.sweep_angle)

    def bezier(self) -> Tuple[Tuple[float, float], Tuple[float, float], Tuple[float, float]]:
        """Control points and end point approximating this arc"""
        rx, ry = self.width / 2, self.height / 2
        a0 = math.radians(self.start_angle)
        a1 = math.radians(self.start_angle + self.sweep_angle)
        x0, y0 = self.start
        x1, y1 = self.end
        # Tangents of the parametric ellipse, scaled to the handle length
        c0 = (x0 - KAPPA * rx * math.sin(a0), y0 + KAPPA * ry * math.cos(a0))
        c1 = (x1 + KAPPA * rx * math.sin(a1), y1 - KAPPA * ry * math.cos(a1))
        return c0, c1, (x1, y1)


@dataclass(frozen=True)
class PillPath:
    """Closed rounded-rectangle contour made of four corner arcs"""
    x: float
    y: float
    width: float
    height: float
    radius: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def arcs(self) -> list:
        d = self.radius * 2
        return [
            Arc(self.x, self.y, d, d, 180),
            Arc(self.right - d, self.y, d, d, 270),
            Arc(self.right - d, self.bottom - d, d, d, 0),
            Arc(self.x, self.bottom - d, d, d, 90),
        ]

    def to_svg(self, transform: Optional[Callable[[float, float], Tuple[float, float]]] = None) -> str:
        """SVG path (M/L/C/Z only); transform maps pixel points to output space"""
        fmt = transform or (lambda px, py: (px, py))

        def pt(p):
            tx, ty = fmt(*p)
            return f"{tx:.6g},{ty:.6g}"

        arcs = self.arcs
        parts = [f"M {pt(arcs[0].start)}"]
        for i, arc in enumerate(arcs):
            if i > 0:
                parts.append(f"L {pt(arc.start)}")
            c0, c1, end = arc.bezier()
            parts.append(f"C {pt(c0)} {pt(c1)} {pt(end)}")
        parts.append("Z")
        return ' '.join(parts)


@dataclass(frozen=True)
class LineGeometry:
    y: float
    x_start: float
    x_end: float


@dataclass(frozen=True)
class LabelGeometry:
    anchor_x: float
    anchor_y: float
    pill: PillPath
    text: str


@dataclass(frozen=True)
class OverlayItem:
    reference_strike: int
    line: LineGeometry
    label: LabelGeometry


@dataclass
class OverlayFrame:
    """Layout output for one paint"""
    status: str = OK
    items: list = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.items)


def build_pill(text_x: float, text_y: float, text_width: float, text_height: float) -> PillPath:
    """Pill around a text box whose top-left corner is (text_x, text_y)"""
    width = text_width + PAD
    height = text_height + PAD / 2
    return PillPath(
        x=text_x - PAD / 2,
        y=text_y - PAD / 4,
        width=width,
        height=height,
        radius=height / 2
    )


def layout_overlay(levels, price_to_y: Callable[[float], float], viewport: Viewport,
                   offset: float, measure_text: Callable[[str], Tuple[float, float]]) -> OverlayFrame:
    """
    Lay out one line and one pill label per visible level.

    Levels whose y falls outside [top, bottom] are skipped. Output keeps the
    input order (ascending strike). A degenerate viewport yields an empty
    INVALID_VIEWPORT frame.
    """
    if not viewport.is_valid:
        return OverlayFrame(status=INVALID_VIEWPORT)

    frame = OverlayFrame()
    x_start = viewport.left + offset
    x_end = viewport.right + offset

    for level in levels:
        y = float(price_to_y(level.target_price))
        if not math.isfinite(y) or not viewport.contains_y(y):
            continue

        text_width, text_height = measure_text(level.label)
        text_x = x_end - text_width - MARGIN
        text_y = y - text_height / 2

        frame.items.append(OverlayItem(
            reference_strike=level.reference_strike,
            line=LineGeometry(y=y, x_start=x_start, x_end=x_end),
            label=LabelGeometry(
                anchor_x=text_x,
                anchor_y=text_y,
                pill=build_pill(text_x, text_y, text_width, text_height),
                text=level.label
            )
        ))

    return frame
