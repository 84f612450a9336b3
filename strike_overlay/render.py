"""
Plotly chart surface for the strike overlay
Candles of the futures series plus strike lines and pill labels as shapes
"""

import os
from typing import Callable, Optional, Tuple

import pandas as pd
import plotly.graph_objects as go

from .config import OverlaySettings
from .layout import MARGIN, OverlayFrame, Viewport

# Input-panel line styles -> plotly dash names
PLOTLY_DASH = {
    0: 'solid',
    1: 'dash',
    2: 'dot',
    3: 'dashdot',
    4: 'longdashdot',
}

LABEL_FONT_SIZE = 8
DEBUG_FONT_SIZE = 10


def estimate_text_size(text: str, font_size: float = LABEL_FONT_SIZE) -> Tuple[float, float]:
    """Rough Arial bold metrics: 0.6em per glyph, 1.5em line height"""
    return len(text) * font_size * 0.6, font_size * 1.5


def linear_price_to_y(price_min: float, price_max: float,
                      viewport: Viewport) -> Callable[[float], float]:
    """Price -> pixel y for a linear axis spanning [price_min, price_max]"""
    span = price_max - price_min
    height = viewport.bottom - viewport.top

    def price_to_y(price: float) -> float:
        if span <= 0:
            return float('nan')
        return viewport.top + (price_max - price) / span * height

    return price_to_y


class OverlayRenderer:
    """Draws an OverlayFrame onto a fixed-size plotly figure"""

    def __init__(self, settings: OverlaySettings, width: int = 1200, height: int = 700,
                 margin: Optional[dict] = None):
        self.settings = settings
        self.width = width
        self.height = height
        self.margin = margin or dict(l=20, r=70, t=50, b=40)

    @property
    def viewport(self) -> Viewport:
        m = self.margin
        return Viewport(
            top=m['t'],
            bottom=self.height - m['b'],
            left=m['l'],
            right=self.width - m['r']
        )

    def to_paper(self, px: float, py: float) -> Tuple[float, float]:
        """Pixel coordinates -> plotly paper coordinates of the plot area"""
        vp = self.viewport
        return ((px - vp.left) / (vp.right - vp.left),
                (vp.bottom - py) / (vp.bottom - vp.top))

    @staticmethod
    def price_range(df: pd.DataFrame, pad: float = 0.02) -> Tuple[float, float]:
        """Low/high of the frame widened by pad (fraction of the span)"""
        low = float(df['low'].min())
        high = float(df['high'].max())
        span = (high - low) or abs(high) * 0.001 or 1.0
        return low - span * pad, high + span * pad

    def price_to_y(self, df: pd.DataFrame) -> Callable[[float], float]:
        low, high = self.price_range(df)
        return linear_price_to_y(low, high, self.viewport)

    def _base_figure(self, df: pd.DataFrame, title: str) -> go.Figure:
        fig = go.Figure(go.Candlestick(
            x=df['timestamp'],
            open=df['open'],
            high=df['high'],
            low=df['low'],
            close=df['close'],
            name=title,
            increasing_line_color='#26A69A',  # TradingView Green
            decreasing_line_color='#EF5350'   # TradingView Red
        ))
        low, high = self.price_range(df)
        fig.update_layout(
            title=title,
            width=self.width,
            height=self.height,
            autosize=False,
            margin=self.margin,
            xaxis_rangeslider_visible=False,
            template="plotly_dark",
            showlegend=False,
            plot_bgcolor='#131722',
            paper_bgcolor='#131722',
            font=dict(color='#d1d4dc'),
        )
        fig.update_xaxes(showgrid=True, gridcolor='#363c4e')
        fig.update_yaxes(showgrid=True, gridcolor='#363c4e', range=[low, high], side='right')
        return fig

    def _clip_x(self, x: float) -> float:
        vp = self.viewport
        return min(max(x, vp.left), vp.right)

    def _label_visible(self, label) -> bool:
        vp = self.viewport
        return vp.left <= label.pill.x and label.pill.right <= vp.right

    def draw_frame(self, fig: go.Figure, frame: OverlayFrame):
        s = self.settings
        line_style = dict(
            color=s.line_color,
            width=s.line_thickness,
            dash=PLOTLY_DASH.get(s.line_style, 'solid')
        )
        for item in frame.items:
            x0, y = self.to_paper(self._clip_x(item.line.x_start), item.line.y)
            x1, _ = self.to_paper(self._clip_x(item.line.x_end), item.line.y)
            fig.add_shape(type='line', xref='paper', yref='paper',
                          x0=x0, y0=y, x1=x1, y1=y, line=line_style)

            label = item.label
            if not self._label_visible(label):
                continue  # pill would spill past the plot area
            fig.add_shape(type='path', xref='paper', yref='paper',
                          path=label.pill.to_svg(self.to_paper),
                          fillcolor=s.label_bg_color, line_width=0)
            ax, ay = self.to_paper(label.anchor_x, item.line.y)
            fig.add_annotation(x=ax, y=ay, xref='paper', yref='paper',
                               xanchor='left', yanchor='middle', showarrow=False,
                               text=f"<b>{label.text}</b>",
                               font=dict(color=s.label_color, size=LABEL_FONT_SIZE, family='Arial'))

    def draw_debug(self, fig: go.Figure, lines: list):
        """Right-aligned diagnostic text stacked from the top of the plot area"""
        vp = self.viewport
        y = vp.top + MARGIN
        for line in lines:
            _, h = estimate_text_size(line, DEBUG_FONT_SIZE)
            px, py = self.to_paper(vp.right - MARGIN, y)
            fig.add_annotation(x=px, y=py, xref='paper', yref='paper',
                               xanchor='right', yanchor='top', showarrow=False,
                               text=f"<b>{line}</b>",
                               font=dict(color='white', size=DEBUG_FONT_SIZE, family='Arial'))
            y += h + 2

    def build_figure(self, target_df: pd.DataFrame, frame: OverlayFrame, title: str,
                     debug_lines: Optional[list] = None) -> go.Figure:
        fig = self._base_figure(target_df, title)
        self.draw_frame(fig, frame)
        if debug_lines:
            self.draw_debug(fig, debug_lines)
        return fig

    @staticmethod
    def save(fig: go.Figure, output_path: str) -> str:
        os.makedirs(os.path.dirname(output_path) or '.', exist_ok=True)
        fig.write_html(output_path)
        print(f"[CHART] Saved to {output_path}")
        return output_path
