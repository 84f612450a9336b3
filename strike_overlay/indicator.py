"""
Strike overlay indicator - host-facing lifecycle
on_init resolves the reference symbol and loads history, on_paint computes one frame
"""

import math
from typing import Callable, Optional, Tuple

from .config import OverlaySettings, InvalidConfiguration
from .bars import DataBuffer
from .layout import OverlayFrame, Viewport, layout_overlay
from .strikes import StrikeLadder, compute_ladder, latest_open, open_ratio, INVALID_CONFIGURATION


class StrikeOverlayIndicator:
    """Maps reference-symbol opens onto the futures chart as strike lines"""

    name = 'Strike Overlay'
    description = 'ETF strike levels scaled onto the futures chart'

    def __init__(self, settings: Optional[OverlaySettings] = None,
                 load_reference: Optional[Callable[[str], DataBuffer]] = None,
                 load_target: Optional[Callable[[], DataBuffer]] = None):
        self.settings = settings or OverlaySettings()
        self._load_reference = load_reference
        self._load_target = load_target

        self.reference = DataBuffer()
        self.target = DataBuffer()
        self.reference_name = self.settings.reference_symbol
        self.inert = False
        self.config_error: Optional[str] = None

    def on_init(self):
        """
        Validate settings and load both 1-min series.

        Bad settings leave the indicator inert and are reported once. A
        reference symbol the loader cannot resolve propagates (SymbolNotFound).
        """
        try:
            self.settings.validate()
        except InvalidConfiguration as e:
            self.inert = True
            self.config_error = str(e)
            print(f"[CONFIG] {e} - overlay disabled")
            return

        if self._load_reference is not None:
            self.reference = self._load_reference(self.settings.reference_symbol)
            self.reference_name = self.reference.symbol or self.settings.reference_symbol
        if self._load_target is not None:
            self.target = self._load_target()

        print(f"[INIT] {self.reference_name}: {len(self.reference)} bars, "
              f"target: {len(self.target)} bars")

    def ladder(self) -> StrikeLadder:
        """Strike levels for the current series; empty when inert or data is missing"""
        if self.inert:
            return StrikeLadder(status=INVALID_CONFIGURATION)
        return compute_ladder(
            self.reference,
            self.target,
            half_width=self.settings.strike_width,
            tick_size=self.settings.tick_size,
            reference_name=self.reference_name
        )

    def on_paint(self, viewport: Viewport, price_to_y: Callable[[float], float],
                 measure_text: Callable[[str], Tuple[float, float]]) -> OverlayFrame:
        """Geometry for one chart redraw"""
        ladder = self.ladder()
        if not ladder.defined:
            return OverlayFrame()
        return layout_overlay(
            ladder.levels,
            price_to_y,
            viewport,
            self.settings.horizontal_offset,
            measure_text
        )

    def debug_lines(self) -> list:
        """Diagnostic text shown in the chart corner"""
        fut_open = latest_open(self.target)
        test_open = latest_open(self.reference)
        ratio = open_ratio(test_open, fut_open)

        def fmt(value, pattern):
            if value is None or math.isnan(value):
                return 'n/a'
            return format(value, pattern)

        return [
            f"Test: {self.reference_name}",
            f"Fut Open: {fmt(fut_open, '.2f')}",
            f"Test Open: {fmt(test_open, '.2f')}",
            f"Bars: {len(self.reference)}",
            f"Ratio: {fmt(ratio, '.4f')}",
        ]
