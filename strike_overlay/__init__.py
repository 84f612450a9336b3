"""ETF strike levels overlaid on a futures chart"""

from .config import OverlaySettings, InvalidConfiguration
from .bars import OHLCV, DataBuffer
from .strikes import StrikeLevel, StrikeLadder, compute_ladder, round_to_tick
from .layout import Viewport, OverlayFrame, layout_overlay
from .indicator import StrikeOverlayIndicator

__all__ = [
    'OverlaySettings', 'InvalidConfiguration',
    'OHLCV', 'DataBuffer',
    'StrikeLevel', 'StrikeLadder', 'compute_ladder', 'round_to_tick',
    'Viewport', 'OverlayFrame', 'layout_overlay',
    'StrikeOverlayIndicator',
]
