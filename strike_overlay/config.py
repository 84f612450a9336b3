"""
Overlay settings and gateway configuration
Defaults mirror the chart indicator's input panel
"""

import math
from dataclasses import dataclass, fields

# Configuration
GATEWAY_HOST = '127.0.0.1'
GATEWAY_PAPER_PORT = 4002
GATEWAY_LIVE_PORT = 4001
CLIENT_ID = 1

DEFAULT_FUTURE = 'ES'
DEFAULT_TICK_SIZE = 0.25  # ES minimum price increment

TRANSPARENT = 'rgba(0, 0, 0, 0)'

# Line style presets as exposed in the input panel
LINE_STYLES = {
    0: 'Solid',
    1: 'Dash',
    2: 'Dot',
    3: 'DashDot',
    4: 'DashDotDot',
}


class InvalidConfiguration(ValueError):
    """Settings that leave the overlay unable to compute levels"""


@dataclass(frozen=True)
class OverlaySettings:
    """User inputs for the strike overlay"""
    reference_symbol: str = 'SPY'
    strike_width: int = 7            # half-width of the strike ladder (1-100)
    line_color: str = TRANSPARENT
    line_style: int = 1              # Dash
    line_thickness: int = 1          # 1-10
    label_color: str = '#4caf50'
    label_bg_color: str = TRANSPARENT
    horizontal_offset: int = -20     # px, -500..500
    tick_size: float = DEFAULT_TICK_SIZE

    # (min, max) for the bounded integer inputs
    RANGES = {
        'strike_width': (1, 100),
        'line_thickness': (1, 10),
        'horizontal_offset': (-500, 500),
    }

    def validate(self) -> 'OverlaySettings':
        """Raise InvalidConfiguration for the first bad field, else return self"""
        if not self.reference_symbol or not self.reference_symbol.strip():
            raise InvalidConfiguration("reference_symbol must not be empty")

        for name, (low, high) in self.RANGES.items():
            value = getattr(self, name)
            if not isinstance(value, int) or not low <= value <= high:
                raise InvalidConfiguration(
                    f"{name}={value!r} outside [{low}, {high}]"
                )

        if self.line_style not in LINE_STYLES:
            raise InvalidConfiguration(f"line_style={self.line_style!r} is not a known preset")

        if not (isinstance(self.tick_size, (int, float))
                and math.isfinite(self.tick_size) and self.tick_size > 0):
            raise InvalidConfiguration(f"tick_size={self.tick_size!r} must be positive")

        return self

    @property
    def line_style_name(self) -> str:
        return LINE_STYLES.get(self.line_style, 'Solid')

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}
