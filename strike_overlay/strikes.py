"""
Ratio & Strike Calculator
Maps integer reference (ETF) strikes onto the futures tick grid via the open ratio
"""

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

import numpy as np

from .config import InvalidConfiguration
from .bars import DataBuffer

# Ladder status values
OK = 'ok'
DATA_UNAVAILABLE = 'data_unavailable'
INVALID_CONFIGURATION = 'invalid_configuration'


@dataclass(frozen=True)
class StrikeLevel:
    """One reference strike and its futures-price equivalent"""
    reference_strike: int
    target_price: float
    label: str


@dataclass
class StrikeLadder:
    """Result of one calculator pass"""
    status: str
    ratio: float = float('nan')
    base_strike: Optional[int] = None
    levels: list = field(default_factory=list)

    @property
    def defined(self) -> bool:
        return self.status == OK

    def to_dict(self) -> dict:
        return {
            'status': self.status,
            'ratio': None if math.isnan(self.ratio) else round(self.ratio, 6),
            'base_strike': self.base_strike,
            'levels': [
                {'strike': lvl.reference_strike, 'price': lvl.target_price, 'label': lvl.label}
                for lvl in self.levels
            ]
        }


def latest_open(series: DataBuffer) -> Optional[float]:
    """Open of the most recent bar, or None for an empty series"""
    bar = series.last if series is not None else None
    return bar.open if bar is not None else None


def open_ratio(reference_open: Optional[float], target_open: Optional[float]) -> float:
    """target/reference open ratio; NaN unless both opens are finite and positive"""
    if reference_open is None or target_open is None:
        return float('nan')
    if not (math.isfinite(reference_open) and math.isfinite(target_open)):
        return float('nan')
    if reference_open <= 0 or target_open <= 0:
        return float('nan')
    return target_open / reference_open


def _tick_decimals(tick_size: float) -> int:
    exponent = Decimal(str(float(tick_size))).normalize().as_tuple().exponent
    return max(0, -exponent)


def round_to_tick(price: float, tick_size: float) -> float:
    """
    Snap price to the nearest multiple of tick_size.

    Ties go half up (toward +inf): 5745.875 on a 0.25 grid -> 5746.0.
    The result is rounded to the tick's decimal places so 0.1-style
    ticks don't leave binary noise behind.
    """
    steps = math.floor(price / tick_size + 0.5)
    return round(steps * tick_size, _tick_decimals(tick_size))


def validate_ladder_params(half_width, tick_size):
    """Raise InvalidConfiguration for a non-positive half-width or tick size"""
    if not isinstance(half_width, (int, np.integer)) or half_width <= 0:
        raise InvalidConfiguration(f"half_width={half_width!r} must be a positive integer")
    if not (isinstance(tick_size, (int, float)) and math.isfinite(tick_size) and tick_size > 0):
        raise InvalidConfiguration(f"tick_size={tick_size!r} must be positive")


def strike_levels(reference_open: float, ratio: float, half_width: int,
                  tick_size: float, reference_name: str) -> list:
    """Ascending ladder of 2*half_width+1 levels around int(reference_open)"""
    base = int(reference_open)  # truncation, not rounding
    strikes = np.arange(base - half_width, base + half_width + 1)
    return [
        StrikeLevel(
            reference_strike=int(s),
            target_price=round_to_tick(int(s) * ratio, tick_size),
            label=f"{reference_name} {int(s)}"
        )
        for s in strikes
    ]


def compute_ladder(reference: DataBuffer, target: DataBuffer, half_width: int,
                   tick_size: float, reference_name: str) -> StrikeLadder:
    """
    Full calculator pass over the two series.

    Never raises: bad parameters give INVALID_CONFIGURATION, a missing or
    non-positive open gives DATA_UNAVAILABLE. Both carry no levels.
    """
    try:
        validate_ladder_params(half_width, tick_size)
    except InvalidConfiguration:
        return StrikeLadder(status=INVALID_CONFIGURATION)

    ref_open = latest_open(reference)
    ratio = open_ratio(ref_open, latest_open(target))
    if math.isnan(ratio):
        return StrikeLadder(status=DATA_UNAVAILABLE)

    return StrikeLadder(
        status=OK,
        ratio=ratio,
        base_strike=int(ref_open),
        levels=strike_levels(ref_open, ratio, half_width, tick_size, reference_name)
    )
