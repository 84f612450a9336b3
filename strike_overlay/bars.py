"""
Bar containers shared by the data sources and the calculator
"""

from datetime import datetime
from typing import Optional
from dataclasses import dataclass, field
import pandas as pd

BAR_COLUMNS = ['timestamp', 'open', 'high', 'low', 'close', 'volume']


@dataclass
class OHLCV:
    """Single OHLCV bar"""
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass
class DataBuffer:
    """Chronological rolling buffer of 1-min bars for one instrument"""
    max_bars: int = 1500
    bars: list = field(default_factory=list)
    symbol: str = ''  # resolved instrument name, set by the loader

    def add(self, bar: OHLCV) -> bool:
        """Append a bar; same-minute bars replace the last one, older bars are dropped"""
        if self.bars:
            last_ts = self.bars[-1].timestamp
            if bar.timestamp < last_ts:
                return False
            if bar.timestamp == last_ts:
                self.bars[-1] = bar
                return True
        self.bars.append(bar)
        if len(self.bars) > self.max_bars:
            self.bars.pop(0)
        return True

    def __len__(self) -> int:
        return len(self.bars)

    def to_dataframe(self) -> pd.DataFrame:
        if not self.bars:
            return pd.DataFrame(columns=BAR_COLUMNS)
        return pd.DataFrame([
            {'timestamp': b.timestamp, 'open': b.open, 'high': b.high,
             'low': b.low, 'close': b.close, 'volume': b.volume}
            for b in self.bars
        ])

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, max_bars: int = 1500,
                       symbol: str = '') -> 'DataBuffer':
        """Build a buffer from a frame with the BAR_COLUMNS layout"""
        buffer = cls(max_bars=max_bars, symbol=symbol)
        if df is None or df.empty:
            return buffer
        df = df.dropna(subset=['timestamp', 'open']).sort_values('timestamp')
        for row in df.itertuples(index=False):
            buffer.add(OHLCV(
                timestamp=pd.Timestamp(row.timestamp).to_pydatetime(),
                open=float(row.open),
                high=float(row.high),
                low=float(row.low),
                close=float(row.close),
                volume=float(row.volume)
            ))
        return buffer

    @property
    def last(self) -> Optional[OHLCV]:
        return self.bars[-1] if self.bars else None
