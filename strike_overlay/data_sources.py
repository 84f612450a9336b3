"""
Data Sources - IBKR and Yahoo Finance 1-minute history
Loads the reference (ETF) and target (futures) series the overlay reads
"""

from datetime import timezone
from typing import Optional
import pandas as pd
import yfinance as yf
from ib_insync import IB, Future, Stock

from .bars import BAR_COLUMNS, DataBuffer
from .config import GATEWAY_HOST, GATEWAY_PAPER_PORT, CLIENT_ID, DEFAULT_TICK_SIZE


class SymbolNotFound(LookupError):
    """Instrument could not be resolved by the data source"""


def _bars_to_dataframe(bars) -> pd.DataFrame:
    """Convert ib_insync BarData list to a UTC-stamped frame"""
    if not bars:
        return pd.DataFrame(columns=BAR_COLUMNS)
    return pd.DataFrame([
        {'timestamp': b.date.replace(tzinfo=timezone.utc) if b.date.tzinfo is None else b.date,
         'open': b.open, 'high': b.high, 'low': b.low,
         'close': b.close, 'volume': b.volume}
        for b in bars
    ])


class IBKRClient:
    """IBKR client for the futures contract and its reference ETF"""

    def __init__(self, symbol: str = 'ES', host: str = GATEWAY_HOST,
                 port: int = GATEWAY_PAPER_PORT, client_id: int = CLIENT_ID):
        self.symbol = symbol
        self.host = host
        self.port = port
        self.client_id = client_id
        self.ib = IB()
        self._contract = None
        self._min_tick: Optional[float] = None
        self.connected = False

    def connect(self) -> bool:
        """Connect to IBKR Gateway and resolve the front month future"""
        try:
            self.ib.connect(self.host, self.port, clientId=self.client_id)
            base = Future(self.symbol, exchange='CME')
            contracts = self.ib.reqContractDetails(base)
            if contracts:
                contracts.sort(key=lambda x: x.contract.lastTradeDateOrContractMonth)
                self._contract = contracts[0].contract
                self._min_tick = contracts[0].minTick or None
                return True
            print(f"[IBKR] No {self.symbol} contract found - disconnecting")
            self.disconnect()
            return False
        except Exception as e:
            print(f"[IBKR] Connection error: {e}")
            return False

    def disconnect(self):
        if self.ib.isConnected():
            self.ib.disconnect()

    def __enter__(self):
        self.connected = self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
        return False

    def resolve_stock(self, name: str):
        """Qualify a SMART-routed stock/ETF contract or raise SymbolNotFound"""
        contract = Stock(name, 'SMART', 'USD')
        qualified = self.ib.qualifyContracts(contract)
        if not qualified:
            raise SymbolNotFound(f"Could not find symbol '{name}'.")
        return qualified[0]

    def _fetch(self, contract, duration: str, bar_size: str) -> pd.DataFrame:
        bars = self.ib.reqHistoricalData(
            contract,
            endDateTime='',
            durationStr=duration,
            barSizeSetting=bar_size,
            whatToShow='TRADES',
            useRTH=False,
            formatDate=1
        )
        return _bars_to_dataframe(bars)

    def fetch_target(self, duration: str = '1 D', bar_size: str = '1 min') -> DataBuffer:
        """1-min bars of the resolved futures contract"""
        if not self._contract:
            return DataBuffer()
        return DataBuffer.from_dataframe(self._fetch(self._contract, duration, bar_size))

    def fetch_reference(self, name: str, duration: str = '1 D',
                        bar_size: str = '1 min') -> DataBuffer:
        """1-min bars of the reference instrument; raises SymbolNotFound"""
        contract = self.resolve_stock(name)
        return DataBuffer.from_dataframe(self._fetch(contract, duration, bar_size),
                                         symbol=contract.symbol)

    @property
    def tick_size(self) -> float:
        return self._min_tick or DEFAULT_TICK_SIZE

    @property
    def contract_symbol(self) -> str:
        return self._contract.localSymbol if self._contract else self.symbol


class YahooClient:
    """Yahoo Finance 1-min history (no gateway needed, limited to 7 days)"""

    def __init__(self, period: str = '1d', interval: str = '1m'):
        self.period = period
        self.interval = interval

    @staticmethod
    def _flatten(data: pd.DataFrame) -> pd.DataFrame:
        # Handle MultiIndex columns (yfinance > 0.2.x)
        if isinstance(data.columns, pd.MultiIndex):
            if 'Ticker' in data.columns.names:
                data.columns = data.columns.droplevel('Ticker')
            elif len(data.columns.levels) == 2:
                data.columns = data.columns.droplevel(1)
        return data

    def fetch_frame(self, ticker: str) -> pd.DataFrame:
        """Download bars as a BAR_COLUMNS frame; empty when Yahoo returns nothing"""
        print(f"[YAHOO] Fetching {ticker} (Period: {self.period}, Interval: {self.interval})...")
        data = yf.download(ticker, period=self.period, interval=self.interval,
                           progress=False, auto_adjust=False)
        if data is None or data.empty:
            print(f"[YAHOO] Warning: No data found for {ticker}")
            return pd.DataFrame(columns=BAR_COLUMNS)

        data = self._flatten(data).reset_index()
        date_col = 'Datetime' if 'Datetime' in data.columns else 'Date'
        df = pd.DataFrame({
            'timestamp': pd.to_datetime(data[date_col], utc=True),
            'open': data['Open'],
            'high': data['High'],
            'low': data['Low'],
            'close': data['Close'],
            'volume': data['Volume'],
        })
        return df.drop_duplicates(subset=['timestamp'])

    def fetch(self, ticker: str) -> DataBuffer:
        return DataBuffer.from_dataframe(self.fetch_frame(ticker))

    def resolve(self, ticker: str) -> str:
        """
        Check that Yahoo knows the ticker or raise SymbolNotFound.

        An empty intraday download only means no bars in the window (weekend,
        pre-market), so resolution looks at daily history over a wider one.
        """
        history = yf.Ticker(ticker).history(period='1mo', interval='1d')
        if history is None or history.empty:
            raise SymbolNotFound(f"Could not find symbol '{ticker}'.")
        return ticker.upper()

    def fetch_reference(self, name: str) -> DataBuffer:
        """1-min bars of the reference instrument; raises SymbolNotFound"""
        symbol = self.resolve(name)
        return DataBuffer.from_dataframe(self.fetch_frame(name), symbol=symbol)
