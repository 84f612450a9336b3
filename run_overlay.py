"""
Strike Overlay - Main Entry Point
Loads 1-min ETF + futures history, draws ETF strike lines on the futures chart

Usage:
    py run_overlay.py                          # IBKR, SPY strikes on ES
    py run_overlay.py --source yahoo           # Yahoo Finance (SPY / ES=F)
    py run_overlay.py --width 10 --offset -40  # Wider ladder, labels further left
    py run_overlay.py --debug                  # Show opens/ratio in the corner
"""

import argparse
import json
import os
import sys
import webbrowser

from strike_overlay.config import (
    OverlaySettings, GATEWAY_HOST, GATEWAY_PAPER_PORT, CLIENT_ID, DEFAULT_FUTURE
)
from strike_overlay.data_sources import IBKRClient, YahooClient, SymbolNotFound
from strike_overlay.indicator import StrikeOverlayIndicator
from strike_overlay.render import OverlayRenderer, estimate_text_size

YAHOO_FUTURES = {'ES': 'ES=F', 'NQ': 'NQ=F', 'YM': 'YM=F', 'RTY': 'RTY=F'}


class StrikeOverlayApp:
    """Main orchestrator: data source -> indicator -> plotly chart"""

    def __init__(self, settings: OverlaySettings, source: str = 'ibkr',
                 future: str = DEFAULT_FUTURE, port: int = GATEWAY_PAPER_PORT,
                 output_path: str = 'output/strike_overlay.html', debug: bool = False,
                 levels_path: str = ''):
        self.settings = settings
        self.source = source
        self.future = future
        self.port = port
        self.output_path = output_path
        self.debug = debug
        self.levels_path = levels_path

    def _render(self, indicator: StrikeOverlayIndicator, contract: str) -> str:
        if indicator.inert:
            print(f"[FAIL] Overlay disabled: {indicator.config_error}")
            return ''

        renderer = OverlayRenderer(indicator.settings)
        target_df = indicator.target.to_dataframe()
        if target_df.empty:
            print(f"[FAIL] No {contract} bars to chart")
            return ''

        frame = indicator.on_paint(
            renderer.viewport,
            renderer.price_to_y(target_df),
            estimate_text_size
        )
        ladder = indicator.ladder()
        if ladder.defined:
            print(f"[OVERLAY] Ratio {ladder.ratio:.4f} | Base strike {ladder.base_strike} | "
                  f"{len(frame)}/{len(ladder.levels)} levels visible")
        else:
            print(f"[OVERLAY] No levels ({ladder.status})")

        if self.levels_path:
            with open(self.levels_path, "w") as f:
                json.dump(ladder.to_dict(), f, indent=2)
            print(f"[OVERLAY] Levels written to {self.levels_path}")

        fig = renderer.build_figure(
            target_df,
            frame,
            title=f"{contract} with {indicator.reference_name} strikes (1 Minute)",
            debug_lines=indicator.debug_lines() if self.debug else None
        )
        return renderer.save(fig, self.output_path)

    def _run_ibkr(self) -> str:
        print(f"\n[INIT] Connecting to IBKR Gateway ({GATEWAY_HOST}:{self.port})...")
        with IBKRClient(symbol=self.future, host=GATEWAY_HOST,
                        port=self.port, client_id=CLIENT_ID) as client:
            if not client.connected:
                print("[FAIL] Could not connect to IBKR. Is Gateway running?")
                return ''
            print(f"[OK] Connected - Contract: {client.contract_symbol} (tick {client.tick_size})")

            settings = self.settings
            if settings.tick_size != client.tick_size:
                settings = OverlaySettings(**{**settings.to_dict(), 'tick_size': client.tick_size})

            indicator = StrikeOverlayIndicator(
                settings,
                load_reference=client.fetch_reference,
                load_target=client.fetch_target
            )
            indicator.on_init()
            return self._render(indicator, client.contract_symbol)

    def _run_yahoo(self) -> str:
        client = YahooClient()
        ticker = YAHOO_FUTURES.get(self.future, self.future)
        indicator = StrikeOverlayIndicator(
            self.settings,
            load_reference=client.fetch_reference,
            load_target=lambda: client.fetch(ticker)
        )
        indicator.on_init()
        return self._render(indicator, ticker)

    def run(self) -> str:
        print("=" * 60)
        print(f"STRIKE OVERLAY - {self.settings.reference_symbol} on {self.future}")
        print(f"Source: {self.source} | Half-width: {self.settings.strike_width} | "
              f"Offset: {self.settings.horizontal_offset}px")
        print("=" * 60)

        if self.source == 'yahoo':
            return self._run_yahoo()
        return self._run_ibkr()


def main():
    parser = argparse.ArgumentParser(description='ETF strike levels on a futures chart')
    parser.add_argument('--source', choices=['ibkr', 'yahoo'], default='ibkr',
                        help='Market data source (default: ibkr)')
    parser.add_argument('--symbol', default='SPY',
                        help='Reference ETF symbol (default: SPY)')
    parser.add_argument('--future', default=DEFAULT_FUTURE,
                        help='Futures root to chart (default: ES)')
    parser.add_argument('--width', type=int, default=7,
                        help='Strike half-width, 1-100 (default: 7)')
    parser.add_argument('--offset', type=int, default=-20,
                        help='Horizontal offset in px, -500..500 (default: -20)')
    parser.add_argument('--tick', type=float, default=0.25,
                        help='Futures tick size when the source does not report one (default: 0.25)')
    parser.add_argument('--line-style', type=int, default=1,
                        help='0 Solid, 1 Dash, 2 Dot, 3 DashDot, 4 DashDotDot (default: 1)')
    parser.add_argument('--line-color', default='#787b86',
                        help='Strike line colour (default: #787b86)')
    parser.add_argument('--port', type=int, default=GATEWAY_PAPER_PORT,
                        help=f'IB Gateway port (default: {GATEWAY_PAPER_PORT})')
    parser.add_argument('--output', default='output/strike_overlay.html',
                        help='HTML output path')
    parser.add_argument('--levels-json', default='',
                        help='Also write the strike ladder to this JSON file')
    parser.add_argument('--debug', action='store_true', help='Show opens and ratio on the chart')
    parser.add_argument('--no-browser', action='store_true', help='Do not open the chart')
    args = parser.parse_args()

    settings = OverlaySettings(
        reference_symbol=args.symbol.upper(),
        strike_width=args.width,
        line_color=args.line_color,
        line_style=args.line_style,
        horizontal_offset=args.offset,
        tick_size=args.tick
    )

    app = StrikeOverlayApp(
        settings,
        source=args.source,
        future=args.future.upper(),
        port=args.port,
        output_path=args.output,
        debug=args.debug,
        levels_path=args.levels_json
    )

    try:
        path = app.run()
    except SymbolNotFound as e:
        print(f"[FAIL] {e}")
        return 1

    if not path:
        return 1
    if not args.no_browser:
        webbrowser.open(f'file://{os.path.abspath(path)}')
    print("[OK] Done")
    return 0


if __name__ == '__main__':
    sys.exit(main())
