#!/usr/bin/env python3
"""Quick connectivity check: latest 1-min opens and the strike ladder from each source."""
import argparse

from strike_overlay.config import OverlaySettings, GATEWAY_PAPER_PORT
from strike_overlay.data_sources import IBKRClient, YahooClient, SymbolNotFound
from strike_overlay.strikes import compute_ladder


def report(tag: str, reference, target, settings: OverlaySettings):
    name = reference.symbol or settings.reference_symbol
    print(f"[{tag}] {name}: {len(reference)} bars, target: {len(target)} bars")
    ladder = compute_ladder(reference, target, settings.strike_width,
                            settings.tick_size, name)
    if not ladder.defined:
        print(f"[{tag}] No ladder ({ladder.status})")
        return
    print(f"[{tag}] Ref open {reference.last.open:.2f} | Fut open {target.last.open:.2f} | "
          f"Ratio {ladder.ratio:.4f}")
    for level in ladder.levels:
        print(f"    {level.label:<10} -> {level.target_price:.2f}")


def main():
    parser = argparse.ArgumentParser(description='Strike overlay data source check')
    parser.add_argument('--symbol', default='SPY')
    parser.add_argument('--width', type=int, default=3)
    parser.add_argument('--port', type=int, default=GATEWAY_PAPER_PORT)
    args = parser.parse_args()

    settings = OverlaySettings(reference_symbol=args.symbol.upper(), strike_width=args.width)

    print("=" * 50)
    print("Testing Data Source Connections")
    print("=" * 50)

    print("\n[IBKR] Connecting...")
    with IBKRClient(symbol='ES', port=args.port) as ibkr:
        if ibkr.connected:
            print(f"[IBKR] Contract: {ibkr.contract_symbol} (tick {ibkr.tick_size})")
            try:
                report('IBKR', ibkr.fetch_reference(settings.reference_symbol),
                       ibkr.fetch_target(), settings)
            except SymbolNotFound as e:
                print(f"[IBKR] {e}")
        else:
            print("[IBKR] Not connected")

    print("\n[YAHOO] Fetching...")
    yahoo = YahooClient()
    try:
        report('YAHOO', yahoo.fetch_reference(settings.reference_symbol), yahoo.fetch('ES=F'), settings)
    except SymbolNotFound as e:
        print(f"[YAHOO] {e}")

    print("\n" + "=" * 50)
    print("Test Complete")


if __name__ == '__main__':
    main()
