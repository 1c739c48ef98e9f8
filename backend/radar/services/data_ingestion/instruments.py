"""
Instrument Registry

Canonical instruments with each provider's symbol and display metadata.
"""

from dataclasses import dataclass

from radar.schemas.market import AssetClass
from radar.services.base import UnknownInstrumentError


@dataclass(frozen=True)
class Instrument:
    symbol: str
    name: str
    asset_class: AssetClass
    yahoo_symbol: str
    twelve_data_symbol: str
    decimals: int
    pip_size: float

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "asset_class": self.asset_class.value,
            "decimals": self.decimals,
            "pip_size": self.pip_size,
        }


INSTRUMENTS: dict[str, Instrument] = {
    i.symbol: i
    for i in (
        Instrument("USDJPY", "US Dollar / Japanese Yen", AssetClass.FOREX, "USDJPY=X", "USD/JPY", 3, 0.01),
        Instrument("EURUSD", "Euro / US Dollar", AssetClass.FOREX, "EURUSD=X", "EUR/USD", 5, 0.0001),
        Instrument("GBPUSD", "British Pound / US Dollar", AssetClass.FOREX, "GBPUSD=X", "GBP/USD", 5, 0.0001),
        Instrument("XAUUSD", "Gold / US Dollar", AssetClass.METAL, "GC=F", "XAU/USD", 2, 0.1),
        Instrument("NIFTY", "Nifty 50 Index", AssetClass.INDEX, "^NSEI", "NIFTY", 2, 1.0),
    )
}

# Alternative spellings accepted on input
ALIASES = {
    "USD/JPY": "USDJPY",
    "EUR/USD": "EURUSD",
    "GBP/USD": "GBPUSD",
    "XAU/USD": "XAUUSD",
    "GOLD": "XAUUSD",
    "NIFTY50": "NIFTY",
}


def get_instrument(symbol: str) -> Instrument:
    """
    Resolve a symbol to its Instrument (case-insensitive).

    Raises:
        UnknownInstrumentError: If the symbol is not registered
    """
    key = symbol.upper().strip()
    key = ALIASES.get(key, key)

    instrument = INSTRUMENTS.get(key)
    if instrument is None:
        raise UnknownInstrumentError(symbol)
    return instrument


def search_instruments(query: str, limit: int = 10) -> list[Instrument]:
    """
    Search instruments by symbol or name.

    Args:
        query: Search query (partial match)
        limit: Maximum results to return

    Returns:
        List of matching instruments
    """
    query = query.upper().strip()

    if not query:
        return list(INSTRUMENTS.values())[:limit]

    results = []

    # Exact symbol match first
    exact = INSTRUMENTS.get(ALIASES.get(query, query))
    if exact is not None:
        results.append(exact)

    # Partial symbol match
    for instrument in INSTRUMENTS.values():
        if instrument.symbol.startswith(query) and instrument not in results:
            results.append(instrument)

    # Name contains query
    for instrument in INSTRUMENTS.values():
        if query.lower() in instrument.name.lower() and instrument not in results:
            results.append(instrument)

    return results[:limit]
