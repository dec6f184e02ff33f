"""
Company Pool Definition
=======================

The rotating universe the daily selection draws from: 60 large US names
across six sectors, each tagged with a cap class and a volatility class.

Sectors:
1. technology
2. financials
3. healthcare
4. consumer
5. energy_utilities
6. industrials

The pool is mutable at runtime (add/remove) and is not persisted;
changes take effect on the next selection cycle.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional

logger = logging.getLogger(__name__)


SECTORS: List[str] = [
    "technology",
    "financials",
    "healthcare",
    "consumer",
    "energy_utilities",
    "industrials",
]

SECTOR_DESCRIPTIONS: Dict[str, str] = {
    "technology": "Technology & Internet",
    "financials": "Banks, Payments & Insurance",
    "healthcare": "Pharma, Devices & Managed Care",
    "consumer": "Retail, Staples & Restaurants",
    "energy_utilities": "Oil & Gas, Midstream & Utilities",
    "industrials": "Aerospace, Machinery & Logistics",
    "other": "Added at runtime",
}

CAP_CLASSES = ("mega", "large", "mid")
VOLATILITY_CLASSES = ("high", "medium", "low")

# Momentum days favour growth, contrarian days favour defensives
GROWTH_SECTORS = frozenset({"technology", "consumer"})
DEFENSIVE_SECTORS = frozenset({"healthcare", "energy_utilities"})


@dataclass(frozen=True)
class CompanyPoolEntry:
    """One selectable symbol with the metadata the selection weights use."""
    symbol: str
    sector: str
    cap_class: str = "large"
    volatility_class: str = "medium"

    def __post_init__(self):
        if self.cap_class not in CAP_CLASSES:
            raise ValueError(f"Unknown cap class: {self.cap_class}. Valid: {CAP_CLASSES}")
        if self.volatility_class not in VOLATILITY_CLASSES:
            raise ValueError(
                f"Unknown volatility class: {self.volatility_class}. Valid: {VOLATILITY_CLASSES}"
            )

    def to_dict(self) -> Dict[str, str]:
        return {
            "symbol": self.symbol,
            "sector": self.sector,
            "capClass": self.cap_class,
            "volatilityClass": self.volatility_class,
        }


def _entry(symbol: str, sector: str, cap: str, vol: str) -> CompanyPoolEntry:
    return CompanyPoolEntry(symbol=symbol, sector=sector, cap_class=cap, volatility_class=vol)


# =============================================================================
# Default Pool (60 symbols)
# =============================================================================

DEFAULT_POOL: List[CompanyPoolEntry] = [
    # Technology
    _entry("AAPL", "technology", "mega", "medium"),
    _entry("MSFT", "technology", "mega", "medium"),
    _entry("GOOGL", "technology", "mega", "medium"),
    _entry("AMZN", "technology", "mega", "medium"),
    _entry("META", "technology", "mega", "high"),
    _entry("TSLA", "technology", "mega", "high"),
    _entry("NVDA", "technology", "mega", "high"),
    _entry("CRM", "technology", "large", "high"),
    _entry("ORCL", "technology", "large", "high"),
    _entry("ADBE", "technology", "large", "medium"),

    # Financials
    _entry("JPM", "financials", "mega", "medium"),
    _entry("BAC", "financials", "large", "medium"),
    _entry("WFC", "financials", "large", "medium"),
    _entry("GS", "financials", "large", "medium"),
    _entry("MS", "financials", "large", "medium"),
    _entry("C", "financials", "large", "medium"),
    _entry("BRK.A", "financials", "mega", "low"),
    _entry("AXP", "financials", "large", "medium"),
    _entry("V", "financials", "mega", "low"),
    _entry("MA", "financials", "mega", "low"),

    # Healthcare
    _entry("JNJ", "healthcare", "mega", "low"),
    _entry("PFE", "healthcare", "large", "medium"),
    _entry("UNH", "healthcare", "mega", "medium"),
    _entry("ABBV", "healthcare", "large", "low"),
    _entry("BMY", "healthcare", "large", "medium"),
    _entry("MRK", "healthcare", "large", "low"),
    _entry("CVS", "healthcare", "mid", "medium"),
    _entry("MDT", "healthcare", "large", "low"),
    _entry("TMO", "healthcare", "large", "low"),
    _entry("ABT", "healthcare", "large", "low"),

    # Consumer
    _entry("WMT", "consumer", "mega", "low"),
    _entry("HD", "consumer", "large", "medium"),
    _entry("PG", "consumer", "large", "low"),
    _entry("KO", "consumer", "large", "low"),
    _entry("PEP", "consumer", "large", "low"),
    _entry("MCD", "consumer", "large", "low"),
    _entry("NKE", "consumer", "large", "medium"),
    _entry("SBUX", "consumer", "mid", "medium"),
    _entry("TGT", "consumer", "mid", "medium"),
    _entry("COST", "consumer", "large", "low"),

    # Energy & Utilities
    _entry("XOM", "energy_utilities", "mega", "high"),
    _entry("CVX", "energy_utilities", "large", "medium"),
    _entry("COP", "energy_utilities", "large", "medium"),
    _entry("SLB", "energy_utilities", "mid", "high"),
    _entry("EOG", "energy_utilities", "mid", "medium"),
    _entry("KMI", "energy_utilities", "mid", "low"),
    _entry("OKE", "energy_utilities", "mid", "low"),
    _entry("NEE", "energy_utilities", "large", "low"),
    _entry("SO", "energy_utilities", "mid", "low"),
    _entry("DUK", "energy_utilities", "mid", "low"),

    # Industrials
    _entry("CAT", "industrials", "large", "medium"),
    _entry("BA", "industrials", "large", "high"),
    _entry("HON", "industrials", "large", "low"),
    _entry("UPS", "industrials", "large", "medium"),
    _entry("LMT", "industrials", "large", "low"),
    _entry("RTX", "industrials", "large", "low"),
    _entry("DE", "industrials", "large", "medium"),
    _entry("MMM", "industrials", "mid", "medium"),
    _entry("GE", "industrials", "large", "medium"),
    _entry("FDX", "industrials", "mid", "medium"),
]


# =============================================================================
# Runtime Pool
# =============================================================================

class CompanyPool:
    """
    Mutable, ordered collection of CompanyPoolEntry keyed by symbol.

    Usage:
        pool = CompanyPool()            # 60 default symbols
        pool.add("AMD", sector="technology", volatility_class="high")
        pool.remove("C")
        pool.symbols()
    """

    def __init__(self, entries: Optional[Iterable[CompanyPoolEntry]] = None):
        self._entries: Dict[str, CompanyPoolEntry] = {}
        for entry in (DEFAULT_POOL if entries is None else entries):
            self._entries[entry.symbol.upper()] = entry

    def add(
        self,
        symbol: str,
        sector: str = "other",
        cap_class: str = "large",
        volatility_class: str = "medium",
    ) -> bool:
        """
        Add a symbol to the pool.

        Returns:
            False if the symbol was already present (pool unchanged)
        """
        symbol = symbol.strip().upper()
        if not symbol:
            raise ValueError("Symbol must be non-empty")
        if symbol in self._entries:
            return False

        self._entries[symbol] = CompanyPoolEntry(
            symbol=symbol,
            sector=sector,
            cap_class=cap_class,
            volatility_class=volatility_class,
        )
        logger.info(f"Added {symbol} to company pool ({len(self._entries)} symbols)")
        return True

    def remove(self, symbol: str) -> bool:
        """Remove a symbol; False if it was not in the pool."""
        removed = self._entries.pop(symbol.strip().upper(), None)
        if removed is None:
            return False
        logger.info(f"Removed {removed.symbol} from company pool ({len(self._entries)} symbols)")
        return True

    def get(self, symbol: str) -> Optional[CompanyPoolEntry]:
        return self._entries.get(symbol.upper())

    def symbols(self) -> List[str]:
        return list(self._entries)

    def entries(self) -> List[CompanyPoolEntry]:
        return list(self._entries.values())

    def by_sector(self, sector: str) -> List[CompanyPoolEntry]:
        return [e for e in self._entries.values() if e.sector == sector]

    def __contains__(self, symbol: str) -> bool:
        return symbol.upper() in self._entries

    def __iter__(self) -> Iterator[CompanyPoolEntry]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)


def validate_pool(entries: Iterable[CompanyPoolEntry] = DEFAULT_POOL) -> Dict:
    """
    Check a pool definition for duplicate symbols.

    Raises:
        ValueError: If a symbol appears more than once
    """
    entries = list(entries)
    seen = set()
    dups = set()
    for e in entries:
        if e.symbol in seen:
            dups.add(e.symbol)
        seen.add(e.symbol)
    if dups:
        raise ValueError(f"Duplicate symbols in pool: {sorted(dups)}")

    return {
        "valid": True,
        "total_symbols": len(entries),
        "symbols_per_sector": {
            sector: sum(1 for e in entries if e.sector == sector) for sector in SECTORS
        },
    }
