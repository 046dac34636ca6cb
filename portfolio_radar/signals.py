"""
Signals derived from (possibly enriched) subjects.

Pure functions over the models; nothing here talks to the search model.
"""

import re
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from portfolio_radar.models import HealthSectorData, PortfolioItem, StockData


class RadarAlert(str, Enum):
    SELL = "VENDE!"
    BUY = "COMPRA!"
    HOLD = "MANTENER"


def radar_alert(stock: StockData) -> RadarAlert:
    """
    Compare the live price (reference price before any refresh) with targets.

    At or above the exit price is a sell, at or below the accumulative price
    a buy, anything in between a hold.
    """
    price = stock.market_price or stock.current_price
    if price >= stock.exit_price:
        return RadarAlert.SELL
    if price <= stock.accumulative_price:
        return RadarAlert.BUY
    return RadarAlert.HOLD


def portfolio_value(items: Iterable[PortfolioItem]) -> float:
    """Total market value; lines without a price count as zero."""
    return sum((item.current_price or 0) * item.quantity for item in items)


def growth_probability(company: HealthSectorData) -> Optional[int]:
    """Integer percentage from text like "70%"."""
    match = re.search(r"\d+", company.growth_prob or "")
    return int(match.group()) if match else None


def growth_ranking(companies: Iterable[HealthSectorData]) -> List[Tuple[str, int]]:
    """(company, growth %) pairs, highest growth first; unparseable entries are skipped."""
    ranked = [(c.company, growth_probability(c)) for c in companies]
    return sorted(((name, g) for name, g in ranked if g is not None), key=lambda pair: pair[1], reverse=True)
