"""
Refresh tasks for the four dashboard views.

Each task is stateless: prompt text, models, matching and merge rules.
"""

from datetime import date
from typing import Any, Dict

from extraction.models import EnrichmentTask, MatchMode
from portfolio_radar.models import (
    DividendData,
    DividendSchedule,
    HealthSectorData,
    HealthSignal,
    PortfolioAnalysis,
    PortfolioItem,
    StockData,
    StockQuote,
)


class StockRadarTask(EnrichmentTask):
    """Live prices and optimized buy/sell targets for the stock radar."""

    name = "stocks"
    instructions = """Perform the following steps for EACH stock:
1. Use web search to find the REAL-TIME current market price. Do NOT use historical data, find the latest price.
2. Based on the live market price and recent news/trends, calculate an optimized "Exit Price" (sell target) and "Accumulative Price" (buy target) to maximize portfolio profits.
   - The Exit Price should be a realistic profit-taking level above the current price.
   - The Accumulative Price should be a strong support level or good entry point below (or near) the current price.
3. Provide a brief recommendation (Buy, Sell, Hold, Accumulate)."""
    schema = """[
  {
    "name": string (exact match from input list),
    "marketPrice": number (the live price you found),
    "currency": string (e.g. EUR, USD, CHF),
    "exitPrice": number (optimized sell target),
    "accumulativePrice": number (optimized buy target),
    "recommendation": string
  }
]"""

    subject_model = StockData
    record_model = StockQuote
    enrichment_defaults = {"market_price": None, "recommendation": "Hold"}
    overlay_fields = ("currency", "exit_price", "accumulative_price")

    def derived_fields(self, subject: Any, update: Dict[str, Any]) -> Dict[str, Any]:
        return {"updated": True}


class DividendCalendarTask(EnrichmentTask):
    """Usual dividend payment months per company."""

    name = "dividends"
    role = "You are a dividend calendar researcher."
    instructions = """Task: Identify the usual dividend payment months for the companies listed above.

INSTRUCTIONS:
1. Search broadly using web search for dividend calendars.
2. CONSENSUS & FALLBACK: If you find specific confirmed dates for the current or previous year, use them. If NOT, use your INTERNAL KNOWLEDGE of the company's historical payment pattern (e.g. "Usually pays in January").
3. TRANSLATE: Convert all months to English (e.g. "Enero" -> "January").
4. COMPLETENESS: You MUST return a result for EVERY company in the list. Do not return an empty list."""
    schema = """[{
  "name": "Company Name",
  "paymentMonths": ["January", "July"]
}]"""

    subject_model = DividendData
    record_model = DividendSchedule
    enrichment_defaults = {"payment_months": []}

    def derived_fields(self, subject: Any, update: Dict[str, Any]) -> Dict[str, Any]:
        return {"last_updated": date.today().isoformat()}


class HealthSectorTask(EnrichmentTask):
    """Buy signals for health-sector companies held as a tech-bubble hedge."""

    name = "health"
    instructions = """STRATEGY CONTEXT:
These stocks are being tracked as 'Defensive Assets' for a potential Tech Sector Bubble Burst.
We need to know if the CURRENT price represents a good entry point to hedge against tech volatility.

INSTRUCTIONS:
1. Find their REAL-TIME current stock price.
2. Set a "Target Price" based on growth probability.
3. DETERMINE BUY SIGNAL:
   - "BUY NOW": If price is attractive/undervalued and good specifically for defensive rotation.
   - "ACCUMULATE": If price is fair.
   - "WAIT": If price is too high/overbought, even for a defensive stock.
4. Defensive Note: Briefly explain WHY (e.g. "Low volatility, high dividend" or "Currently overvalued")."""
    schema = """[
  {
    "company": "Company Name",
    "currentPrice": 100.50,
    "currency": "EUR",
    "targetPrice": 120.00,
    "buySignal": "BUY NOW",
    "defensiveNote": "Strong balance sheet, good hedge."
  }
]"""

    subject_model = HealthSectorData
    record_model = HealthSignal
    subject_key_field = "company"
    record_key_field = "company"
    enrichment_defaults = {
        "current_price": None,
        "currency": None,
        "target_price": None,
        "buy_signal": "ACCUMULATE",
        "defensive_note": None,
    }

    def subject_label(self, subject: HealthSectorData) -> str:
        details = ", ".join(part for part in (subject.subsector, subject.country) if part)
        return f"{subject.company} ({details})" if details else subject.company


class PortfolioTask(EnrichmentTask):
    """Action, EUR price and outlook per portfolio line, matched by ISIN."""

    name = "portfolio"
    role = "You are a quantitative hedge fund analyst."
    instructions = """Analyze each portfolio position listed above (ISIN followed by the company name when known).

CURRENCY INSTRUCTIONS (CRITICAL):
ALL prices must be in EUROS (EUR). If the security trades in USD/GBP, convert the price.

ACTION RULES:
1. Estimate an "Ideal Entry Price" (strong support / intrinsic value) and a "Target Sell Price" (resistance / overvaluation).
2. If Current Price <= Entry Price -> action: "ACUMULAR"
3. If Current Price >= Target Price -> action: "VENDER"
4. If in between -> action: "MANTENER" (hold)."""
    schema = """[
  {
    "isin": "original ISIN",
    "company": "Company name",
    "action": "ACUMULAR | VENDER | MANTENER",
    "currentPrice": number in EUR,
    "forecast3to5Years": "SHORT FORMAT: 'Trend: [Bullish/Bearish/Sideways] | Est. CAGR: [XX]% per year' (max 10 words)",
    "optimizationTip": "TACTICAL FORMAT: 'Ideal entry: [XX]EUR | Exit: [XX]EUR | [short reason]' (max 15 words)"
  }
]"""

    subject_model = PortfolioItem
    record_model = PortfolioAnalysis
    subject_key_field = "isin"
    record_key_field = "isin"
    match_mode = MatchMode.IDENTIFIER
    enrichment_defaults = {
        "current_price": None,
        "action": "MANTENER",
        "forecast_3_to_5_years": "-",
        "optimization_tip": "-",
    }
    overlay_fields = ("company",)

    def subject_label(self, subject: PortfolioItem) -> str:
        isin = (subject.isin or "").strip()
        company = subject.company.strip()
        if company and company.upper() != isin.upper():
            return f"{isin} ({company})"
        return isin

    def derived_fields(self, subject: PortfolioItem, update: Dict[str, Any]) -> Dict[str, Any]:
        return {"current_value": (update.get("current_price") or 0) * subject.quantity}
