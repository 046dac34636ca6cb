"""
Core data models for Portfolio Radar.

Subjects are the entities the dashboard tracks (radar stocks, dividend
payers, health-sector companies, portfolio lines). Records are the validated
answers the search model returns for one subject. Both serialize with
camelCase aliases, the schema the model is asked to produce.
"""

import re
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class RadarModel(BaseModel):
    """Base model accepting camelCase or snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


_NUMBER_RE = re.compile(r"-?\d+(?:[.,]\d+)*")


def coerce_price(value: Any) -> Optional[float]:
    """
    Best-effort numeric repair for prices the model returns as text.

    Accepts numbers, "15.20", "15,20 €", "1,050.00 USD". Returns None when
    nothing numeric can be recovered.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        return None

    match = _NUMBER_RE.search(value.replace(" ", ""))
    if not match:
        return None
    number = match.group()
    if "," in number and "." in number:
        # Thousands separator is whichever comes first
        if number.index(",") < number.index("."):
            number = number.replace(",", "")
        else:
            number = number.replace(".", "").replace(",", ".")
    elif "," in number:
        number = number.replace(",", ".")
    try:
        return float(number)
    except ValueError:
        return None


# =============================================================================
# Subjects
# =============================================================================


class StockData(RadarModel):
    """A stock on the radar, with reference targets from the seed sheet."""

    name: str = Field(..., min_length=1)
    current_price: float = Field(..., description="Reference price from the seed sheet")
    currency: str
    exit_price: float = Field(..., description="Sell target")
    accumulative_price: float = Field(..., description="Buy target")
    market_price: Optional[float] = Field(None, description="Live price reported by the model")
    recommendation: Optional[str] = None
    updated: bool = False


class DividendData(RadarModel):
    """A dividend payer and its usual payment months."""

    name: str = Field(..., min_length=1)
    payment_months: List[str] = Field(default_factory=list)
    last_updated: Optional[str] = None


class HealthSectorData(RadarModel):
    """A health-sector company tracked as a defensive asset."""

    company: str = Field(..., min_length=1)
    subsector: str = ""
    country: str = ""
    growth_prob: str = Field("", description='Growth probability, e.g. "70%"')
    current_price: Optional[float] = None
    currency: Optional[str] = None
    target_price: Optional[float] = None
    buy_signal: Optional[str] = None
    defensive_note: Optional[str] = None


class PortfolioItem(RadarModel):
    """One line of the user's portfolio, keyed by ISIN."""

    isin: Optional[str] = None
    company: str = ""
    quantity: float = Field(..., ge=0)
    avg_price: float = 0.0
    current_price: Optional[float] = None
    current_value: Optional[float] = None
    action: Optional[str] = None
    forecast_3_to_5_years: Optional[str] = Field(None, alias="forecast3to5Years")
    optimization_tip: Optional[str] = None


# =============================================================================
# Enrichment records
# =============================================================================


class EnrichmentRecord(RadarModel):
    """Base for records parsed out of a model response."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class StockQuote(EnrichmentRecord):
    name: str = Field(..., min_length=1)
    market_price: Optional[float] = None
    currency: Optional[str] = None
    exit_price: Optional[float] = None
    accumulative_price: Optional[float] = None
    recommendation: Optional[str] = None

    @field_validator("market_price", "exit_price", "accumulative_price", mode="before")
    @classmethod
    def repair_price(cls, v):
        return coerce_price(v)


MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

_SPANISH_MONTHS = {
    "enero": "January",
    "febrero": "February",
    "marzo": "March",
    "abril": "April",
    "mayo": "May",
    "junio": "June",
    "julio": "July",
    "agosto": "August",
    "septiembre": "September",
    "setiembre": "September",
    "octubre": "October",
    "noviembre": "November",
    "diciembre": "December",
}


def normalize_month(value: str) -> Optional[str]:
    """Map "july", "Jul", "Julio" to "July"; unknown text maps to None."""
    key = value.strip().lower().rstrip(".")
    if not key:
        return None
    if key in _SPANISH_MONTHS:
        return _SPANISH_MONTHS[key]
    for month in MONTHS:
        if key == month.lower() or (len(key) >= 3 and month.lower().startswith(key)):
            return month
    return None


class DividendSchedule(EnrichmentRecord):
    name: str = Field(..., min_length=1)
    payment_months: List[str]

    @field_validator("payment_months", mode="after")
    @classmethod
    def normalize_months(cls, v: List[str]) -> List[str]:
        months = []
        for raw in v:
            month = normalize_month(raw)
            if month and month not in months:
                months.append(month)
        return months


class HealthSignal(EnrichmentRecord):
    company: str = Field(..., min_length=1)
    current_price: Optional[float] = None
    currency: Optional[str] = None
    target_price: Optional[float] = None
    buy_signal: Optional[str] = None
    defensive_note: Optional[str] = None

    @field_validator("current_price", "target_price", mode="before")
    @classmethod
    def repair_price(cls, v):
        return coerce_price(v)


class PortfolioAnalysis(EnrichmentRecord):
    isin: str = Field(..., min_length=1)
    company: Optional[str] = None
    action: Optional[str] = None
    current_price: Optional[float] = None
    forecast_3_to_5_years: Optional[str] = Field(None, alias="forecast3to5Years")
    optimization_tip: Optional[str] = None

    @field_validator("current_price", mode="before")
    @classmethod
    def repair_price(cls, v):
        return coerce_price(v)
