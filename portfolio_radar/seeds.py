"""Seed data shown before the first refresh."""

from typing import List

from portfolio_radar.models import DividendData, HealthSectorData, StockData

# name, reference price, currency, exit (sell) target, accumulative (buy) target
_STOCK_ROWS = [
    ("Repsol", 15.7, "€", 17.5, 13.5),
    ("Endesa", 30.6, "€", 35.0, 27.5),
    ("Enagás", 14.1, "€", 16.5, 13.0),
    ("Iberdrola", 18.0, "€", 20.5, 16.0),
    ("BAE Systems PLC", 18.9, "€", 21.5, 18.0),
    ("Danone", 77.2, "€", 88.0, 72.0),
    ("Nestlé", 80.56, "CHF", 85.00, 80.00),
    ("Viscofan", 52.8, "€", 58.0, 48.0),
    ("Logista", 29.0, "€", 32.5, 27.0),
    ("Cisco Systems", 76.2, "USD", 80.0, 65.0),
    ("Indra Sistemas", 45.6, "€", 54.5, 44.0),
    ("LVMH", 622.90, "€", 700.00, 570.00),
    ("ASML", 870.60, "€", 1050.00, 800.00),
    ("SAP", 206.10, "€", 260.00, 200.00),
    ("Alphabet Inc Class C", 318.5, "USD", 320.0, 250.0),
    ("Zurich Insurance Group", 563.2, "€", 600.0, 510.0),
    ("Enterprise Products Partners", 32.6, "€", 35.0, 28.0),
    ("Altria Group (MO)", 57.3, "€", 65.0, 53.0),
    ("Verizon Communications", 40.2, "€", 45.0, 36.0),
    ("LyondellBasell (LYB)", 45.4, "€", 48.0, 38.0),
    ("Unilever PLC", 51.9, "€", 56.0, 47.0),
    ("St. Galler Kantonalbank", 527.00, "CHF", 585.00, 495.00),
    ("Groupe CRIT", 60.6, "€", 68.0, 55.0),
    ("Legal & General Group", 239.1, "€", 270.0, 210.0),
    ("The Coca-Cola Company", 72.6, "USD", 78.0, 65.0),
    ("Johnson & Johnson", 206.1, "€", 220.0, 180.0),
    ("PepsiCo", 145.5, "€", 158.0, 135.0),
    ("Icade", 20.3, "€", 26.0, 18.0),
]

# company, subsector, country, growth probability
_HEALTH_ROWS = [
    ("Roche", "Pharma / Diagnostics", "Switzerland", "70%"),
    ("AstraZeneca", "Pharma / Biotech", "UK", "65%"),
    ("Grifols", "Plasma derivatives", "Spain", "60%"),
    ("Novo Nordisk", "Diabetes / Obesity", "Denmark", "80%"),
    ("Fresenius SE", "Healthcare services", "Germany", "58%"),
    ("Lonza Group", "Biopharma / Outsourcing", "Switzerland", "55%"),
    ("EssilorLuxottica", "Optics / Eye care", "France", "65%"),
    ("Sanofi", "General pharma", "France", "60%"),
    ("GN Store Nord", "Hearing technology", "Denmark", "50%"),
    ("Coloplast", "Urology care", "Denmark", "63%"),
]

DIVIDEND_COMPANIES: List[str] = [
    "LyondellBasell", "Logista", "Viscofan", "Enagás", "Icade", "Altria", "Verizon",
    "Legal & General", "Enterprise Products", "Banco Sabadell", "Repsol", "Cisco",
    "St. Galler Kantonalbank", "Danone", "Atria Oyj", "Groupe CRIT", "Zurich Insurance",
    "Indra", "Nestlé", "Johnson & Johnson", "Iberdrola", "Unilever", "Stanley Black & Decker",
    "LVMH", "ASML", "PepsiCo", "SAP", "Coca-Cola", "Alphabet", "Endesa",
]


def initial_stocks() -> List[StockData]:
    return [
        StockData(name=name, current_price=price, currency=currency, exit_price=exit_, accumulative_price=acc)
        for name, price, currency, exit_, acc in _STOCK_ROWS
    ]


def initial_health_sector() -> List[HealthSectorData]:
    return [
        HealthSectorData(company=company, subsector=subsector, country=country, growth_prob=growth)
        for company, subsector, country, growth in _HEALTH_ROWS
    ]


def initial_dividends() -> List[DividendData]:
    return [DividendData(name=name) for name in DIVIDEND_COMPANIES]
