"""Country → base currency lookup used when a company signs up."""
from expenseflow.core.config import settings

TOP_COUNTRIES: list[dict[str, str]] = [
    {"name": "United States", "currency": "USD"},
    {"name": "United Kingdom", "currency": "GBP"},
    {"name": "Canada", "currency": "CAD"},
    {"name": "Australia", "currency": "AUD"},
    {"name": "Germany", "currency": "EUR"},
    {"name": "France", "currency": "EUR"},
    {"name": "India", "currency": "INR"},
    {"name": "Japan", "currency": "JPY"},
    {"name": "China", "currency": "CNY"},
    {"name": "Brazil", "currency": "BRL"},
    {"name": "Mexico", "currency": "MXN"},
    {"name": "South Africa", "currency": "ZAR"},
    {"name": "Singapore", "currency": "SGD"},
    {"name": "Netherlands", "currency": "EUR"},
    {"name": "Switzerland", "currency": "CHF"},
    {"name": "Sweden", "currency": "SEK"},
    {"name": "Norway", "currency": "NOK"},
    {"name": "Denmark", "currency": "DKK"},
    {"name": "New Zealand", "currency": "NZD"},
    {"name": "South Korea", "currency": "KRW"},
]

_BY_NAME = {entry["name"].lower(): entry["currency"] for entry in TOP_COUNTRIES}


def get_top_countries() -> list[dict[str, str]]:
    return sorted(TOP_COUNTRIES, key=lambda entry: entry["name"])


def get_currency_for_country(country: str) -> str:
    return _BY_NAME.get(country.strip().lower(), settings.DEFAULT_BASE_CURRENCY)
