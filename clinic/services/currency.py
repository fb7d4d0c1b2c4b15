from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation


@dataclass(frozen=True)
class Currency:
    code: str
    symbol: str
    name: str
    decimal_places: int = 2

    def as_dict(self) -> dict:
        return {
            'code': self.code,
            'symbol': self.symbol,
            'name': self.name,
            'decimalPlaces': self.decimal_places,
        }


CURRENCIES: dict[str, Currency] = {
    c.code: c
    for c in (
        Currency('USD', '$', 'US Dollar'),
        Currency('NGN', '₦', 'Nigerian Naira'),
        Currency('EUR', '€', 'Euro'),
        Currency('GBP', '£', 'British Pound'),
        Currency('CAD', 'C$', 'Canadian Dollar'),
        Currency('AUD', 'A$', 'Australian Dollar'),
        Currency('JPY', '¥', 'Japanese Yen', 0),
        Currency('INR', '₹', 'Indian Rupee'),
        Currency('ZAR', 'R', 'South African Rand'),
        Currency('GHS', '₵', 'Ghanaian Cedi'),
        Currency('KES', 'KSh', 'Kenyan Shilling'),
        Currency('UGX', 'USh', 'Ugandan Shilling', 0),
    )
}

DEFAULT_CURRENCY = 'USD'


def is_valid_currency(code: str | None) -> bool:
    return bool(code) and code.upper() in CURRENCIES


def get_currency(code: str | None) -> Currency:
    """Currency for ``code``; unknown codes fall back to USD."""
    return CURRENCIES.get((code or '').upper(), CURRENCIES[DEFAULT_CURRENCY])


def format_amount(amount, code: str) -> str:
    currency = get_currency(code)
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        return f"{currency.symbol}0"
    return f"{currency.symbol}{value:,.{currency.decimal_places}f}"


def supported_currencies() -> list[dict]:
    return [c.as_dict() for c in CURRENCIES.values()]
