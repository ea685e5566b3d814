"""
Ledger write boundary.
Every trade entering the ledger passes through here; bad input is rejected
with a descriptive TradeValidationError and never coerced.
"""
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from py_positions.types import Trade, TradeType


class TradeValidationError(ValueError):
    pass


def generate_id() -> str:
    return uuid.uuid4().hex


def parse_timestamp(value: Any) -> datetime:
    """ Accepts datetime, date or ISO strings ('2024-03-01', '2024-03-01T09:30:00Z'). """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(raw)
        except ValueError:
            raise TradeValidationError(f"Invalid trade date '{value}'. Expected ISO format YYYY-MM-DD")
    else:
        raise TradeValidationError(f"Missing trade date (got {value!r})")

    # Keep all timestamps naive so they stay comparable when sorting
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def parse_trade_type(value: Any) -> TradeType:
    if isinstance(value, TradeType):
        return value
    try:
        return TradeType(str(value).strip().lower())
    except ValueError:
        raise TradeValidationError(f"Invalid trade type '{value}'. Expected 'buy' or 'sell'")


def _parse_decimal(value: Any, field_name: str) -> Decimal:
    if isinstance(value, bool):
        raise TradeValidationError(f"Invalid {field_name} {value!r}")
    try:
        # str() first so floats keep their printed value (0.1 -> 0.1)
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise TradeValidationError(f"Invalid {field_name} {value!r}. Expected a number")
    if not result.is_finite():
        raise TradeValidationError(f"Invalid {field_name} {value!r}. Expected a finite number")
    return result


def parse_price(value: Any) -> Decimal:
    price = _parse_decimal(value, "price")
    if price <= 0:
        raise TradeValidationError(f"Price must be positive (got {value})")
    return price


def parse_quantity(value: Any) -> int:
    qty = _parse_decimal(value, "quantity")
    if qty != qty.to_integral_value():
        raise TradeValidationError(f"Quantity must be a whole number of units (got {value})")
    if qty <= 0:
        raise TradeValidationError(f"Quantity must be positive (got {value})")
    return int(qty)


def parse_commission(value: Any) -> Optional[Decimal]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    commission = _parse_decimal(value, "commission")
    if commission < 0:
        raise TradeValidationError(f"Commission must not be negative (got {value})")
    return commission


def normalize_tags(tags: Optional[Iterable[str]]) -> frozenset:
    if tags is None:
        return frozenset()
    if not isinstance(tags, (list, tuple, set, frozenset)):
        raise TradeValidationError(f"Tags must be a list of labels (got {tags!r})")
    return frozenset(str(t).strip() for t in tags if str(t).strip())


def build_trade(
    code: Any,
    price: Any,
    quantity: Any,
    timestamp: Any,
    trade_type: Any = TradeType.BUY,
    name: Optional[str] = None,
    commission: Any = None,
    tags: Optional[Iterable[str]] = None,
    trade_id: Optional[str] = None,
) -> Trade:
    """
    Builds a validated Trade from raw form or file values.
    Codes are upper-cased and the name falls back to the code.
    """
    clean_code = str(code).strip().upper() if code is not None else ""
    if not clean_code:
        raise TradeValidationError("Instrument code is required")

    if name is not None and not isinstance(name, str):
        raise TradeValidationError(f"Instrument name must be text (got {name!r})")
    clean_name = (name or "").strip() or clean_code

    return Trade(
        id=str(trade_id) if trade_id else generate_id(),
        code=clean_code,
        name=clean_name,
        type=parse_trade_type(trade_type),
        price=parse_price(price),
        quantity=parse_quantity(quantity),
        timestamp=parse_timestamp(timestamp),
        commission=parse_commission(commission),
        tags=normalize_tags(tags),
    )


def validate_trade(trade: Trade) -> Trade:
    """ Re-checks an already constructed Trade before it is written to the ledger. """
    if not trade.id:
        raise TradeValidationError("Trade id is required")
    if not trade.code or not trade.code.strip():
        raise TradeValidationError(f"Trade {trade.id}: instrument code is required")
    if not isinstance(trade.type, TradeType):
        raise TradeValidationError(f"Trade {trade.id}: invalid type {trade.type!r}")
    if not isinstance(trade.price, Decimal) or trade.price <= 0:
        raise TradeValidationError(f"Trade {trade.id}: price must be a positive Decimal (got {trade.price!r})")
    if isinstance(trade.quantity, bool) or not isinstance(trade.quantity, int) or trade.quantity <= 0:
        raise TradeValidationError(f"Trade {trade.id}: quantity must be a positive integer (got {trade.quantity!r})")
    if not isinstance(trade.timestamp, datetime):
        raise TradeValidationError(f"Trade {trade.id}: timestamp must be a datetime (got {trade.timestamp!r})")
    if trade.timestamp.tzinfo is not None:
        raise TradeValidationError(f"Trade {trade.id}: timestamp must be naive UTC (got {trade.timestamp.isoformat()})")
    if trade.commission is not None and trade.commission < 0:
        raise TradeValidationError(f"Trade {trade.id}: commission must not be negative")
    return trade
