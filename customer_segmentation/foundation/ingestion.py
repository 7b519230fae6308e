"""Conversion of raw sales rows into :class:`OrderRecord` objects.

This is the boundary between file/database exports and the segmentation
core. Everything that can be wrong with a row (missing identifiers, dates
that do not parse, non-numeric sales) is rejected here so the core can
assume clean input.

Spreadsheet exports often store dates as serial day numbers counted from
1899-12-30; set ``date_encoding="serial"`` to convert them.
"""

from __future__ import annotations

import logging
import numbers
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field

from customer_segmentation.foundation.orders import OrderRecord

logger = logging.getLogger(__name__)

# Day zero of spreadsheet serial dates (accounts for the 1900 leap-year bug)
SERIAL_DATE_EPOCH = date(1899, 12, 30)

DateEncoding = Literal["iso", "serial"]


class MalformedRecordError(ValueError):
    """Raised when a raw row cannot be turned into an :class:`OrderRecord`."""

    def __init__(self, message: str, index: int | None = None):
        self.index = index
        if index is not None:
            message = f"Record at index {index}: {message}"
        super().__init__(message)


class IngestionConfig(BaseModel):
    """Column mapping and date handling for raw sales rows."""

    model_config = ConfigDict(frozen=True)

    order_id_col: str = Field(default="ORDER_ID", description="Order identifier column")
    customer_name_col: str = Field(
        default="CUSTOMER_NAME", description="Customer name column"
    )
    order_date_col: str = Field(default="ORDER_DATE", description="Order date column")
    ship_date_col: str = Field(default="SHIP_DATE", description="Ship date column")
    sales_col: str = Field(default="SALES", description="Sales amount column")
    date_encoding: DateEncoding = Field(
        default="iso",
        description="'iso' for ISO-8601 strings/date objects, "
        "'serial' for spreadsheet day numbers",
    )

    @property
    def required_columns(self) -> list[str]:
        return [
            self.order_id_col,
            self.customer_name_col,
            self.order_date_col,
            self.ship_date_col,
            self.sales_col,
        ]


def serial_to_date(serial: int | float | str) -> date:
    """Convert a spreadsheet serial day number to a calendar date.

    >>> serial_to_date(41639)
    datetime.date(2013, 12, 31)
    """
    try:
        days = int(float(serial))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid serial date: {serial!r}") from exc
    return SERIAL_DATE_EPOCH + timedelta(days=days)


def parse_date(value: Any, encoding: DateEncoding = "iso") -> date:
    """Parse a date cell according to ``encoding``.

    ``datetime`` values are truncated to their date. With ``"serial"``
    encoding numeric values (or numeric strings) are treated as day numbers;
    ISO strings are still accepted.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if encoding == "serial" and not isinstance(value, bool):
        if isinstance(value, numbers.Real):
            return serial_to_date(value)
        if isinstance(value, str) and value.strip().replace(".", "", 1).isdigit():
            return serial_to_date(value.strip())
    if isinstance(value, str) and value.strip():
        text = value.strip().replace("Z", "+00:00")
        try:
            return datetime.fromisoformat(text).date()
        except ValueError as exc:
            raise ValueError(f"Unparseable date: {value!r}") from exc
    raise ValueError(f"Unparseable date: {value!r}")


def parse_sales(value: Any) -> Decimal:
    """Parse a sales amount into a ``Decimal``."""
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Unparseable sales amount: {value!r}")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"Unparseable sales amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Unparseable sales amount: {value!r}")
    return amount


def _required_text(row: Mapping[str, Any], column: str, index: int | None) -> str:
    value = row.get(column)
    if value is None:
        raise MalformedRecordError(f"missing {column}", index)
    text = str(value).strip()
    if not text or text.lower() == "nan":
        raise MalformedRecordError(f"missing {column}", index)
    return text


def parse_order_record(
    row: Mapping[str, Any],
    config: IngestionConfig | None = None,
    index: int | None = None,
) -> OrderRecord:
    """Convert one raw row into an :class:`OrderRecord`.

    Raises
    ------
    MalformedRecordError
        If the order id or customer name is missing, or a date or the sales
        amount cannot be parsed.
    """
    config = config or IngestionConfig()

    order_id = _required_text(row, config.order_id_col, index)
    customer_name = _required_text(row, config.customer_name_col, index)

    dates: dict[str, date] = {}
    for column in (config.order_date_col, config.ship_date_col):
        if row.get(column) is None:
            raise MalformedRecordError(f"missing {column}", index)
        try:
            dates[column] = parse_date(row[column], config.date_encoding)
        except ValueError as exc:
            raise MalformedRecordError(f"{column}: {exc}", index) from exc

    try:
        sales = parse_sales(row.get(config.sales_col))
    except ValueError as exc:
        raise MalformedRecordError(f"{config.sales_col}: {exc}", index) from exc

    return OrderRecord(
        order_id=order_id,
        customer_name=customer_name,
        order_date=dates[config.order_date_col],
        ship_date=dates[config.ship_date_col],
        sales=sales,
    )


def parse_order_records(
    rows: Iterable[Mapping[str, Any]],
    config: IngestionConfig | None = None,
) -> list[OrderRecord]:
    """Convert raw rows into order records, failing on the first bad row."""
    config = config or IngestionConfig()
    records = [
        parse_order_record(row, config, index) for index, row in enumerate(rows)
    ]
    logger.info("Parsed %d order records", len(records))
    return records
