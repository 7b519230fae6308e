"""Tests for the ingestion boundary."""

from datetime import date, datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from customer_segmentation.foundation.ingestion import (
    IngestionConfig,
    MalformedRecordError,
    parse_date,
    parse_order_record,
    parse_order_records,
    parse_sales,
    serial_to_date,
)
from customer_segmentation.foundation.orders import OrderRecord


def _row(**overrides):
    row = {
        "ORDER_ID": "CA-2013-152156",
        "CUSTOMER_NAME": "Claire Gute",
        "ORDER_DATE": "2013-11-08",
        "SHIP_DATE": "2013-11-11",
        "SALES": "261.96",
    }
    row.update(overrides)
    return row


class TestSerialDates:
    """Test spreadsheet serial date conversion."""

    def test_known_serials(self):
        assert serial_to_date(41639) == date(2013, 12, 31)
        assert serial_to_date(41275) == date(2013, 1, 1)
        assert serial_to_date(1) == date(1899, 12, 31)

    def test_fractional_and_text_serials(self):
        assert serial_to_date(41639.75) == date(2013, 12, 31)
        assert serial_to_date("41639") == date(2013, 12, 31)

    def test_invalid_serial_raises_error(self):
        with pytest.raises(ValueError, match="Invalid serial date"):
            serial_to_date("yesterday")


class TestParseDate:
    """Test parse_date function."""

    def test_iso_string(self):
        assert parse_date("2013-06-01") == date(2013, 6, 1)

    def test_iso_timestamp_truncated(self):
        assert parse_date("2013-06-01T15:30:00Z") == date(2013, 6, 1)

    def test_date_and_datetime_objects(self):
        assert parse_date(date(2013, 6, 1)) == date(2013, 6, 1)
        assert parse_date(datetime(2013, 6, 1, 23, 59)) == date(2013, 6, 1)

    def test_serial_encoding(self):
        assert parse_date(41639, "serial") == date(2013, 12, 31)
        assert parse_date("41639", "serial") == date(2013, 12, 31)

    def test_serial_encoding_still_accepts_iso(self):
        assert parse_date("2013-12-31", "serial") == date(2013, 12, 31)

    def test_numbers_rejected_without_serial_encoding(self):
        with pytest.raises(ValueError, match="Unparseable date"):
            parse_date(41639)

    @pytest.mark.parametrize("value", ["", "31/12/2013x", None])
    def test_unparseable_values(self, value):
        with pytest.raises(ValueError, match="Unparseable date"):
            parse_date(value)


class TestParseSales:
    """Test parse_sales function."""

    def test_valid_amounts(self):
        assert parse_sales("261.96") == Decimal("261.96")
        assert parse_sales(10) == Decimal("10")
        assert parse_sales(0.1) == Decimal("0.1")

    @pytest.mark.parametrize("value", ["abc", "", None, True, float("nan"), "inf"])
    def test_invalid_amounts(self, value):
        with pytest.raises(ValueError, match="Unparseable sales amount"):
            parse_sales(value)


class TestParseOrderRecord:
    """Test parse_order_record function."""

    def test_valid_row(self):
        record = parse_order_record(_row())
        assert record == OrderRecord(
            order_id="CA-2013-152156",
            customer_name="Claire Gute",
            order_date=date(2013, 11, 8),
            ship_date=date(2013, 11, 11),
            sales=Decimal("261.96"),
        )

    def test_custom_columns_and_serial_dates(self):
        config = IngestionConfig(
            order_id_col="id",
            customer_name_col="customer",
            order_date_col="ordered",
            ship_date_col="shipped",
            sales_col="amount",
            date_encoding="serial",
        )
        row = {"id": 7, "customer": "B", "ordered": 41639, "shipped": 41640, "amount": 10}
        record = parse_order_record(row, config)

        assert record.order_id == "7"
        assert record.order_date == date(2013, 12, 31)
        assert record.ship_date == date(2014, 1, 1)
        assert record.sales == Decimal("10")

    def test_identifiers_are_stripped(self):
        record = parse_order_record(_row(CUSTOMER_NAME="  Claire Gute "))
        assert record.customer_name == "Claire Gute"

    @pytest.mark.parametrize("column", ["ORDER_ID", "CUSTOMER_NAME"])
    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_missing_identifier(self, column, value):
        with pytest.raises(MalformedRecordError, match=f"missing {column}"):
            parse_order_record(_row(**{column: value}))

    def test_missing_column(self):
        row = _row()
        del row["SHIP_DATE"]
        with pytest.raises(MalformedRecordError, match="missing SHIP_DATE"):
            parse_order_record(row)

    def test_bad_date(self):
        with pytest.raises(MalformedRecordError, match="ORDER_DATE: Unparseable date"):
            parse_order_record(_row(ORDER_DATE="not-a-date"))

    def test_bad_sales(self):
        with pytest.raises(MalformedRecordError, match="SALES: Unparseable sales"):
            parse_order_record(_row(SALES="n/a"))

    def test_error_carries_index(self):
        with pytest.raises(MalformedRecordError) as exc_info:
            parse_order_record(_row(SALES="n/a"), index=4)
        assert exc_info.value.index == 4
        assert str(exc_info.value).startswith("Record at index 4:")

    def test_malformed_record_is_value_error(self):
        assert issubclass(MalformedRecordError, ValueError)


class TestParseOrderRecords:
    """Test parse_order_records function."""

    def test_parses_all_rows(self):
        rows = [_row(), _row(ORDER_ID="CA-2013-138688", SALES="14.62")]
        records = parse_order_records(rows)
        assert [r.order_id for r in records] == ["CA-2013-152156", "CA-2013-138688"]

    def test_empty_input(self):
        assert parse_order_records([]) == []

    def test_fails_on_first_bad_row_with_index(self):
        rows = [_row(), _row(), _row(CUSTOMER_NAME=None)]
        with pytest.raises(MalformedRecordError) as exc_info:
            parse_order_records(rows)
        assert exc_info.value.index == 2


class TestIngestionConfig:
    """Test IngestionConfig model."""

    def test_defaults_match_export_headers(self):
        config = IngestionConfig()
        assert config.required_columns == [
            "ORDER_ID",
            "CUSTOMER_NAME",
            "ORDER_DATE",
            "SHIP_DATE",
            "SALES",
        ]
        assert config.date_encoding == "iso"

    def test_invalid_date_encoding_rejected(self):
        with pytest.raises(ValidationError):
            IngestionConfig(date_encoding="julian")
