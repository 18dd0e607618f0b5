"""Spreadsheet reading and column auto-mapping for bulk imports."""
import pytest

from app.markeng.exports import xlsx_bytes
from app.markeng.modules.data_management.importer import (
    CUSTOMER_FIELDS,
    INQUIRY_FIELDS,
    NO_VALID_RECORDS,
    PRICING_FIELDS,
    SpreadsheetError,
    apply_mapping,
    auto_map,
    normalize_header,
    parse_spreadsheet,
)


def test_normalize_header_drops_punctuation():
    assert normalize_header(" Customer-Name ") == "customername"
    assert normalize_header(None) == ""


def test_parse_csv_skips_blank_rows_and_blank_headers():
    data = b"Customer Name,City,\nAcme Tools,Pune,x\n,,\nBeta Works,,\n"
    columns, rows = parse_spreadsheet(data, "customers.csv")
    assert columns == ["Customer Name", "City"]
    assert rows == [
        {"Customer Name": "Acme Tools", "City": "Pune"},
        {"Customer Name": "Beta Works", "City": ""},
    ]


def test_parse_xlsx_first_sheet():
    data = xlsx_bytes(["Customer Name", "Rate"], [["Acme Tools", 12.5], ["Beta Works", None]])
    columns, rows = parse_spreadsheet(data, "pricing.xlsx")
    assert columns == ["Customer Name", "Rate"]
    assert rows[0]["Customer Name"] == "Acme Tools"
    assert rows[0]["Rate"] == 12.5
    assert rows[1]["Rate"] == ""


def test_parse_rejects_unknown_extension():
    with pytest.raises(SpreadsheetError):
        parse_spreadsheet(b"whatever", "notes.txt")


def test_parse_rejects_corrupt_xlsx():
    with pytest.raises(SpreadsheetError, match="valid .xlsx"):
        parse_spreadsheet(b"not a zip", "broken.xlsx")


def test_parse_rejects_empty_sheet():
    with pytest.raises(SpreadsheetError, match="empty"):
        parse_spreadsheet(b"Customer Name,City\n", "empty.csv")


def test_auto_map_matches_label_key_and_containment():
    mapping = auto_map(CUSTOMER_FIELDS, ["CUSTOMER NAME", "city", "Annual Turnover (INR)", "Notes"])
    assert mapping["name"] == "CUSTOMER NAME"
    assert mapping["city"] == "city"
    assert mapping["annual_turnover"] == "Annual Turnover (INR)"
    assert "country" not in mapping


def test_auto_map_first_column_wins_and_blanks_ignored():
    mapping = auto_map(PRICING_FIELDS, ["", "Rate", "Rate (old)"])
    assert mapping["rate"] == "Rate"
    assert "customer_name" not in mapping


def test_apply_mapping_trims_and_fills_unmapped():
    rows = [{"Lead": "  Acme Tools ", "ID": "INQ-1", "Town": "Pune"}]
    mapping = {"lead_name": "Lead", "inquiry_id": "ID", "city": "Town"}
    entries = apply_mapping(INQUIRY_FIELDS, mapping, rows)
    assert entries == [
        {
            "inquiry_id": "INQ-1",
            "lead_name": "Acme Tools",
            "date": "",
            "city": "Pune",
            "state": "",
            "pincode": "",
            "industry": "",
            "value": "",
            "status": "",
        }
    ]


def test_apply_mapping_drops_rows_missing_required():
    rows = [{"Lead": "Acme", "ID": ""}, {"Lead": "Beta", "ID": "INQ-2"}]
    entries = apply_mapping(INQUIRY_FIELDS, {"lead_name": "Lead", "inquiry_id": "ID"}, rows)
    assert [e["lead_name"] for e in entries] == ["Beta"]


def test_apply_mapping_raises_when_nothing_survives():
    with pytest.raises(SpreadsheetError) as exc:
        apply_mapping(CUSTOMER_FIELDS, {}, [{"Customer Name": "Acme"}])
    assert str(exc.value) == NO_VALID_RECORDS
