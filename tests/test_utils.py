"""
Unit tests for the shared helpers: money formatting, key casing, tolerant
parsing, technology normalization and Indian geography lookups.
"""
import time
from datetime import date, datetime, timezone

import pytest

from app.markeng import geo
from app.markeng.constants import TECH_CNC_VMC, TECH_FDM_PLA, TECH_MJF_PA12, TECH_SLS_PA2200, normalize_tech_category
from app.markeng.storage import build_storage_key
from app.markeng.utils import (
    format_crore,
    format_currency,
    group_indian,
    parse_bool,
    parse_date,
    parse_float,
    to_camel,
    to_snake,
)


class TestMoneyFormatting:
    def test_indian_grouping(self):
        assert group_indian(12345678) == "1,23,45,678"
        assert group_indian(999) == "999"
        assert group_indian(1000) == "1,000"
        assert group_indian(100000) == "1,00,000"

    def test_indian_grouping_keeps_fraction(self):
        assert group_indian(1234.5) == "1,234.5"

    def test_currency_small_values_grouped(self):
        assert format_currency(45000) == "₹ 45,000"

    def test_currency_lakhs_and_crores(self):
        assert format_currency(250000) == "₹ 2.50 L"
        assert format_currency(35_000_000) == "₹ 3.50 Cr"

    def test_currency_none_is_zero(self):
        assert format_currency(None) == "₹ 0"

    def test_crore_column(self):
        assert format_crore(125_000_000) == "12.50"


class TestParsing:
    def test_parse_float_strips_rupee_and_commas(self):
        assert parse_float("₹ 1,25,000") == 125000.0

    def test_parse_float_default_on_garbage(self):
        assert parse_float("abc", 0.0) == 0.0
        assert parse_float("", None) is None

    def test_parse_date_accepts_iso_prefix(self):
        assert parse_date("2025-03-01T10:00:00") == date(2025, 3, 1)
        assert parse_date("01/03/2025") is None

    @pytest.mark.parametrize("raw", ["1", "true", "on", "Yes"])
    def test_parse_bool_truthy(self, raw):
        assert parse_bool(raw) is True

    def test_parse_bool_blank_false(self):
        assert parse_bool(None) is False
        assert parse_bool("") is False


class TestStorageKeys:
    def test_key_uses_epoch_millis_and_safe_name(self):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert build_storage_key("/expos/", "a b.pdf", now=now) == "expos/1767225600000-a_b.pdf"

    def test_default_timestamp_is_current_utc(self, monkeypatch):
        monkeypatch.setenv("TZ", "Asia/Kolkata")
        time.tzset()
        try:
            key = build_storage_key("visits", "photo.jpg")
        finally:
            monkeypatch.undo()
            time.tzset()
        millis = int(key.split("/", 1)[1].split("-", 1)[0])
        assert abs(millis - time.time() * 1000) < 60_000


class TestKeyCasing:
    def test_to_camel(self):
        assert to_camel("annual_turnover") == "annualTurnover"
        assert to_camel("name") == "name"

    def test_to_snake(self):
        assert to_snake("annualTurnover") == "annual_turnover"
        assert to_snake("pricingHistory") == "pricing_history"


class TestTechNormalization:
    def test_exact_match_case_insensitive(self):
        assert normalize_tech_category("cnc / vmc machining") == TECH_CNC_VMC

    def test_keyword_rules(self):
        assert normalize_tech_category("SLS PA2200 white") == TECH_SLS_PA2200
        assert normalize_tech_category("mjf black") == TECH_MJF_PA12
        assert normalize_tech_category("VMC job") == TECH_CNC_VMC

    def test_fallback_is_pla(self):
        assert normalize_tech_category("something else") == TECH_FDM_PLA
        assert normalize_tech_category(None) == TECH_FDM_PLA


class TestGeo:
    def test_pincode_overrides_city_and_state(self):
        assert geo.resolve_location(pincode="560001", city="Pune", state="Maharashtra") == ("Bengaluru", "Karnataka")

    def test_state_inferred_from_city(self):
        assert geo.resolve_location(pincode=None, city="pune", state=None) == ("pune", "Maharashtra")

    def test_unknown_city_leaves_state_empty(self):
        assert geo.resolve_location(pincode="", city="Atlantis", state="") == ("Atlantis", None)

    def test_zone_resolution_order(self):
        assert geo.resolve_zone("Central", "Karnataka", None) == "Central"
        assert geo.resolve_zone(None, "Karnataka", None) == "South"
        assert geo.resolve_zone(None, None, "Mumbai") == "West"
        assert geo.resolve_zone(None, None, "Atlantis") == "Other"

    def test_cities_for_state_sorted(self):
        cities = geo.cities_for_state("Karnataka")
        assert cities == sorted(cities)
        assert "Mysuru" in cities
        assert geo.cities_for_state("Nowhere") == []

    def test_marker_position_near_centroid(self):
        lat, lng = geo.marker_position("Delhi", 3)
        assert abs(lat - 28.6139) <= geo.MARKER_JITTER
        assert abs(lng - 77.2090) <= geo.MARKER_JITTER
        assert geo.marker_position("Nowhere", 0) is None
