"""
Tests for the Field Resolver

Verifies:
- Canonical field beats alias beats custom field
- Aliases are tried in declared order
- Custom-field payload located under any known nesting key
- Typed value extraction from custom-field entries
- Empty and malformed values degrade to absent, never raise
"""

import pytest
from datetime import date, datetime
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.exchange import SourceKind, compute_deadlines, known_labels, resolve, resolve_many
from core.exchange.coercion import as_number, as_text, is_truthy, parse_date
from core.exchange.resolver import (
    CLOSE_OF_ESCROW,
    DAY_45,
    DAY_180,
    FAILED_EXCHANGE,
    PROCEEDS_RECEIVED,
    REL_CONTRACT_DATE,
    REP_DOCS_DRAFTED,
    REP_ESCROW_NUMBER,
    STATUS,
    candidates_for,
    coerce_entry,
    entry_label,
    locate_custom_fields,
)


# =============================================================================
# Precedence
# =============================================================================


class TestPrecedence:
    """First match wins: canonical, alias, custom field, absent."""

    def test_canonical_beats_alias_and_custom(self, make_custom_field):
        record = {
            "day45": "2025-03-01",
            "day_45": "2025-03-02",
            "pp_data": {
                "custom_field_values": [
                    make_custom_field("Day 45", "Date", value_date_time="2025-03-03T00:00:00"),
                ]
            },
        }

        result = resolve(record, DAY_45)

        assert result.value == datetime(2025, 3, 1)
        assert result.source_kind == SourceKind.CANONICAL
        assert result.source_path == "day45"

    def test_alias_used_when_canonical_missing(self):
        record = {"day_45": "2025-03-02"}

        result = resolve(record, DAY_45)

        assert result.value == datetime(2025, 3, 2)
        assert result.source_kind == SourceKind.ALIAS
        assert result.source_path == "day_45"

    def test_aliases_tried_in_order(self):
        record = {
            "ppData": {"day_45": "2025-03-05"},
            "identificationDeadline": "2025-03-06",
        }

        result = resolve(record, DAY_45)

        assert result.value == datetime(2025, 3, 5)
        assert result.source_path == "ppData.day_45"

    def test_custom_field_used_last(self, make_custom_field):
        record = {
            "pp_data": {
                "custom_field_values": [
                    make_custom_field("Day 45", "Date", value_date_time="2025-03-03T00:00:00"),
                ]
            }
        }

        result = resolve(record, DAY_45)

        assert result.value == datetime(2025, 3, 3)
        assert result.source_kind == SourceKind.CUSTOM_FIELD
        assert result.source_path == "pp_data.custom_field_values[Day 45]"

    def test_absent_when_nothing_found(self):
        result = resolve({}, DAY_45)

        assert result.value is None
        assert result.source_kind == SourceKind.ABSENT
        assert result.source_path is None
        assert not result.is_resolved

    def test_empty_canonical_falls_through(self):
        """Empty strings and whitespace are treated as absent."""
        record = {"day45": "   ", "day_45": "2025-03-02"}

        result = resolve(record, DAY_45)

        assert result.source_kind == SourceKind.ALIAS

    def test_false_canonical_boolean_is_a_value(self):
        """False is a real answer, unlike an empty string."""
        record = {"failedExchange": False, "failed_exchange": True}

        result = resolve(record, FAILED_EXCHANGE)

        assert result.value is False
        assert result.source_kind == SourceKind.CANONICAL

    def test_non_scalar_values_ignored(self):
        record = {"day45": {"nested": "value"}, "day_45": ["2025-01-01"], "day_180": "2025-09-01"}

        assert resolve(record, DAY_45).source_kind == SourceKind.ABSENT
        assert resolve(record, DAY_180).value == datetime(2025, 9, 1)

    def test_attribute_objects_supported(self):
        class Snapshot:
            day45 = "2025-04-01"

        result = resolve(Snapshot(), DAY_45)

        assert result.value == datetime(2025, 4, 1)
        assert result.source_kind == SourceKind.CANONICAL

    def test_date_label_returns_parsed_datetime(self):
        result = resolve({"closeOfEscrowDate": "04/25/2025"}, CLOSE_OF_ESCROW)

        assert result.value == datetime(2025, 4, 25)

    def test_record_not_mutated(self, sample_record):
        import copy
        before = copy.deepcopy(sample_record)

        resolve_many(sample_record, known_labels())

        assert sample_record == before


# =============================================================================
# Malformed Dates
# =============================================================================


class TestMalformedDates:
    """An unparseable date is skipped exactly like an empty one."""

    def test_malformed_canonical_falls_through_to_alias(self):
        record = {"day45": "TBD", "day_45": "2025-05-31"}

        result = resolve(record, DAY_45)

        assert result.value == datetime(2025, 5, 31)
        assert result.source_kind == SourceKind.ALIAS
        assert result.source_path == "day_45"

    def test_false_canonical_falls_through_to_alias(self):
        result = resolve({"day45": False, "day_45": "2025-05-31"}, DAY_45)

        assert result.value == datetime(2025, 5, 31)

    def test_malformed_alias_falls_through_to_custom_field(self, make_custom_field):
        record = {
            "day_180": "not yet",
            "custom_field_values": [
                make_custom_field("Day 180", "Date", value_date_time="2025-11-22T00:00:00"),
            ],
        }

        result = resolve(record, DAY_180)

        assert result.value == datetime(2025, 11, 22)
        assert result.source_kind == SourceKind.CUSTOM_FIELD

    def test_bad_entry_date_skipped_for_later_entry(self, make_custom_field):
        record = {
            "custom_field_values": [
                make_custom_field("Proceeds Received", "Date", value_date_time="garbage", value_string="TBD"),
                make_custom_field("Proceeds Received", "Date", value_date_time="2025-04-28T00:00:00"),
            ]
        }

        assert resolve(record, PROCEEDS_RECEIVED).value == datetime(2025, 4, 28)

    def test_date_in_string_representation(self, make_custom_field):
        record = {"custom_field_values": [make_custom_field("Rel Contract Date", value_string="03/15/2025")]}

        assert resolve(record, REL_CONTRACT_DATE).value == datetime(2025, 3, 15)

    def test_only_malformed_values_is_absent(self, make_custom_field):
        record = {
            "repDocsDrafted": "pending",
            "custom_field_values": [make_custom_field("Rep Docs Drafted", value_string="soon")],
        }

        assert resolve(record, REP_DOCS_DRAFTED).source_kind == SourceKind.ABSENT

    def test_non_date_labels_unaffected(self):
        assert resolve({"status": "TBD"}, STATUS).value == "TBD"

    def test_compute_deadlines_sees_valid_alias(self):
        deadlines = compute_deadlines({"day45": "TBD", "day_45": "2025-05-31"})

        assert deadlines.day45 == datetime(2025, 5, 31)


# =============================================================================
# Custom-Field Payload
# =============================================================================


class TestCustomFieldPayload:
    """Payload nesting and entry layout variations."""

    @pytest.mark.parametrize("path", [
        ("pp_data", "custom_field_values"),
        ("ppData", "custom_field_values"),
        ("metadata", "pp_data", "custom_field_values"),
        ("metadata", "custom_field_values"),
        ("custom_field_values",),
        ("customFieldValues",),
    ])
    def test_payload_found_at_every_location(self, path, make_custom_field):
        entries = [make_custom_field("Day 180", "Date", value_date_time="2025-10-01T00:00:00")]
        record = entries
        for key in reversed(path):
            record = {key: record}

        result = resolve(record, DAY_180)

        assert result.value == datetime(2025, 10, 1)
        assert result.source_path == f"{'.'.join(path)}[Day 180]"

    def test_first_non_empty_payload_wins(self, make_custom_field):
        record = {
            "pp_data": {"custom_field_values": []},
            "ppData": {
                "custom_field_values": [
                    make_custom_field("Day 180", "Date", value_date_time="2025-10-01T00:00:00"),
                ]
            },
            "custom_field_values": [
                make_custom_field("Day 180", "Date", value_date_time="2025-12-01T00:00:00"),
            ],
        }

        location, entries = locate_custom_fields(record)

        assert location == "ppData.custom_field_values"
        assert resolve(record, DAY_180).value == datetime(2025, 10, 1)

    def test_no_payload(self):
        assert locate_custom_fields({"pp_data": {}}) is None
        assert locate_custom_fields({"pp_data": "not a dict"}) is None

    def test_label_variants(self):
        assert entry_label({"custom_field_ref": {"label": "Bank"}}) == "Bank"
        assert entry_label({"customFieldRef": {"label": "Bank"}}) == "Bank"
        assert entry_label({"label": "Bank"}) == "Bank"
        assert entry_label({"field_label": "Bank"}) == "Bank"
        assert entry_label({"value_string": "x"}) is None

    def test_camel_case_entry(self):
        record = {
            "customFieldValues": [
                {"customFieldRef": {"label": "Referral Source"}, "valueString": "Tom Gans"},
            ]
        }

        assert resolve(record, "Referral Source").value == "Tom Gans"

    def test_alternate_custom_label(self):
        record = {"custom_field_values": [{"label": "Failed Exchange", "value_boolean": True}]}

        result = resolve(record, FAILED_EXCHANGE)

        assert result.value is True
        assert result.source_path == "custom_field_values[Failed Exchange]"

    def test_unknown_label_searches_custom_fields_only(self, make_custom_field):
        record = {
            "Legacy Matter Code": "ignored",
            "pp_data": {
                "custom_field_values": [
                    make_custom_field("Legacy Matter Code", value_string="LM-42"),
                ]
            },
        }

        assert candidates_for("Legacy Matter Code").direct is None
        assert resolve(record, "Legacy Matter Code").value == "LM-42"

    def test_empty_entry_skipped_for_later_duplicate(self, make_custom_field):
        record = {
            "custom_field_values": [
                make_custom_field("Bank", value_string=""),
                make_custom_field("Bank", value_string="Israel Discount Bank"),
            ]
        }

        assert resolve(record, "Bank").value == "Israel Discount Bank"

    def test_malformed_entries_ignored(self, make_custom_field):
        record = {
            "custom_field_values": [
                None,
                "garbage",
                {"custom_field_ref": None},
                make_custom_field("Bank", value_string="First Republic"),
            ]
        }

        assert resolve(record, "Bank").value == "First Republic"


# =============================================================================
# Entry Coercion
# =============================================================================


class TestCoerceEntry:
    """Typed value extraction from one custom-field entry."""

    def test_date_beats_string(self, make_custom_field):
        entry = make_custom_field("X", value_date_time="2025-01-15T00:00:00Z", value_string="ignored")

        assert coerce_entry(entry) == datetime(2025, 1, 15)

    def test_unparseable_date_falls_through(self, make_custom_field):
        entry = make_custom_field("X", value_date_time="not-a-date", value_string="text")

        assert coerce_entry(entry) == "text"

    def test_number(self, make_custom_field):
        entry = make_custom_field("X", "Number", value_number=88123)

        assert coerce_entry(entry) == 88123

    def test_true_boolean(self, make_custom_field):
        assert coerce_entry(make_custom_field("X", "Checkbox", value_boolean=True)) is True

    def test_false_boolean_when_nothing_else(self, make_custom_field):
        assert coerce_entry(make_custom_field("X", "Checkbox")) is False

    def test_default_false_does_not_hide_reference(self, make_custom_field):
        entry = make_custom_field("X", "Contact", contact_ref={"display_name": "Fidelity National Title"})

        assert coerce_entry(entry) == "Fidelity National Title"

    def test_generic_value_key(self):
        assert coerce_entry({"label": "X", "value": "Yes"}) == "Yes"

    def test_not_a_mapping(self):
        assert coerce_entry("X") is None
        assert coerce_entry(None) is None


# =============================================================================
# Coercion Helpers
# =============================================================================


class TestCoercion:
    """Shared interpretation of raw values."""

    @pytest.mark.parametrize("value, expected", [
        (True, True),
        ("Yes", True),
        ("yes", True),
        ("true", True),
        (" TRUE ", True),
        (False, False),
        ("No", False),
        ("1", False),
        (1, False),
        (None, False),
    ])
    def test_is_truthy(self, value, expected):
        assert is_truthy(value) is expected

    @pytest.mark.parametrize("value, expected", [
        ("2025-06-09", datetime(2025, 6, 9)),
        ("2025-06-09T00:00:00Z", datetime(2025, 6, 9)),
        ("2025-06-09T05:00:00-05:00", datetime(2025, 6, 9, 10, 0)),
        ("06/09/2025", datetime(2025, 6, 9)),
        (date(2025, 6, 9), datetime(2025, 6, 9)),
        (datetime(2025, 6, 9, 8, 30), datetime(2025, 6, 9, 8, 30)),
    ])
    def test_parse_date(self, value, expected):
        assert parse_date(value) == expected

    @pytest.mark.parametrize("value", ["", "soon", "2025-13-45", True, 45, None, [], "99999-01-01"])
    def test_parse_date_rejects(self, value):
        assert parse_date(value) is None

    def test_as_text(self):
        assert as_text("  Tom  ") == "Tom"
        assert as_text(88123) == "88123"
        assert as_text(88123.0) == "88123"
        assert as_text("") is None
        assert as_text(True) is None
        assert as_text(float("nan")) is None

    def test_as_number(self):
        assert as_number("45%") == 45.0
        assert as_number(" 60 ") == 60.0
        assert as_number(True) is None
        assert as_number("abc") is None
        assert as_number(float("inf")) is None


# =============================================================================
# Batch Resolution
# =============================================================================


class TestResolveMany:

    def test_keyed_in_order(self, sample_record):
        result = resolve_many(sample_record, [DAY_180, DAY_45, STATUS])

        assert list(result) == [DAY_180, DAY_45, STATUS]
        assert result[DAY_45].source_kind == SourceKind.ALIAS
        assert result[DAY_180].source_kind == SourceKind.CUSTOM_FIELD
        assert result[STATUS].value == "PENDING"

    def test_numeric_escrow_number(self, sample_record):
        assert resolve(sample_record, REP_ESCROW_NUMBER).value == 88123

    def test_known_labels_cover_lifecycle_fields(self):
        labels = known_labels()

        assert labels[0] == FAILED_EXCHANGE
        assert DAY_45 in labels
        assert "Internal Credit To" in labels
