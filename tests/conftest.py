"""
Shared fixtures for the exchange engine tests.
"""

import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def reference_now():
    """Fixed reference instant for deterministic tests."""
    return datetime(2025, 6, 1, 12, 0, 0)


@pytest.fixture
def make_custom_field():
    """
    Factory for third-party custom-field entries.

    Mirrors the importer's shape: every representation is present and
    value_boolean defaults to False even on non-checkbox fields.
    """
    def _create(label: str, value_type: str = "TextBox", **values) -> dict:
        entry = {
            "custom_field_ref": {"label": label, "value_type": value_type},
            "value_boolean": False,
            "value_date_time": None,
            "value_number": None,
            "value_string": None,
        }
        entry.update(values)
        return entry
    return _create


@pytest.fixture
def sample_record(make_custom_field):
    """An exchange mid-lifecycle with data spread across all three sources."""
    cf = make_custom_field
    return {
        "id": "EX-7869",
        "status": "PENDING",
        "progress": 40,
        "client": {"firstName": "Hector", "lastName": "Kicelian", "email": "hector@example.com"},
        "coordinator": {"firstName": "Mark", "lastName": "Thompson", "email": "mark@peak1031.com"},
        "day_45": "2025-06-09T00:00:00",
        "pp_data": {
            "custom_field_values": [
                cf("Day 180", "Date", value_date_time="2025-11-22T00:00:00"),
                cf("Close of Escrow Date", "Date", value_date_time="2025-04-25T00:00:00"),
                cf("Proceeds Received", "Date", value_date_time="2025-04-28T00:00:00"),
                cf("Client Vesting", value_string="Hector Kicelian as Trustee of the Hector Kicelian Revocable Trust"),
                cf("Client 1 Signatory Title", value_string="Trustee"),
                cf("Assigned To", value_string="Mark Thompson"),
                cf("Assigned To Email", value_string="mark@peak1031.com"),
                cf("Referral Source", value_string="Tom Gans"),
                cf("Referral Source Email", value_string="tom@gansrealty.com"),
                cf("Rel Escrow Agent", "Contact", contact_ref={"display_name": "Fidelity National Title"}),
                cf("Rel Escrow Number", value_string="CO-2025-30332"),
                cf("Rep 1 Escrow Agent", value_string="First American Title"),
                cf("Rep 1 Escrow Number", "Number", value_number=88123),
                cf("Buyer 1 Name", value_string="Louise Claire Pallan"),
                cf("Buyer 2 Name", value_string="Louise Claire Pallan"),
                cf("Rep 1 Seller 1 Name", value_string="Dana Whitfield"),
                cf("Rep 1 Seller 2 Name", value_string="Chris Whitfield"),
                cf("Bank", "DropDownList", value_string="Israel Discount Bank"),
                cf("Bank Referral?", "Checkbox", value_boolean=True),
                cf("Internal Credit To", value_string="Sarah Lin"),
            ]
        },
    }
