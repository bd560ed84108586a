"""
Field Resolver - Single Source of Truth for Field Precedence

The same business fact reaches an exchange record from three generations of
integration code:

1. Canonical camelCase fields (e.g. ``day45``)
2. Legacy / alias fields kept for backward compatibility (e.g. ``day_45``,
   ``ppData.day_45``, ``identificationDeadline``)
3. A third-party custom-field payload whose nesting key varies by import
   pipeline (e.g. ``pp_data.custom_field_values``)

Every consumer asks for a canonical label and gets one value back, found by
walking the declared candidates in a fixed order. First match wins.

Principles:
- Precedence is declared once, in FIELD_CANDIDATES and PAYLOAD_LOCATIONS
- Resolution is a pure function of the record (no caching, no mutation)
- Missing or malformed data degrades to "absent", never to an exception
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Final, Iterable, Optional

from core.exchange.coercion import as_text, is_blank, is_scalar, parse_date
from core.exchange.models import ResolvedField, SourceKind


logger = logging.getLogger(__name__)


# =============================================================================
# Canonical Labels
# =============================================================================

FAILED_EXCHANGE: Final[str] = "Failed Exchange?"
DAY_45: Final[str] = "Day 45"
DAY_180: Final[str] = "Day 180"
PROCEEDS_RECEIVED: Final[str] = "Proceeds Received"
CLOSE_OF_ESCROW: Final[str] = "Close of Escrow Date"
IDENTIFIED: Final[str] = "Identified?"
REP_DOCS_DRAFTED: Final[str] = "Rep Docs Drafted"
REL_CONTRACT_DATE: Final[str] = "Rel Contract Date"
EXCHANGE_AGREEMENT_DRAFTED: Final[str] = "Exchange Agreement Drafted"
STATUS: Final[str] = "Status"
PROGRESS: Final[str] = "Progress"

CLIENT_VESTING: Final[str] = "Client Vesting"
CLIENT_SIGNATORY_TITLE: Final[str] = "Client 1 Signatory Title"
ASSIGNED_TO: Final[str] = "Assigned To"
ASSIGNED_TO_EMAIL: Final[str] = "Assigned To Email"
REFERRAL_SOURCE: Final[str] = "Referral Source"
REFERRAL_SOURCE_EMAIL: Final[str] = "Referral Source Email"
REL_ESCROW_AGENT: Final[str] = "Rel Escrow Agent"
REL_ESCROW_NUMBER: Final[str] = "Rel Escrow Number"
REP_ESCROW_AGENT: Final[str] = "Rep 1 Escrow Agent"
REP_ESCROW_NUMBER: Final[str] = "Rep 1 Escrow Number"
BUYER_1: Final[str] = "Buyer 1 Name"
BUYER_2: Final[str] = "Buyer 2 Name"
SELLER_1: Final[str] = "Rep 1 Seller 1 Name"
SELLER_2: Final[str] = "Rep 1 Seller 2 Name"
BANK: Final[str] = "Bank"
BANK_REFERRAL: Final[str] = "Bank Referral?"
INTERNAL_CREDIT_TO: Final[str] = "Internal Credit To"


# =============================================================================
# Candidate Table
# =============================================================================

# Value kinds: a DATE_KIND candidate only matches when it parses as a date
VALUE_KIND: Final[str] = "value"
DATE_KIND: Final[str] = "date"


@dataclass(frozen=True)
class FieldCandidates:
    """
    Ordered candidate locations for one canonical label.

    direct: canonical field name on the record
    aliases: legacy field paths, dotted for nested blocks, tried in order
    custom_labels: third-party custom-field labels, tried in order
    kind: VALUE_KIND for any scalar, DATE_KIND for date-bearing fields
    """

    direct: Optional[str] = None
    aliases: tuple[str, ...] = ()
    custom_labels: tuple[str, ...] = ()
    kind: str = VALUE_KIND


FIELD_CANDIDATES: Final[dict[str, FieldCandidates]] = {
    # Lifecycle flags and dates
    FAILED_EXCHANGE: FieldCandidates(
        direct="failedExchange",
        aliases=("failed_exchange", "ppData.failed_exchange"),
        custom_labels=("Failed Exchange?", "Failed Exchange"),
    ),
    DAY_45: FieldCandidates(
        direct="day45",
        aliases=("day_45", "ppData.day_45", "identificationDeadline", "identification_deadline"),
        custom_labels=("Day 45",),
        kind=DATE_KIND,
    ),
    DAY_180: FieldCandidates(
        direct="day180",
        aliases=("day_180", "ppData.day_180", "completionDeadline", "completion_deadline"),
        custom_labels=("Day 180",),
        kind=DATE_KIND,
    ),
    PROCEEDS_RECEIVED: FieldCandidates(
        direct="proceedsReceivedDate",
        aliases=("proceeds_received_date", "proceeds_received", "ppData.proceeds_received_date"),
        custom_labels=("Proceeds Received", "Proceeds Received Date"),
        kind=DATE_KIND,
    ),
    CLOSE_OF_ESCROW: FieldCandidates(
        direct="closeOfEscrowDate",
        aliases=(
            "close_of_escrow_date",
            "ppData.close_of_escrow_date",
            "relinquishedClosingDate",
            "relinquished_closing_date",
        ),
        custom_labels=("Close of Escrow Date", "Close of Escrow"),
        kind=DATE_KIND,
    ),
    IDENTIFIED: FieldCandidates(
        direct="identified",
        aliases=("propertiesIdentified", "properties_identified", "ppData.identified"),
        custom_labels=("Identified?", "Identified"),
    ),
    REP_DOCS_DRAFTED: FieldCandidates(
        direct="repDocsDrafted",
        aliases=("rep_docs_drafted", "ppData.rep_docs_drafted"),
        custom_labels=("Rep Docs Drafted",),
        kind=DATE_KIND,
    ),
    REL_CONTRACT_DATE: FieldCandidates(
        direct="relContractDate",
        aliases=("rel_contract_date", "ppData.rel_contract_date"),
        custom_labels=("Rel Contract Date",),
        kind=DATE_KIND,
    ),
    EXCHANGE_AGREEMENT_DRAFTED: FieldCandidates(
        direct="exchangeAgreementDrafted",
        aliases=("exchange_agreement_drafted", "ppData.exchange_agreement_drafted"),
        custom_labels=("Exchange Agreement Drafted", "Exchange Agreement Drafted?"),
    ),
    STATUS: FieldCandidates(
        direct="status",
        aliases=("exchange_status", "new_status"),
    ),
    PROGRESS: FieldCandidates(
        direct="progress",
        aliases=("progress_percentage", "ppData.progress"),
        custom_labels=("Progress",),
    ),
    # Participants
    CLIENT_VESTING: FieldCandidates(
        direct="clientVesting",
        aliases=("client_vesting", "ppData.client_vesting"),
        custom_labels=("Client Vesting",),
    ),
    CLIENT_SIGNATORY_TITLE: FieldCandidates(
        direct="clientSignatoryTitle",
        aliases=("client_1_signatory_title", "client_signatory_title"),
        custom_labels=("Client 1 Signatory Title", "Client Signatory Title"),
    ),
    ASSIGNED_TO: FieldCandidates(
        direct="assignedTo",
        aliases=("assigned_to", "pp_responsible_attorney", "ppData.pp_responsible_attorney"),
        custom_labels=("Assigned To",),
    ),
    ASSIGNED_TO_EMAIL: FieldCandidates(
        direct="assignedToEmail",
        aliases=("assigned_to_email",),
        custom_labels=("Assigned To Email",),
    ),
    REFERRAL_SOURCE: FieldCandidates(
        direct="referralSource",
        aliases=("referral_source", "ppData.referral_source"),
        custom_labels=("Referral Source",),
    ),
    REFERRAL_SOURCE_EMAIL: FieldCandidates(
        direct="referralSourceEmail",
        aliases=("referral_source_email",),
        custom_labels=("Referral Source Email",),
    ),
    REL_ESCROW_AGENT: FieldCandidates(
        direct="relEscrowAgent",
        aliases=("rel_escrow_agent", "rel_escrow_officer"),
        custom_labels=("Rel Escrow Agent", "Rel Escrow Officer"),
    ),
    REL_ESCROW_NUMBER: FieldCandidates(
        direct="relEscrowNumber",
        aliases=("rel_escrow_number", "ppData.rel_escrow_number"),
        custom_labels=("Rel Escrow Number",),
    ),
    REP_ESCROW_AGENT: FieldCandidates(
        direct="rep1EscrowAgent",
        aliases=("rep_1_escrow_agent", "rep_1_escrow_officer"),
        custom_labels=("Rep 1 Escrow Agent", "Rep 1 Escrow Officer"),
    ),
    REP_ESCROW_NUMBER: FieldCandidates(
        direct="rep1EscrowNumber",
        aliases=("rep_1_escrow_number", "ppData.rep_1_escrow_number"),
        custom_labels=("Rep 1 Escrow Number",),
    ),
    BUYER_1: FieldCandidates(
        direct="buyer1Name",
        aliases=("buyer_1_name", "ppData.buyer_1_name"),
        custom_labels=("Buyer 1 Name", "Buyer Vesting"),
    ),
    BUYER_2: FieldCandidates(
        direct="buyer2Name",
        aliases=("buyer_2_name", "ppData.buyer_2_name"),
        custom_labels=("Buyer 2 Name",),
    ),
    SELLER_1: FieldCandidates(
        direct="seller1Name",
        aliases=("rep_1_seller_1_name", "rep_1_seller_name", "ppData.rep_1_seller_name"),
        custom_labels=("Rep 1 Seller 1 Name",),
    ),
    SELLER_2: FieldCandidates(
        direct="seller2Name",
        aliases=("rep_1_seller_2_name",),
        custom_labels=("Rep 1 Seller 2 Name",),
    ),
    BANK: FieldCandidates(
        direct="bank",
        aliases=("banking_institution", "ppData.bank"),
        custom_labels=("Bank", "Banking Institution"),
    ),
    BANK_REFERRAL: FieldCandidates(
        direct="bankReferral",
        aliases=("bank_referral",),
        custom_labels=("Bank Referral?", "Bank Referral"),
    ),
    INTERNAL_CREDIT_TO: FieldCandidates(
        direct="internalCreditTo",
        aliases=("internal_credit_to",),
        custom_labels=("Internal Credit To",),
    ),
}


# =============================================================================
# Custom-Field Payload Layout
# =============================================================================

# Where each import pipeline puts the custom-field list, tried in order.
# At most one is populated per record; the first non-empty list is used.
PAYLOAD_LOCATIONS: Final[tuple[tuple[str, ...], ...]] = (
    ("pp_data", "custom_field_values"),
    ("ppData", "custom_field_values"),
    ("metadata", "pp_data", "custom_field_values"),
    ("metadata", "custom_field_values"),
    ("custom_field_values",),
    ("customFieldValues",),
)

# Where an entry keeps its label, tried in order
ENTRY_LABEL_PATHS: Final[tuple[tuple[str, ...], ...]] = (
    ("custom_field_ref", "label"),
    ("customFieldRef", "label"),
    ("label",),
    ("field_label",),
)

# Value representations on an entry, snake_case then camelCase
DATE_VALUE_KEYS: Final[tuple[str, ...]] = ("value_date_time", "valueDateTime")
STRING_VALUE_KEYS: Final[tuple[str, ...]] = ("value_string", "valueString")
NUMBER_VALUE_KEYS: Final[tuple[str, ...]] = ("value_number", "valueNumber")
BOOLEAN_VALUE_KEYS: Final[tuple[str, ...]] = ("value_boolean", "valueBoolean")
GENERIC_VALUE_KEYS: Final[tuple[str, ...]] = ("value",)
REFERENCE_NAME_PATHS: Final[tuple[tuple[str, ...], ...]] = (
    ("contact_ref", "display_name"),
    ("contactRef", "displayName"),
)


# =============================================================================
# Path Walking
# =============================================================================


def _step(container: Any, key: str) -> Any:
    """Read one key from a mapping or attribute-bearing object."""
    if container is None or isinstance(container, (str, bytes, list, tuple)):
        return None
    if isinstance(container, Mapping):
        return container.get(key)
    return getattr(container, key, None)


def _walk(container: Any, path: Iterable[str]) -> Any:
    current = container
    for key in path:
        current = _step(current, key)
        if current is None:
            return None
    return current


def _usable(value: Any, path: str, kind: str = VALUE_KIND) -> Any:
    """
    Return value if it is non-empty and of a resolvable type, else None.

    For DATE_KIND the value must also parse as a date and the parsed
    datetime is returned, so a malformed date never shadows a valid one
    further down the candidate chain.
    """
    if is_blank(value):
        return None
    if not is_scalar(value):
        logger.debug("Ignoring %s value at %s", type(value).__name__, path)
        return None
    if kind == DATE_KIND:
        return parse_date(value)
    return value


# =============================================================================
# Custom-Field Payload
# =============================================================================


def locate_custom_fields(record: Any) -> Optional[tuple[str, list]]:
    """
    Find the custom-field payload on a record.

    Returns:
        (dotted location, entry list) for the first non-empty payload,
        or None if no location holds one
    """
    for location in PAYLOAD_LOCATIONS:
        payload = _walk(record, location)
        if isinstance(payload, (list, tuple)) and payload:
            return ".".join(location), list(payload)
    return None


def entry_label(entry: Any) -> Optional[str]:
    """Read the label of a custom-field entry, whichever key it uses."""
    for path in ENTRY_LABEL_PATHS:
        label = _walk(entry, path)
        if isinstance(label, str) and label:
            return label
    return None


def coerce_entry(entry: Any) -> Any:
    """
    Extract the typed value of a custom-field entry.

    Representations are tried in order: date/time, string, number, boolean,
    generic "value", linked reference display name. One deliberate exception
    to that order: the importer writes value_boolean=false on every
    non-checkbox field, so a False boolean is held back and only returned
    when nothing after it carries content. Otherwise a contact-reference or
    generic-value entry would always resolve to False.
    """
    if not isinstance(entry, Mapping):
        return None

    for key in DATE_VALUE_KEYS:
        parsed = parse_date(entry.get(key))
        if parsed is not None:
            return parsed

    for key in STRING_VALUE_KEYS:
        value = entry.get(key)
        if isinstance(value, str) and value.strip():
            return value

    for key in NUMBER_VALUE_KEYS:
        value = entry.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value

    false_flag: Optional[bool] = None
    for key in BOOLEAN_VALUE_KEYS:
        value = entry.get(key)
        if value is True:
            return True
        if value is False:
            false_flag = False

    for key in GENERIC_VALUE_KEYS:
        value = _usable(entry.get(key), key)
        if value is not None:
            return value

    for path in REFERENCE_NAME_PATHS:
        name = as_text(_walk(entry, path))
        if name is not None:
            return name

    return false_flag


def entry_date(entry: Any) -> Optional[datetime]:
    """
    First representation of a custom-field entry that parses as a date.

    Tried in order: date/time, string, generic "value".
    """
    if not isinstance(entry, Mapping):
        return None
    for key in DATE_VALUE_KEYS + STRING_VALUE_KEYS + GENERIC_VALUE_KEYS:
        parsed = parse_date(entry.get(key))
        if parsed is not None:
            return parsed
    return None


def _find_custom_value(entries: list, label: str, kind: str = VALUE_KIND) -> Any:
    for entry in entries:
        if entry_label(entry) != label:
            continue
        value = entry_date(entry) if kind == DATE_KIND else coerce_entry(entry)
        if value is not None:
            return value
    return None


# =============================================================================
# Public API
# =============================================================================


def candidates_for(label: str) -> FieldCandidates:
    """
    Candidate locations for a label.

    Labels outside the table are looked up in the custom-field payload only.
    """
    candidates = FIELD_CANDIDATES.get(label)
    if candidates is None:
        logger.debug("Label %r not in candidate table, searching custom fields only", label)
        return FieldCandidates(custom_labels=(label,))
    return candidates


def resolve(record: Any, label: str) -> ResolvedField:
    """
    Resolve the single best value for a canonical label.

    Precedence (first match wins):
    1. Direct canonical field
    2. Alias fields, in declared order
    3. Custom-field payload, custom labels in declared order
    4. Absent

    Date-bearing labels only accept candidates that parse as a date and
    resolve to the parsed datetime; an unparseable candidate is skipped
    exactly like an empty one.

    Args:
        record: Exchange record snapshot (mapping or attribute object)
        label: Canonical label, e.g. "Day 45"

    Returns:
        ResolvedField; value is None when source_kind is ABSENT
    """
    candidates = candidates_for(label)

    if candidates.direct:
        raw = _walk(record, candidates.direct.split("."))
        value = _usable(raw, candidates.direct, candidates.kind)
        if value is not None:
            return ResolvedField(label, value, SourceKind.CANONICAL, candidates.direct)

    for alias in candidates.aliases:
        value = _usable(_walk(record, alias.split(".")), alias, candidates.kind)
        if value is not None:
            return ResolvedField(label, value, SourceKind.ALIAS, alias)

    if candidates.custom_labels:
        located = locate_custom_fields(record)
        if located is not None:
            location, entries = located
            for custom_label in candidates.custom_labels:
                value = _find_custom_value(entries, custom_label, candidates.kind)
                if value is not None:
                    return ResolvedField(
                        label,
                        value,
                        SourceKind.CUSTOM_FIELD,
                        f"{location}[{custom_label}]",
                    )

    return ResolvedField.absent(label)


def resolve_many(record: Any, labels: Iterable[str]) -> dict[str, ResolvedField]:
    """Resolve several labels, keyed by label, in the order given."""
    return {label: resolve(record, label) for label in labels}


def known_labels() -> list[str]:
    """All labels in the candidate table, in declaration order."""
    return list(FIELD_CANDIDATES)
