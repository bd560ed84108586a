"""
Participant Roster Extractor

Builds the ordered, role-tagged roster of people and organisations on an
exchange. Each step appends at most one participant (the buyer and seller
steps at most two) and is skipped silently when its primary field cannot
be resolved. Order follows the extraction steps, not the alphabet.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Final, Iterable, Optional

from core.exchange.coercion import as_text, is_truthy
from core.exchange.models import Participant, ParticipantType
from core.exchange.resolver import (
    ASSIGNED_TO,
    ASSIGNED_TO_EMAIL,
    BANK,
    BANK_REFERRAL,
    BUYER_1,
    BUYER_2,
    CLIENT_SIGNATORY_TITLE,
    CLIENT_VESTING,
    INTERNAL_CREDIT_TO,
    REFERRAL_SOURCE,
    REFERRAL_SOURCE_EMAIL,
    REL_ESCROW_AGENT,
    REL_ESCROW_NUMBER,
    REP_ESCROW_AGENT,
    REP_ESCROW_NUMBER,
    SELLER_1,
    SELLER_2,
    resolve,
)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_OPERATOR_DOMAINS: Final[tuple[str, ...]] = ("peak1031.com",)

ROLE_CLIENT: Final[str] = "Client"
ROLE_COORDINATOR: Final[str] = "Coordinator"
ROLE_ASSIGNED_USER: Final[str] = "Assigned User"
ROLE_REFERRAL: Final[str] = "Referral Source"
ROLE_REL_ESCROW: Final[str] = "Relinquished Escrow"
ROLE_REP_ESCROW: Final[str] = "Replacement Escrow"
ROLE_BUYER: Final[str] = "Buyer"
ROLE_SELLER: Final[str] = "Seller"
ROLE_BANK: Final[str] = "Bank"
ROLE_INTERNAL_CREDIT: Final[str] = "Internal Credit"

# Linked contact objects on the record
CLIENT_CONTACT_KEYS: Final[tuple[str, ...]] = ("client",)
COORDINATOR_CONTACT_KEYS: Final[tuple[str, ...]] = ("coordinator",)


# =============================================================================
# Helpers
# =============================================================================


def _text(record: Any, label: str) -> Optional[str]:
    return as_text(resolve(record, label).value)


def _read(container: Any, *keys: str) -> Any:
    """First non-empty attribute among keys on a mapping or object."""
    for key in keys:
        if isinstance(container, Mapping):
            value = container.get(key)
        else:
            value = getattr(container, key, None)
        if as_text(value) is not None:
            return value
    return None


def _linked_contact(record: Any, keys: Iterable[str]) -> Any:
    for key in keys:
        contact = record.get(key) if isinstance(record, Mapping) else getattr(record, key, None)
        if contact is not None and not isinstance(contact, (str, bytes, list, tuple)):
            return contact
    return None


def contact_name(contact: Any) -> Optional[str]:
    """First and last name of a linked contact, joined with a space."""
    if contact is None:
        return None
    first = as_text(_read(contact, "firstName", "first_name"))
    last = as_text(_read(contact, "lastName", "last_name"))
    name = " ".join(part for part in (first, last) if part)
    return name or None


def contact_email(contact: Any) -> Optional[str]:
    if contact is None:
        return None
    return as_text(_read(contact, "email"))


def email_domain(email: Optional[str]) -> Optional[str]:
    """Lower-cased domain part of an email address, or None."""
    if not email or "@" not in email:
        return None
    domain = email.rsplit("@", 1)[1].strip().lower()
    return domain or None


def is_operator_email(email: Optional[str], operator_domains: Iterable[str]) -> bool:
    """True if the email belongs to one of the operator's domains or a subdomain."""
    domain = email_domain(email)
    if domain is None:
        return False
    for operator_domain in operator_domains:
        candidate = operator_domain.strip().lower().lstrip("@")
        if candidate and (domain == candidate or domain.endswith("." + candidate)):
            return True
    return False


# =============================================================================
# Extraction Steps
# =============================================================================


def _client(record: Any) -> Optional[Participant]:
    contact = _linked_contact(record, CLIENT_CONTACT_KEYS)
    name = _text(record, CLIENT_VESTING) or contact_name(contact)
    if name is None:
        return None
    return Participant(
        display_name=name,
        role=ROLE_CLIENT,
        type=ParticipantType.PRIMARY,
        email=contact_email(contact),
        title=_text(record, CLIENT_SIGNATORY_TITLE),
    )


def _assigned_user(record: Any, operator_domains: tuple[str, ...]) -> Optional[Participant]:
    contact = _linked_contact(record, COORDINATOR_CONTACT_KEYS)

    assigned = _text(record, ASSIGNED_TO)
    if assigned is not None:
        # Classify by the linked coordinator's email when none is recorded
        email = _text(record, ASSIGNED_TO_EMAIL) or contact_email(contact)
        role = ROLE_COORDINATOR if is_operator_email(email, operator_domains) else ROLE_ASSIGNED_USER
        return Participant(
            display_name=assigned,
            role=role,
            type=ParticipantType.INTERNAL,
            email=email,
        )

    name = contact_name(contact)
    if name is None:
        return None
    return Participant(
        display_name=name,
        role=ROLE_COORDINATOR,
        type=ParticipantType.INTERNAL,
        email=contact_email(contact),
    )


def _referral(record: Any) -> Optional[Participant]:
    name = _text(record, REFERRAL_SOURCE)
    if name is None:
        return None
    return Participant(
        display_name=name,
        role=ROLE_REFERRAL,
        type=ParticipantType.REFERRAL,
        email=_text(record, REFERRAL_SOURCE_EMAIL),
    )


def _escrow(record: Any, agent_label: str, number_label: str, role: str) -> Optional[Participant]:
    name = _text(record, agent_label)
    if name is None:
        return None
    return Participant(
        display_name=name,
        role=role,
        type=ParticipantType.ESCROW,
        escrow_number=_text(record, number_label),
    )


def _pair(record: Any, first_label: str, second_label: str, role: str) -> list[Participant]:
    """
    First and second party of one side of the transaction.

    The second is dropped when it is the exact same string as the first.
    """
    first = _text(record, first_label)
    second = _text(record, second_label)
    names = [first] if first is not None else []
    if second is not None and second != first:
        names.append(second)
    return [Participant(display_name=n, role=role, type=ParticipantType.TRANSACTION) for n in names]


def _bank(record: Any) -> Optional[Participant]:
    name = _text(record, BANK)
    if name is None:
        return None
    return Participant(
        display_name=name,
        role=ROLE_BANK,
        type=ParticipantType.FINANCIAL,
        is_referral=True if is_truthy(resolve(record, BANK_REFERRAL).value) else None,
    )


def _internal_credit(record: Any) -> Optional[Participant]:
    name = _text(record, INTERNAL_CREDIT_TO)
    if name is None:
        return None
    return Participant(
        display_name=name,
        role=ROLE_INTERNAL_CREDIT,
        type=ParticipantType.INTERNAL,
    )


# =============================================================================
# Public API
# =============================================================================


def extract_participants(
    record: Any,
    operator_domains: Iterable[str] = DEFAULT_OPERATOR_DOMAINS,
) -> list[Participant]:
    """
    Build the participant roster of an exchange.

    Steps, in order:
    1. Client (vesting name, else linked client contact)
    2. Assigned user / coordinator (else linked coordinator contact)
    3. Referral source
    4. Relinquished escrow agent
    5. Replacement escrow agent
    6. Buyer 1, Buyer 2
    7. Seller 1, Seller 2
    8. Bank
    9. Internal credit

    Args:
        record: Exchange record snapshot
        operator_domains: Email domains that mark an assigned user as a
            Coordinator

    Returns:
        Participants in step order
    """
    domains = tuple(operator_domains)
    roster: list[Participant] = []

    for participant in (
        _client(record),
        _assigned_user(record, domains),
        _referral(record),
        _escrow(record, REL_ESCROW_AGENT, REL_ESCROW_NUMBER, ROLE_REL_ESCROW),
        _escrow(record, REP_ESCROW_AGENT, REP_ESCROW_NUMBER, ROLE_REP_ESCROW),
    ):
        if participant is not None:
            roster.append(participant)

    roster.extend(_pair(record, BUYER_1, BUYER_2, ROLE_BUYER))
    roster.extend(_pair(record, SELLER_1, SELLER_2, ROLE_SELLER))

    for participant in (_bank(record), _internal_credit(record)):
        if participant is not None:
            roster.append(participant)

    return roster
