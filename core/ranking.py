"""
Admission and ranking policy for walk-in queues.

The one place that decides where a new entry lands. Every entry point
(HTTP handler, demo fallback, owner edit) goes through these functions;
nothing else does ranking math.

Rules:
- Each entry has a priority score: VIP and emergency bookings rank highest,
  regular customers next, everyone else zero. The highest applicable score
  wins; scores do not add up.
- A new entry is placed after the leading run of entries already being
  served, before the first entry after that run that scores lower. Equal
  scores keep arrival order (FIFO).
- Priority is paid: a positive score requires pay_now, and the top tier
  also pays a surcharge on the base price.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence

from core.config import QueueSettings
from core.exceptions import PaymentRequiredError
from core.models import (
    CustomerType, PaymentOption, PriceQuote, QueueEntry, QueueStatus, Service,
)

_DEFAULT_SETTINGS = QueueSettings()


def priority_score(
    customer_type: CustomerType,
    is_emergency: bool,
    settings: QueueSettings | None = None,
) -> int:
    """
    Compute the admission priority score.

    Args:
        customer_type: Loyalty tier of the customer
        is_emergency: Whether the booking is flagged as an emergency
        settings: Score configuration (defaults apply when omitted)

    Returns:
        Highest score that applies to the booking
    """
    settings = settings or _DEFAULT_SETTINGS

    scores = [0]
    if customer_type == CustomerType.VIP:
        scores.append(settings.vip_score)
    elif customer_type == CustomerType.REGULAR:
        scores.append(settings.regular_score)
    if is_emergency:
        scores.append(settings.emergency_score)

    return max(scores)


def score_of(entry: QueueEntry, settings: QueueSettings | None = None) -> int:
    """Priority score of an existing entry."""
    return priority_score(entry.customer_type, entry.is_emergency, settings)


def requires_online_payment(score: int, settings: QueueSettings | None = None) -> bool:
    settings = settings or _DEFAULT_SETTINGS
    return score >= settings.payment_required_min_score


def require_payment(
    score: int,
    payment_option: PaymentOption,
    settings: QueueSettings | None = None,
) -> None:
    """
    Enforce the paid-priority gate.

    Raises:
        PaymentRequiredError: If the score calls for online payment and the
            booking chose to pay at the shop
    """
    if requires_online_payment(score, settings) and payment_option != PaymentOption.PAY_NOW:
        raise PaymentRequiredError(
            f"Priority bookings (score {score}) must use payment_option "
            f"'{PaymentOption.PAY_NOW.value}', got '{payment_option.value}'"
        )


def priority_fee_cents(
    base_price_cents: int,
    score: int,
    settings: QueueSettings | None = None,
) -> int:
    """
    Surcharge owed for a priority booking, rounded half-up to the cent.

    With the default 150% rate a 2000-cent haircut carries a 3000-cent fee,
    for a total of 2.5x the base price.
    """
    settings = settings or _DEFAULT_SETTINGS
    if score < settings.surcharge_min_score:
        return 0

    fee = Decimal(base_price_cents) * settings.priority_surcharge_rate
    return int(fee.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def quote(
    services: Sequence[Service],
    customer_type: CustomerType,
    is_emergency: bool,
    settings: QueueSettings | None = None,
) -> PriceQuote:
    """
    Price a booking across all of its services.

    Args:
        services: Catalog services in the booking
        customer_type: Loyalty tier of the customer
        is_emergency: Whether the booking is flagged as an emergency
        settings: Pricing configuration

    Returns:
        PriceQuote with base price, surcharge and payment requirement
    """
    score = priority_score(customer_type, is_emergency, settings)
    base = sum(service.price_cents for service in services)
    fee = priority_fee_cents(base, score, settings)

    return PriceQuote(
        base_price_cents=base,
        priority_fee_cents=fee,
        total_price_cents=base + fee,
        priority_score=score,
        requires_online_payment=requires_online_payment(score, settings),
    )


def insertion_position(
    active: Sequence[QueueEntry],
    score: int,
    settings: QueueSettings | None = None,
) -> int:
    """
    Position a new entry with the given score should take.

    The leading run of in_progress entries is never overtaken. After it, the
    new entry lands before the first entry scoring strictly lower, so equal
    scores keep arrival order. Owner swaps can leave the queue out of rank
    order; the rule still only looks for the first lower-scoring entry.

    Args:
        active: Active entries of the shop, ascending by position
        score: Priority score of the new entry

    Returns:
        Position in [1, len(active) + 1]. For a queue already in rank order
        this equals 1 + the number of entries scoring >= score.
    """
    in_service = True
    for entry in active:
        if in_service and entry.status == QueueStatus.IN_PROGRESS:
            continue
        in_service = False
        if score_of(entry, settings) < score:
            return entry.position
    return len(active) + 1
