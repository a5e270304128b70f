"""Mock valuation - a delayed, randomized price band standing in for a real appraisal.

The countdown is recorded on the quote itself (``started_at`` plus
``estimated_wait_time``), so any process can finish it: the in-process
``ValuationScheduler`` completes it on time while a view is open, and
``process_due_valuations`` (run from cron) completes whatever was abandoned.
Completion only applies while the quote is still calculating, so a second
completion is a no-op rather than a second random price.
"""

import asyncio
import inspect
import math
import os
import random
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Union

from cashoffer.models.notification import NotificationType
from cashoffer.models.quote import (
    CalculatingDetails,
    CompletedDetails,
    PriceRange,
    Quote,
    QuoteStatus,
    dump_calculation_details,
)
from cashoffer.services.notifications import notify_quietly
from cashoffer.services.supabase_client import (
    get_calculating_quotes,
    get_property_by_id,
    get_quote_by_id,
    update_quote,
)
from cashoffer.utils.errors import PreconditionError, StaleCalculationError
from cashoffer.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)

MIN_WAIT_MS = int(os.environ.get("VALUATION_MIN_WAIT_MS", "60000"))
MAX_WAIT_MS = int(os.environ.get("VALUATION_MAX_WAIT_MS", "120000"))
STALE_GRACE_SECONDS = int(os.environ.get("VALUATION_STALE_GRACE_SECONDS", "300"))

PRICE_PER_SQUARE_FOOT = 180
DEFAULT_BASE_PRICE = 350_000
CENTER_VARIANCE = 0.15
BAND_HALF_WIDTH = 0.08
MIN_CONFIDENCE = 75
MAX_CONFIDENCE = 95

CALCULATING_STATUSES = [QuoteStatus.PENDING.value, QuoteStatus.CALCULATING.value]

Details = Union[CalculatingDetails, CompletedDetails]

_rng = random.Random()


def draw_wait_ms(rng: Optional[random.Random] = None) -> int:
    """Countdown length, uniform over the configured window."""
    return (rng or _rng).randint(MIN_WAIT_MS, MAX_WAIT_MS)


def base_price(square_feet: Optional[float]) -> int:
    if square_feet and square_feet > 0:
        return int(square_feet * PRICE_PER_SQUARE_FOOT)
    return DEFAULT_BASE_PRICE


def compute_price_range(square_feet: Optional[float], rng: Optional[random.Random] = None) -> PriceRange:
    """Center the band within ±15% of the base price, then widen it ±8%."""
    rng = rng or _rng
    center = base_price(square_feet) * (1 + rng.uniform(-CENTER_VARIANCE, CENTER_VARIANCE))
    return PriceRange(
        low=math.floor(center * (1 - BAND_HALF_WIDTH)),
        high=math.floor(center * (1 + BAND_HALF_WIDTH)),
        confidence=rng.randint(MIN_CONFIDENCE, MAX_CONFIDENCE),
    )


def check_stale(details: Optional[Details], now: datetime, quote_id: Optional[str] = None) -> None:
    """Raise StaleCalculationError once a countdown is well past due."""
    if not isinstance(details, CalculatingDetails) or details.due_at is None:
        return
    overdue = (now - details.due_at).total_seconds()
    if overdue > STALE_GRACE_SECONDS:
        raise StaleCalculationError(quote_id, overdue)


async def _load_quote(quote_id: str) -> tuple[dict, Quote]:
    row = await get_quote_by_id(quote_id)
    if row is None:
        raise PreconditionError(f"Quote not found: {quote_id}", missing=["quote"])
    return row, Quote.from_row(row)


async def start_calculation(
    quote_id: str,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> Details:
    """Start the countdown for a quote, or return the one already running.

    Completed quotes and quotes whose countdown already started are left
    untouched.
    """
    row, quote = await _load_quote(quote_id)
    details = quote.calculation_details

    if isinstance(details, CompletedDetails):
        logger.debug("Valuation already completed", quote_id=quote_id)
        return details
    if isinstance(details, CalculatingDetails) and details.countdown_started:
        logger.debug("Valuation countdown already started", quote_id=quote_id, due_at=details.due_at.isoformat())
        return details
    if not quote.status.is_calculating:
        raise PreconditionError(
            f"Quote {quote_id} is {quote.status.value}; valuation cannot start",
            missing=["calculating_status"],
        )

    now = now or datetime.now(timezone.utc)
    started = CalculatingDetails(started_at=now, estimated_wait_time=draw_wait_ms(rng))

    with log_timing("start_valuation", logger=logger, quote_id=quote_id):
        updated = await update_quote(
            quote_id,
            {
                "calculation_details": dump_calculation_details(started),
                "updated_at": now.isoformat(),
            },
            expected_statuses=CALCULATING_STATUSES,
            expected_calculation_status="calculating" if row.get("calculation_details") else None,
            expect_countdown_unstarted=True,
        )

    if updated is None:
        # Another writer got there first; report what the store holds now.
        _, quote = await _load_quote(quote_id)
        return quote.calculation_details

    logger.info(
        "Valuation countdown started",
        quote_id=quote_id,
        estimated_wait_ms=started.estimated_wait_time,
        due_at=started.due_at.isoformat(),
    )
    return started


async def complete_calculation(
    quote_id: str,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> Optional[Quote]:
    """Compute the price band and move the quote to ``awaiting_inspection``.

    Returns the updated quote, or None when the quote had already left the
    calculating state (the completion is then a no-op).
    """
    row, quote = await _load_quote(quote_id)
    if not quote.is_calculating:
        logger.info("Valuation completion skipped; quote not calculating", quote_id=quote_id, status=quote.status.value)
        return None

    now = now or datetime.now(timezone.utc)
    property_row = await get_property_by_id(quote.property_id) if quote.property_id else None
    square_feet = property_row.get("square_feet") if property_row else None

    price_range = compute_price_range(square_feet, rng)
    details = quote.calculation_details
    completed = CompletedDetails(
        started_at=details.started_at if isinstance(details, CalculatingDetails) else now,
        completed_at=now,
        price_range=price_range,
    )

    with log_timing("complete_valuation", logger=logger, quote_id=quote_id):
        updated = await update_quote(
            quote_id,
            {
                "amount": price_range.midpoint,
                "status": QuoteStatus.AWAITING_INSPECTION.value,
                "calculation_details": dump_calculation_details(completed),
                "updated_at": now.isoformat(),
            },
            expected_statuses=CALCULATING_STATUSES,
            expected_calculation_status="calculating" if row.get("calculation_details") else None,
        )

    if updated is None:
        logger.info("Valuation already completed by another writer", quote_id=quote_id)
        return None

    logger.info(
        "Valuation completed",
        quote_id=quote_id,
        square_feet=square_feet,
        price_low=price_range.low,
        price_high=price_range.high,
        confidence=price_range.confidence,
    )

    if quote.user_id:
        address = property_row.get("address") if property_row else None
        await notify_quietly(
            quote.user_id,
            "Your cash offer range is ready",
            f"Our estimate{' for ' + address if address else ''} is "
            f"${price_range.low:,} - ${price_range.high:,}. Schedule an inspection to receive your formal offer.",
            notification_type=NotificationType.QUOTE_READY,
            property_id=quote.property_id,
            quote_id=quote_id,
        )

    return Quote.from_row(updated)


async def refresh_valuation(
    quote_id: str,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> Quote:
    """Start the countdown if needed and complete it once due.

    Lets a polling client drive the valuation without a long-lived process.
    """
    now = now or datetime.now(timezone.utc)
    details = await start_calculation(quote_id, rng=rng, now=now)
    if isinstance(details, CalculatingDetails) and details.countdown_started and details.due_at <= now:
        completed = await complete_calculation(quote_id, rng=rng, now=now)
        if completed is not None:
            return completed
    _, quote = await _load_quote(quote_id)
    return quote


Listener = Callable[[Quote], Any]


class ValuationScheduler:
    """Runs valuation countdowns in-process, one timer per quote."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng
        self.timers: dict[str, asyncio.Task] = {}
        self.listeners: list[Listener] = []

    @property
    def pending_quote_ids(self) -> set[str]:
        return {qid for qid, task in self.timers.items() if not task.done()}

    def add_listener(self, listener: Listener) -> None:
        self.listeners.append(listener)

    async def ensure_started(self, quote_id: str) -> Details:
        """Start (or resume) the countdown and schedule its completion once."""
        details = await start_calculation(quote_id, rng=self.rng)

        if isinstance(details, CalculatingDetails) and details.countdown_started:
            if quote_id in self.pending_quote_ids:
                return details
            delay = max(0.0, (details.due_at - datetime.now(timezone.utc)).total_seconds())
            self.timers[quote_id] = asyncio.create_task(self._complete_after_delay(quote_id, delay))
            logger.debug("Valuation completion scheduled", quote_id=quote_id, delay_seconds=round(delay, 1))

        return details

    async def _complete_after_delay(self, quote_id: str, delay: float) -> None:
        try:
            await asyncio.sleep(delay)
            quote = await complete_calculation(quote_id, rng=self.rng)
            if quote is not None:
                await self._notify_listeners(quote)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # The countdown is persisted; the cron sweep finishes it.
            logger.error("Scheduled valuation failed", quote_id=quote_id, error=str(e), exc_info=True)
        finally:
            self.timers.pop(quote_id, None)

    async def _notify_listeners(self, quote: Quote) -> None:
        for listener in list(self.listeners):
            try:
                result = listener(quote)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning("Valuation listener failed", quote_id=quote.id, error=str(e))

    async def close(self) -> None:
        """Drop in-process timers; persisted countdowns are left for the sweep."""
        tasks = list(self.timers.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self.timers.clear()


async def process_due_valuations(
    limit: int = 50,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> dict[str, int]:
    """Durable sweep over quotes still calculating in the store."""
    now = now or datetime.now(timezone.utc)
    counts = {"started": 0, "completed": 0, "skipped": 0, "failed": 0}

    rows = await get_calculating_quotes(limit=limit)
    logger.info("Valuation sweep started", batch_size=len(rows), limit=limit)

    for row in rows:
        quote_id = row.get("id")
        try:
            quote = Quote.from_row(row)
            details = quote.calculation_details

            if isinstance(details, CompletedDetails):
                counts["skipped"] += 1
                continue

            if details is None or not details.countdown_started:
                await start_calculation(quote_id, rng=rng, now=now)
                counts["started"] += 1
                continue

            if details.due_at > now:
                counts["skipped"] += 1
                continue

            try:
                check_stale(details, now, quote_id)
            except StaleCalculationError as e:
                logger.warning(
                    "Recovering stale valuation",
                    quote_id=quote_id,
                    overdue_seconds=round(e.overdue_seconds),
                )

            if await complete_calculation(quote_id, rng=rng, now=now) is not None:
                counts["completed"] += 1
            else:
                counts["skipped"] += 1
        except Exception as e:
            counts["failed"] += 1
            logger.error("Valuation sweep item failed", quote_id=quote_id, error=str(e), exc_info=True)

    logger.info("Valuation sweep completed", **counts)
    return counts


_valuation_scheduler: Optional[ValuationScheduler] = None


def get_valuation_scheduler() -> ValuationScheduler:
    """Get or create the process-wide scheduler."""
    global _valuation_scheduler
    if _valuation_scheduler is None:
        _valuation_scheduler = ValuationScheduler()
    return _valuation_scheduler
