# backend/servicebay/routes/v1/bookings.py
"""
Booking routes - API v1

All business logic delegated to BookingLedger and the progress clock.

Endpoints:
    GET /                        → Caller's bookings, newest first
    POST /                       → Create a booking
    DELETE /{booking_id}         → Cancel an owned booking
    POST /{booking_id}/rating    → Rate an owned booking
    GET /{booking_id}/progress   → Progress snapshot
    GET /{booking_id}/progress/stream → Progress as Server-Sent Events
"""

import asyncio
from datetime import timedelta
import json
import logging
from typing import AsyncGenerator, List

from fastapi import APIRouter, Depends, Request, Response, status
from sse_starlette.sse import EventSourceResponse

from ...api.dependencies import get_booking_ledger, get_current_client, handle_domain_exception
from ...core.config import settings
from ...core.exceptions import DomainException
from ...models.booking import Booking
from ...models.client import Client
from ...schemas.booking import (
    BookingCreate,
    BookingRatingRequest,
    BookingResponse,
    ProgressResponse,
)
from ...services.booking_ledger import BookingLedger
from ...services.progress_clock import (
    ProgressSnapshot,
    booking_progress,
    progress_ticks,
    resolve_progress_origin,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["bookings-v1"])


def _progress_response(booking: Booking, snapshot: ProgressSnapshot) -> ProgressResponse:
    return ProgressResponse(
        booking_id=booking.id,
        status=booking.status,
        started_at=resolve_progress_origin(booking),
        elapsed_seconds=int(snapshot.elapsed.total_seconds()),
        remaining_minutes=snapshot.remaining_minutes,
        fraction=snapshot.fraction,
        label=snapshot.label.value,
    )


@router.get("", response_model=List[BookingResponse])
async def list_my_bookings(
    current_client: Client = Depends(get_current_client),
    ledger: BookingLedger = Depends(get_booking_ledger),
) -> List[BookingResponse]:
    bookings = await asyncio.to_thread(ledger.list_for_client, current_client.id)
    return [BookingResponse.model_validate(b) for b in bookings]


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    current_client: Client = Depends(get_current_client),
    ledger: BookingLedger = Depends(get_booking_ledger),
) -> BookingResponse:
    """
    Reserve a slot.

    409 when the interval overlaps a live booking on the post, 422 when the
    service or post has been disabled since the slot was shown.
    """
    try:
        booking = await asyncio.to_thread(
            ledger.create,
            payload.service_id,
            payload.post_id,
            payload.start,
            payload.notes,
            current_client.id,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse.model_validate(booking)


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_booking(
    booking_id: str,
    current_client: Client = Depends(get_current_client),
    ledger: BookingLedger = Depends(get_booking_ledger),
) -> Response:
    try:
        await asyncio.to_thread(ledger.cancel, booking_id, current_client.id)
    except DomainException as e:
        handle_domain_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{booking_id}/rating", response_model=BookingResponse)
async def rate_booking(
    booking_id: str,
    payload: BookingRatingRequest,
    current_client: Client = Depends(get_current_client),
    ledger: BookingLedger = Depends(get_booking_ledger),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            ledger.rate, booking_id, current_client.id, payload.rating, payload.comment
        )
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse.model_validate(booking)


@router.get("/{booking_id}/progress", response_model=ProgressResponse)
async def get_progress(
    booking_id: str,
    current_client: Client = Depends(get_current_client),
    ledger: BookingLedger = Depends(get_booking_ledger),
) -> ProgressResponse:
    try:
        booking = await asyncio.to_thread(ledger.get_for_client, booking_id, current_client.id)
    except DomainException as e:
        handle_domain_exception(e)
    return _progress_response(booking, booking_progress(booking))


@router.get("/{booking_id}/progress/stream")
async def stream_progress(
    booking_id: str,
    request: Request,
    current_client: Client = Depends(get_current_client),
    ledger: BookingLedger = Depends(get_booking_ledger),
) -> EventSourceResponse:
    """
    Push a progress snapshot every tick until the work is ready.

    Every event is recomputed from the persisted start instant, so a client
    that reconnects sees the same numbers it would have seen had it stayed.
    """
    try:
        booking = await asyncio.to_thread(ledger.get_for_client, booking_id, current_client.id)
    except DomainException as e:
        handle_domain_exception(e)

    # Read everything up front; the session is closed while the stream runs
    origin = resolve_progress_origin(booking)
    total = timedelta(minutes=int(booking.duration_minutes))
    booking_status = booking.status

    async def event_generator() -> AsyncGenerator[dict[str, str], None]:
        async for snapshot in progress_ticks(
            origin, total, interval_seconds=settings.progress_tick_seconds
        ):
            if await request.is_disconnected():
                logger.debug("progress_stream_disconnected", extra={"booking_id": booking_id})
                return
            payload = {
                "booking_id": booking_id,
                "status": booking_status,
                "started_at": origin.isoformat(),
                "elapsed_seconds": int(snapshot.elapsed.total_seconds()),
                "remaining_minutes": snapshot.remaining_minutes,
                "fraction": snapshot.fraction,
                "label": snapshot.label.value,
            }
            yield {
                "event": "ready" if snapshot.is_ready else "progress",
                "data": json.dumps(payload),
            }

    return EventSourceResponse(
        event_generator(),
        headers={
            "Cache-Control": "no-cache, no-store, must-revalidate",
            "X-Accel-Buffering": "no",
        },
    )
