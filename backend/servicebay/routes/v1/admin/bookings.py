# backend/servicebay/routes/v1/admin/bookings.py
"""
Admin booking routes - API v1

Endpoints:
    GET /                         → Filtered booking list
    PATCH /{booking_id}/status    → Status transition with its side effects
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ....api.dependencies import get_booking_ledger, get_state_machine, handle_domain_exception
from ....core.exceptions import DomainException
from ....schemas.booking import BookingResponse, BookingStatusUpdate, BookingTransitionResponse
from ....services.booking_ledger import BookingLedger
from ....services.booking_state_machine import BookingStateMachine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin-bookings-v1"])


@router.get("", response_model=List[BookingResponse])
async def list_bookings(
    status: Optional[str] = Query(None),
    date: Optional[str] = Query(None, description="Local date in the business timezone"),
    client_id: Optional[str] = Query(None),
    post_id: Optional[str] = Query(None),
    ledger: BookingLedger = Depends(get_booking_ledger),
) -> List[BookingResponse]:
    try:
        bookings = await asyncio.to_thread(
            lambda: ledger.list_bookings(
                status=status, day=date, client_id=client_id, post_id=post_id
            )
        )
    except DomainException as e:
        handle_domain_exception(e)
    return [BookingResponse.model_validate(b) for b in bookings]


@router.patch("/{booking_id}/status", response_model=BookingTransitionResponse)
async def transition_booking_status(
    booking_id: str,
    payload: BookingStatusUpdate,
    machine: BookingStateMachine = Depends(get_state_machine),
) -> BookingTransitionResponse:
    try:
        result = await asyncio.to_thread(machine.transition, booking_id, payload.status)
    except DomainException as e:
        handle_domain_exception(e)
    return BookingTransitionResponse(
        booking=BookingResponse.model_validate(result.booking),
        previous_status=result.previous_status,
        changed=result.changed,
        notification_id=result.notification_id,
        points_awarded=result.points_awarded,
    )
