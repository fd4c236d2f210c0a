# backend/servicebay/routes/v1/slots.py
"""
Slot availability routes - API v1

Endpoints:
    GET / → Candidate slots for a service at a post on a date

Advisory only; POST /bookings re-checks everything at commit time.
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import get_slot_calculator, handle_domain_exception
from ...core.exceptions import DomainException
from ...schemas.booking import SlotResponse
from ...services.slot_availability import SlotAvailabilityCalculator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["slots-v1"])


@router.get("", response_model=List[SlotResponse])
async def list_availability(
    service_id: Optional[str] = Query(None),
    date: Optional[str] = Query(None, description="Local date, YYYY-MM-DD"),
    post_id: Optional[str] = Query(None),
    calculator: SlotAvailabilityCalculator = Depends(get_slot_calculator),
) -> List[SlotResponse]:
    try:
        slots = await asyncio.to_thread(calculator.availability, service_id, date, post_id)
    except DomainException as e:
        handle_domain_exception(e)
    return [SlotResponse.model_validate(slot) for slot in slots]
