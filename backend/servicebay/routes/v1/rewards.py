# backend/servicebay/routes/v1/rewards.py
"""
Loyalty reward routes - API v1

Endpoints:
    GET /                    → Active rewards
    POST /{reward_id}/redeem → Spend points on a reward
"""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends

from ...api.dependencies import get_current_client, get_loyalty_service, handle_domain_exception
from ...core.exceptions import DomainException
from ...models.client import Client
from ...schemas.loyalty import RedemptionResponse, RewardResponse
from ...services.loyalty_service import LoyaltyService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["rewards-v1"])


@router.get("", response_model=List[RewardResponse])
async def list_rewards(service: LoyaltyService = Depends(get_loyalty_service)) -> List[RewardResponse]:
    rewards = await asyncio.to_thread(service.list_rewards, True)
    return [RewardResponse.model_validate(reward) for reward in rewards]


@router.post("/{reward_id}/redeem", response_model=RedemptionResponse)
async def redeem_reward(
    reward_id: str,
    current_client: Client = Depends(get_current_client),
    service: LoyaltyService = Depends(get_loyalty_service),
) -> RedemptionResponse:
    """400 with the required and current balance when the client cannot afford it."""
    try:
        result = await asyncio.to_thread(service.redeem, current_client.id, reward_id)
    except DomainException as e:
        handle_domain_exception(e)
    return RedemptionResponse(**result)
