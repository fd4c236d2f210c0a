# backend/servicebay/routes/v1/admin/rewards.py
"""
Admin loyalty reward routes - API v1

Endpoints:
    GET /               → All rewards, including inactive ones
    POST /              → Create a reward
    PUT /{reward_id}    → Update a reward
    DELETE /{reward_id} → Delete a reward nobody has redeemed
"""

import asyncio
from typing import List

from fastapi import APIRouter, Depends, Response, status

from ....api.dependencies import get_loyalty_service, handle_domain_exception
from ....core.exceptions import DomainException
from ....schemas.loyalty import RewardCreate, RewardResponse, RewardUpdate
from ....services.loyalty_service import LoyaltyService

router = APIRouter(tags=["admin-rewards-v1"])


@router.get("", response_model=List[RewardResponse])
async def list_rewards(service: LoyaltyService = Depends(get_loyalty_service)) -> List[RewardResponse]:
    rewards = await asyncio.to_thread(service.list_rewards, False)
    return [RewardResponse.model_validate(reward) for reward in rewards]


@router.post("", response_model=RewardResponse, status_code=status.HTTP_201_CREATED)
async def create_reward(
    payload: RewardCreate,
    service: LoyaltyService = Depends(get_loyalty_service),
) -> RewardResponse:
    try:
        reward = await asyncio.to_thread(service.create_reward, payload.model_dump(exclude_none=True))
    except DomainException as e:
        handle_domain_exception(e)
    return RewardResponse.model_validate(reward)


@router.put("/{reward_id}", response_model=RewardResponse)
async def update_reward(
    reward_id: str,
    payload: RewardUpdate,
    service: LoyaltyService = Depends(get_loyalty_service),
) -> RewardResponse:
    try:
        reward = await asyncio.to_thread(
            service.update_reward, reward_id, payload.model_dump(exclude_unset=True)
        )
    except DomainException as e:
        handle_domain_exception(e)
    return RewardResponse.model_validate(reward)


@router.delete("/{reward_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reward(
    reward_id: str,
    service: LoyaltyService = Depends(get_loyalty_service),
) -> Response:
    try:
        await asyncio.to_thread(service.delete_reward, reward_id)
    except DomainException as e:
        handle_domain_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
