# backend/servicebay/services/loyalty_service.py
"""
Loyalty points: accrual when a booking completes, and reward redemption.

Balances never go negative; every change happens on a locked client row
inside the caller's (accrual) or our own (redemption) transaction.
"""

from decimal import ROUND_FLOOR, Decimal
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import Settings
from ..core.exceptions import ConflictException, NotFoundException, RepositoryException, ValidationException
from ..core.post_lock import client_lock
from ..models.booking import Booking
from ..models.loyalty import LoyaltyRedemption, LoyaltyReward
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

REWARD_FIELDS = ("name", "description", "points_cost", "image_url", "is_active", "sort_order")


def accrual_for_price(price: Any, rate: float, minimum: int) -> int:
    """floor(price * rate), but never less than ``minimum``."""
    raw = (Decimal(str(price or 0)) * Decimal(str(rate))).to_integral_value(rounding=ROUND_FLOOR)
    return max(int(minimum), int(raw))


class LoyaltyService(BaseService):
    def __init__(self, db: Session, config: Optional[Settings] = None):
        super().__init__(db, config)
        self.client_repository = RepositoryFactory.create_client_repository(db)
        self.reward_repository = RepositoryFactory.create_reward_repository(db)
        self.redemption_repository = RepositoryFactory.create_redemption_repository(db)

    def accrue_for_completion(self, booking: Booking) -> int:
        """
        Credit the client for a completed booking, once per booking.

        Joins the caller's transaction, which must hold the client lock of the
        booking's owner. Returns the points credited (0 when the booking was
        already credited).
        """
        if booking.loyalty_points_awarded:
            return 0
        points = accrual_for_price(
            booking.price, self.config.loyalty_accrual_rate, self.config.loyalty_min_accrual
        )
        if points <= 0:
            return 0
        if self.client_repository.get_by_id(booking.client_id) is None:
            raise NotFoundException("Client not found", details={"client_id": booking.client_id})
        self.client_repository.add_points(booking.client_id, points)
        booking.loyalty_points_awarded = points
        self.db.flush()
        self.logger.info(
            "loyalty_accrued",
            extra={"client_id": booking.client_id, "booking_id": booking.id, "points": points},
        )
        return points

    def list_rewards(self, active_only: bool = True) -> List[LoyaltyReward]:
        return self.reward_repository.list_rewards(active_only=active_only)

    @BaseService.measure_operation("redeem_reward")
    def redeem(self, client_id: str, reward_id: str) -> Dict[str, Any]:
        """
        Exchange points for a reward.

        Raises:
            NotFoundException: unknown/inactive reward or unknown client
            ValidationException: balance below the reward cost
        """
        with client_lock(client_id):
            with self.transaction():
                reward = self.reward_repository.get_by_id(reward_id)
                if reward is None or not reward.is_active:
                    raise NotFoundException("Reward not found", details={"reward_id": reward_id})
                client = self.client_repository.get_for_update(client_id)
                if client is None:
                    raise NotFoundException("Client not found", details={"client_id": client_id})

                cost = int(reward.points_cost)
                current = int(client.loyalty_points or 0)
                if current < cost:
                    raise ValidationException(
                        "Not enough loyalty points",
                        code="INSUFFICIENT_POINTS",
                        details={"required": cost, "current": current},
                    )
                client.loyalty_points = current - cost
                redemption: LoyaltyRedemption = self.redemption_repository.create(
                    client_id=client.id, reward_id=reward.id, points_spent=cost
                )

        self.log_operation("redeem_reward", client_id=client_id, reward_id=reward_id, points=cost)
        return {
            "redemption_id": redemption.id,
            "reward_id": reward.id,
            "points_spent": cost,
            "loyalty_points": client.loyalty_points,
        }

    # Admin reward catalog

    @staticmethod
    def _reward_fields(data: Dict[str, Any]) -> Dict[str, Any]:
        fields = {key: data[key] for key in REWARD_FIELDS if key in data}
        if "points_cost" in fields and (fields["points_cost"] is None or int(fields["points_cost"]) <= 0):
            raise ValidationException("points_cost must be positive")
        if "name" in fields and not (fields["name"] or "").strip():
            raise ValidationException("name is required")
        return fields

    def create_reward(self, data: Dict[str, Any]) -> LoyaltyReward:
        fields = self._reward_fields(data)
        if "name" not in fields or "points_cost" not in fields:
            raise ValidationException("name and points_cost are required")
        if data.get("id"):
            fields["id"] = data["id"]
        with self.transaction():
            reward = self.reward_repository.create(**fields)
        self.log_operation("create_reward", reward_id=reward.id)
        return reward

    def update_reward(self, reward_id: str, data: Dict[str, Any]) -> LoyaltyReward:
        fields = self._reward_fields(data)
        with self.transaction():
            reward = self.reward_repository.update(reward_id, **fields)
            if reward is None:
                raise NotFoundException("Reward not found", details={"reward_id": reward_id})
        return reward

    def delete_reward(self, reward_id: str) -> None:
        try:
            with self.transaction():
                if not self.reward_repository.delete(reward_id):
                    raise NotFoundException("Reward not found", details={"reward_id": reward_id})
        except RepositoryException as exc:
            raise ConflictException(
                "Reward has redemptions; deactivate it instead",
                code="REWARD_IN_USE",
                details={"reward_id": reward_id},
            ) from exc
