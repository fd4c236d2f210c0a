# backend/servicebay/repositories/loyalty_repository.py
"""
Loyalty reward, redemption and admin setting data access.
"""

import logging
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.app_setting import AppSetting
from ..models.loyalty import LoyaltyRedemption, LoyaltyReward
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class LoyaltyRewardRepository(BaseRepository[LoyaltyReward]):
    def __init__(self, db: Session):
        super().__init__(db, LoyaltyReward)

    def list_rewards(self, active_only: bool = False) -> List[LoyaltyReward]:
        try:
            query = self.db.query(LoyaltyReward)
            if active_only:
                query = query.filter(LoyaltyReward.is_active.is_(True))
            return query.order_by(
                LoyaltyReward.sort_order, LoyaltyReward.points_cost, LoyaltyReward.name
            ).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing rewards: {str(e)}")
            raise RepositoryException(f"Failed to list rewards: {str(e)}")


class LoyaltyRedemptionRepository(BaseRepository[LoyaltyRedemption]):
    def __init__(self, db: Session):
        super().__init__(db, LoyaltyRedemption)

    def list_for_client(self, client_id: str) -> List[LoyaltyRedemption]:
        return (
            self.db.query(LoyaltyRedemption)
            .filter(LoyaltyRedemption.client_id == client_id)
            .order_by(LoyaltyRedemption.created_at.desc())
            .all()
        )

    def reassign_client(self, from_client_id: str, to_client_id: str) -> int:
        try:
            result = self.db.execute(
                update(LoyaltyRedemption)
                .where(LoyaltyRedemption.client_id == from_client_id)
                .values(client_id=to_client_id)
                .execution_options(synchronize_session="fetch")
            )
            self.db.flush()
            return int(result.rowcount or 0)
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error reassigning redemptions {from_client_id} -> {to_client_id}: {str(e)}"
            )
            raise RepositoryException(f"Failed to reassign redemptions: {str(e)}")


class AppSettingRepository(BaseRepository[AppSetting]):
    def __init__(self, db: Session):
        super().__init__(db, AppSetting)

    def get_value(self, key: str) -> Optional[str]:
        row = self.db.get(AppSetting, key)
        return row.value if row is not None else None

    def set_value(self, key: str, value: str) -> AppSetting:
        row = self.db.get(AppSetting, key)
        if row is None:
            row = AppSetting(key=key, value=value)
            self.db.add(row)
        else:
            row.value = value
        self.db.flush()
        return row
