# backend/servicebay/models/loyalty.py
"""
Loyalty rewards a client can exchange points for, and the ledger of exchanges.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Integer, String, Text
import ulid

from ..database import Base
from .types import UTCDateTime, utcnow


class LoyaltyReward(Base):
    __tablename__ = "loyalty_rewards"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    points_cost = Column(Integer, nullable=False)
    image_url = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    __table_args__ = (CheckConstraint("points_cost > 0", name="ck_rewards_cost_positive"),)

    def __repr__(self) -> str:
        return f"<LoyaltyReward {self.id}: {self.name} cost={self.points_cost}>"


class LoyaltyRedemption(Base):
    __tablename__ = "loyalty_redemptions"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    client_id = Column(String(26), ForeignKey("clients.id"), nullable=False, index=True)
    reward_id = Column(String(26), ForeignKey("loyalty_rewards.id"), nullable=False)
    points_spent = Column(Integer, nullable=False)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<LoyaltyRedemption {self.id}: client={self.client_id} points={self.points_spent}>"

