# backend/servicebay/services/client_identity.py
"""
ClientIdentityResolver: profile updates that may merge two client records.

When a profile update carries a real phone number whose digits already
belong to another client, that other record is folded into the one being
updated: bookings, notifications and redemptions move over, loyalty
points are added together, and the other record is deleted. The merge and
the field updates commit as one transaction or not at all.

Nothing proves the caller owns the phone number before the merge runs.
That matches the mobile app's current behaviour and is logged as
``identity_merge_unverified`` so it stays visible until an OTP step exists.
"""

from contextlib import ExitStack
from dataclasses import dataclass, field
import logging
import re
from typing import Any, Dict, List, Optional, Set

from sqlalchemy.orm import Session

from ..core.config import Settings
from ..core.exceptions import ConflictException, NotFoundException, ValidationException
from ..core.post_lock import client_lock
from ..models.client import Client
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "phone",
    "email",
    "social_links",
    "selected_resource_id",
)
SOCIAL_NETWORKS = ("telegram", "whatsapp", "instagram", "vk")
MERGE_LOCK_ATTEMPTS = 3

_NON_DIGITS = re.compile(r"\D+")


def normalize_phone(phone: Optional[str]) -> str:
    """Digits-only form of a phone number."""
    return _NON_DIGITS.sub("", phone or "")


def is_real_phone(phone: Optional[str], placeholder_prefix: str = "device:", min_digits: int = 6) -> bool:
    """Non-empty, not a device placeholder, and at least ``min_digits`` digits."""
    if not phone or not phone.strip():
        return False
    if phone.strip().startswith(placeholder_prefix):
        return False
    return len(normalize_phone(phone)) >= min_digits


def clean_social_links(value: Any) -> Dict[str, Optional[str]]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationException("social_links must be an object")
    cleaned = {}
    for network in SOCIAL_NETWORKS:
        handle = value.get(network)
        cleaned[network] = str(handle).strip() or None if handle is not None else None
    return cleaned


class _CandidateChanged(Exception):
    def __init__(self, candidate_id: str):
        super().__init__(candidate_id)
        self.candidate_id = candidate_id


@dataclass
class MergeReport:
    surviving_client_id: str
    merged_client_id: Optional[str] = None
    bookings_moved: int = 0
    notifications_moved: int = 0
    redemptions_moved: int = 0
    points_transferred: int = 0
    warnings: List[str] = field(default_factory=list)

    @property
    def merged(self) -> bool:
        return self.merged_client_id is not None


class ClientIdentityResolver(BaseService):
    def __init__(self, db: Session, config: Optional[Settings] = None):
        super().__init__(db, config)
        self.client_repository = RepositoryFactory.create_client_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.notification_repository = RepositoryFactory.create_notification_repository(db)
        self.redemption_repository = RepositoryFactory.create_redemption_repository(db)
        self.last_report: Optional[MergeReport] = None

    def _is_real(self, phone: Optional[str]) -> bool:
        return is_real_phone(
            phone, self.config.placeholder_phone_prefix, self.config.min_phone_digits
        )

    @BaseService.measure_operation("update_client_profile")
    def update_profile(self, client_id: str, updates: Dict[str, Any]) -> Client:
        """
        Apply profile ``updates`` to ``client_id``, merging a duplicate first if needed.

        Only keys present in ``updates`` are touched. Returns the surviving
        client, which is always ``client_id``.
        """
        unknown = set(updates) - set(PROFILE_FIELDS)
        if unknown:
            raise ValidationException(
                "Unknown profile fields", details={"fields": sorted(unknown)}
            )

        phone = updates.get("phone") if "phone" in updates else None
        phone_norm = normalize_phone(phone) if self._is_real(phone) else None

        lock_ids = {client_id}
        if phone_norm:
            candidate = self.client_repository.get_by_phone_norm(phone_norm, exclude_client_id=client_id)
            if candidate is not None:
                lock_ids.add(candidate.id)

        for _ in range(MERGE_LOCK_ATTEMPTS):
            report = MergeReport(surviving_client_id=client_id)
            try:
                client = self._update_locked(client_id, updates, phone_norm, lock_ids, report)
            except _CandidateChanged as changed:
                # Someone else claimed the phone after the unlocked lookup
                self.logger.info(
                    "identity_merge_candidate_changed",
                    extra={"client_id": client_id, "candidate_id": changed.candidate_id},
                )
                lock_ids = {client_id, changed.candidate_id}
                continue
            break
        else:
            raise ConflictException(
                "Client records kept changing, please retry",
                code="IDENTITY_BUSY",
                details={"client_id": client_id},
            )

        self.last_report = report
        if report.merged:
            prometheus_metrics.record_identity_merge()
        self.log_operation(
            "update_client_profile",
            client_id=client_id,
            fields=sorted(updates),
            merged_client_id=report.merged_client_id,
        )
        return client

    def _update_locked(
        self,
        client_id: str,
        updates: Dict[str, Any],
        phone_norm: Optional[str],
        lock_ids: Set[str],
        report: MergeReport,
    ) -> Client:
        """One attempt under client locks for ``lock_ids``, taken in id order."""
        with ExitStack() as stack:
            for locked_id in sorted(lock_ids):
                stack.enter_context(client_lock(locked_id))

            with self.transaction():
                for locked_id in sorted(lock_ids):
                    self.client_repository.get_for_update(locked_id)
                client = self.client_repository.get_by_id(client_id)
                if client is None:
                    raise NotFoundException("Client not found", details={"client_id": client_id})

                if phone_norm:
                    other = self.client_repository.get_by_phone_norm(
                        phone_norm, exclude_client_id=client_id
                    )
                    if other is not None:
                        if other.id not in lock_ids:
                            raise _CandidateChanged(other.id)
                        self._merge_into(client, other, report)

                self._apply_fields(client, updates, phone_norm)
                self.db.flush()
        return client

    def _merge_into(self, survivor: Client, other: Client, report: MergeReport) -> None:
        """Fold ``other`` into ``survivor`` inside the current transaction."""
        self.logger.warning(
            "identity_merge_unverified",
            extra={"surviving_client_id": survivor.id, "merged_client_id": other.id},
        )
        report.merged_client_id = other.id
        report.bookings_moved = self.booking_repository.reassign_client(other.id, survivor.id)
        self.notification_repository.delete_news_already_held(other.id, survivor.id)
        report.notifications_moved = self.notification_repository.reassign_client(
            other.id, survivor.id
        )
        report.redemptions_moved = self.redemption_repository.reassign_client(
            other.id, survivor.id
        )

        # Balances as stored right now, not as first loaded
        self.db.refresh(survivor, ["loyalty_points"])
        self.db.refresh(other, ["loyalty_points"])
        transferred = int(other.loyalty_points or 0)
        survivor.loyalty_points = max(0, int(survivor.loyalty_points or 0) + transferred)
        report.points_transferred = transferred

        # Carry over profile data the survivor does not have yet
        for attr in ("first_name", "last_name", "email"):
            if not getattr(survivor, attr) and getattr(other, attr):
                setattr(survivor, attr, getattr(other, attr))
                report.warnings.append(f"{attr} taken from merged client")

        self.db.delete(other)
        self.db.flush()

    def _apply_fields(self, client: Client, updates: Dict[str, Any], phone_norm: Optional[str]) -> None:
        for key in ("first_name", "last_name", "email"):
            if key in updates:
                value = updates[key]
                client_value = value.strip() if isinstance(value, str) else value
                setattr(client, key, client_value or None)
        if "selected_resource_id" in updates:
            client.selected_resource_id = updates["selected_resource_id"] or None
        if "social_links" in updates:
            client.social_links = clean_social_links(updates["social_links"])
        if "phone" in updates:
            phone = (updates["phone"] or "").strip()
            client.phone = phone or None
            client.phone_norm = phone_norm
