"""Strict request baseline: unknown fields are rejected, assignments re-validated."""

from pydantic import BaseModel, ConfigDict


class StrictRequestModel(BaseModel):
    """Base for request bodies sent by the mobile app and the admin console."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)
