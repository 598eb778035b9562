"""
Pydantic v2 response schemas for hit counters.

  • HitStats     — aggregate statistics handed to badge renderers.
  • ShieldsBadge — shields.io "endpoint" badge JSON (camelCase on the wire).
  • AppInfo      — service metadata for GET /.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class HitStats(BaseModel):
    """All-time and calendar-bucketed hit counts for one key."""

    key: str
    total: int = Field(..., ge=0, examples=[1234])
    today: int = Field(..., ge=0, examples=[12])
    this_month: int = Field(..., ge=0, examples=[345])
    this_year: int = Field(..., ge=0, examples=[1200])


class ShieldsBadge(BaseModel):
    """
    Payload for https://shields.io/badges/endpoint-badge.

    Serialized by alias: {"schemaVersion": 1, "label": …, "message": …, "color": …}
    """

    model_config = ConfigDict(populate_by_name=True)

    schema_version: int = Field(default=1, alias="schemaVersion")
    label: str
    message: str
    color: str

    @classmethod
    def for_count(cls, count: int, label: str, color: str) -> ShieldsBadge:
        return cls(label=label, message=str(count), color=color)


class AppInfo(BaseModel):
    project_name: str
    version: str
    docs_path: str
