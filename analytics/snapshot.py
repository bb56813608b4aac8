"""
analytics/snapshot.py

Input contract for one analysis request.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, NonNegativeInt, field_validator

from analytics.profiles import ProcessKind

DEFAULT_SUBJECT_ID = "default"


class DashboardSnapshot(BaseModel):
    """
    Point-in-time status distribution of one tab.

    Built fresh for every request and never persisted. ``total_records`` is
    the authoritative denominator even when it disagrees with the sum of
    ``status_counts``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    subject_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("subject_id", "subjectId", "tabId"),
    )
    subject_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("subject_name", "subjectName", "tabName"),
    )
    process_kind: ProcessKind = Field(
        default=ProcessKind.ROLLOUT,
        validation_alias=AliasChoices("process_kind", "processKind", "dashboardType"),
    )
    status_counts: dict[str, NonNegativeInt] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("status_counts", "statusCounts"),
    )
    total_records: NonNegativeInt = Field(
        default=0,
        validation_alias=AliasChoices("total_records", "totalRecords"),
    )

    @field_validator("process_kind", mode="before")
    @classmethod
    def _default_unknown_kind(cls, value: Any) -> ProcessKind:
        return ProcessKind.parse(value)

    @property
    def subject_key(self) -> str:
        return self.subject_id or DEFAULT_SUBJECT_ID
