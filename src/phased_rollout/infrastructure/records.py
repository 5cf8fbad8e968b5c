"""Typed records for loosely-shaped management-plane payloads.

Management-plane objects arrive as PascalCase property bags in which any
counter may be missing.  Each payload is parsed once into a pydantic model
with explicit optional fields, so nothing downstream probes attributes at
runtime.
"""

from __future__ import annotations

import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DeploymentRecord(BaseModel):
    """Deployment summary as reported by the management plane."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    deployment_id: str = Field(alias="DeploymentID")
    name: str = Field(default="", alias="SoftwareName")
    collection_id: str = Field(alias="CollectionID")
    number_targeted: int | None = Field(default=None, alias="NumberTargeted", ge=0)
    number_success: int | None = Field(default=None, alias="NumberSuccess", ge=0)
    number_installed: int | None = Field(default=None, alias="NumberInstalled", ge=0)
    number_compliant: int | None = Field(default=None, alias="NumberCompliant", ge=0)
    summarization_time: datetime.datetime | None = Field(
        default=None, alias="SummarizationTime"
    )

    @model_validator(mode="before")
    @classmethod
    def _accept_application_name(cls, data: Any) -> Any:
        # Application deployments report ApplicationName instead of SoftwareName.
        if isinstance(data, dict) and "SoftwareName" not in data and "name" not in data:
            app_name = data.get("ApplicationName")
            if app_name is not None:
                data = {**data, "SoftwareName": app_name}
        return data

    def counter(self, field_name: str) -> int | None:
        """Return the named counter (``number_*`` attribute)."""
        return {
            "number_targeted": self.number_targeted,
            "number_success": self.number_success,
            "number_installed": self.number_installed,
            "number_compliant": self.number_compliant,
        }[field_name]


class CollectionRecord(BaseModel):
    """Device or user collection as reported by the management plane."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    collection_id: str = Field(alias="CollectionID")
    name: str = Field(alias="Name")
    member_count: int | None = Field(default=None, alias="MemberCount", ge=0)
