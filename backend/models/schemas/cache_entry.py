"""Result cache entry."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class CacheEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str  # sha256(normalized input + target id + schema version)
    target_id: str  # dimension name or "guidance"
    schema_version: str
    value: dict[str, Any]  # serialized structured result
    created_at: datetime
    valid: bool = True
