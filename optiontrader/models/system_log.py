"""SystemLog data model."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

LogType = Literal["INFO", "WARNING", "ERROR", "TRADE"]


class SystemLog(BaseModel):
    """Append-only audit log entry."""

    id: Optional[int] = Field(default=None, description="Database ID")
    user_id: str = Field(..., min_length=1, description="Owner")
    log_type: LogType = Field(..., description="Entry type")
    message: str = Field(..., description="Log message")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Structured metadata")
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")

    model_config = {"frozen": True}
