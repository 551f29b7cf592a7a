"""TradeRecord data model."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class TradeRecord(BaseModel):
    """Audit entry for a single brokerage order attempt."""

    id: str = Field(..., description="Trade record ID")
    user_id: str = Field(..., min_length=1, description="Owner")
    position_id: Optional[str] = Field(default=None, description="Correlated position")
    broker_order_id: Optional[str] = Field(default=None, description="Broker order reference")
    order_type: str = Field(..., description="MARKET or LIMIT")
    action: Literal["BUY", "SELL"] = Field(..., description="Order side")
    quantity: int = Field(..., description="Order quantity")
    price: float = Field(default=0.0, ge=0, description="Requested price")
    status: Literal["PENDING", "EXECUTED", "REJECTED", "CANCELLED"] = Field(
        default="PENDING", description="Order status"
    )
    error_message: Optional[str] = Field(default=None, description="Broker message")
    executed_at: Optional[datetime] = Field(default=None, description="Execution timestamp")
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")

    model_config = {"frozen": True}
