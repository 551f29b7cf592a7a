"""Position data model."""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

PositionStatus = Literal["OPEN", "CLOSED", "PENDING"]


class Position(BaseModel):
    """An option position opened by a strategy leg."""

    id: str = Field(..., description="Position ID")
    user_id: str = Field(..., min_length=1, description="Owner")
    strategy_id: Optional[str] = Field(
        default=None, description="Owning strategy (weak reference)"
    )
    broker_order_id: Optional[str] = Field(default=None, description="Broker order reference")
    symbol: str = Field(..., min_length=1, description="Option trading symbol")
    instrument_type: Literal["CE", "PE"] = Field(..., description="Call or put")
    strike_price: float = Field(..., ge=0, description="Strike price")
    expiry_date: date = Field(..., description="Contract expiry")
    action: Literal["BUY", "SELL"] = Field(..., description="Position side")
    quantity: int = Field(..., ge=0, description="Number of lots")
    entry_price: float = Field(default=0.0, ge=0, description="Entry price")
    current_price: float = Field(default=0.0, ge=0, description="Last traded price")
    exit_price: Optional[float] = Field(default=None, ge=0, description="Exit price")
    pnl: float = Field(default=0.0, description="Running profit/loss in INR")
    status: PositionStatus = Field(default="OPEN", description="Lifecycle status")
    opened_at: datetime = Field(default_factory=datetime.now, description="Open timestamp")
    closed_at: Optional[datetime] = Field(default=None, description="Close timestamp")
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")

    model_config = {"frozen": True}
