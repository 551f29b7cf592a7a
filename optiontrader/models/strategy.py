"""Strategy, leg and risk parameter models."""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

Instrument = Literal["NIFTY", "BANKNIFTY"]


class RiskParams(BaseModel):
    """Exit thresholds attached to a strategy.

    A threshold of ``None`` or ``0`` is treated as undefined.
    """

    target_profit: Optional[float] = Field(
        default=None, ge=0, description="Profit in INR at which positions are exited"
    )
    max_loss: Optional[float] = Field(
        default=None, ge=0, description="Loss in INR at which positions are exited"
    )

    model_config = {"frozen": True}


class StrategyConfig(BaseModel):
    """User input for creating a strategy."""

    name: str = Field(..., min_length=1, description="Display name")
    type: str = Field(..., min_length=1, description="Strategy type slug")
    instrument: Instrument = Field(..., description="Underlying index")
    target_profit: float = Field(..., ge=0, description="Target profit in INR")
    max_loss: float = Field(..., ge=0, description="Maximum loss in INR")
    entry_time: str = Field(default="09:30", description="Entry time of day (HH:MM)")
    exit_time: str = Field(default="15:15", description="Exit time of day (HH:MM)")

    model_config = {"frozen": True}


class Strategy(BaseModel):
    """A persisted trading strategy."""

    id: str = Field(..., description="Strategy ID")
    user_id: str = Field(..., min_length=1, description="Owner")
    name: str = Field(..., min_length=1, description="Display name")
    type: str = Field(..., description="Strategy type slug")
    instrument: Instrument = Field(..., description="Underlying index")
    is_active: bool = Field(default=False, description="Whether the strategy is active")
    entry_time: str = Field(default="09:30", description="Entry time of day")
    exit_time: str = Field(default="15:15", description="Exit time of day")
    risk_params: RiskParams = Field(default_factory=RiskParams, description="Exit thresholds")
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")

    model_config = {"frozen": True}


class StrategyLeg(BaseModel):
    """One option order of a multi-leg strategy."""

    symbol: str = Field(..., min_length=1, description="Option trading symbol")
    instrument_type: Literal["CE", "PE"] = Field(..., description="Call or put")
    strike_price: float = Field(..., ge=0, description="Strike price")
    expiry_date: date = Field(..., description="Contract expiry")
    action: Literal["BUY", "SELL"] = Field(..., description="Order side")
    quantity: int = Field(..., gt=0, description="Number of lots")

    model_config = {"frozen": True}
