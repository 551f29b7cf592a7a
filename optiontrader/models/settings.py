"""UserSettings data model."""

from pydantic import BaseModel, Field


class UserSettings(BaseModel):
    """Per-user risk settings read by the risk gate."""

    user_id: str = Field(..., min_length=1, description="Owner")
    auto_trade_enabled: bool = Field(default=False, description="Allow automated orders")
    max_daily_loss: float = Field(default=10000.0, ge=0, description="Max loss per day in INR")
    max_position_size: float = Field(
        default=50000.0, ge=0, description="Max capital per position in INR"
    )
    max_open_positions: int = Field(default=5, ge=0, description="Max concurrent open positions")
    notifications_enabled: bool = Field(default=True, description="Send notifications")

    model_config = {"frozen": True}
