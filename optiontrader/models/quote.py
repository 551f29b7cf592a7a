"""Quote data model."""

from pydantic import BaseModel, Field


class Quote(BaseModel):
    """Represents a real-time quote for a symbol."""

    symbol: str = Field(..., description="Trading symbol")
    ltp: float = Field(..., ge=0, description="Last traded price")
    change: float = Field(default=0.0, description="Price change from previous close")
    change_percent: float = Field(default=0.0, description="Percentage change")
    bid: float = Field(default=0.0, ge=0, description="Best bid")
    ask: float = Field(default=0.0, ge=0, description="Best ask")
    volume: int = Field(default=0, ge=0, description="Trading volume")
    oi: int = Field(default=0, ge=0, description="Open interest")

    model_config = {"frozen": True}
