"""OrderRequest and OrderResponse data models."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

OrderStatus = Literal["PENDING", "EXECUTED", "REJECTED"]


class OrderRequest(BaseModel):
    """Represents an order to be sent to the broker."""

    symbol: str = Field(..., min_length=1, description="Trading symbol")
    action: Literal["BUY", "SELL"] = Field(..., description="Order side")
    quantity: int = Field(..., description="Number of lots")
    order_type: Literal["MARKET", "LIMIT"] = Field(default="MARKET", description="Order type")
    price: Optional[float] = Field(
        default=None, ge=0, description="Limit price (for LIMIT orders)"
    )
    product: Literal["INTRADAY", "DELIVERY"] = Field(
        default="INTRADAY", description="Product type"
    )

    model_config = {"frozen": True}


class OrderResponse(BaseModel):
    """Broker response to an order."""

    order_id: str = Field(default="", description="Broker order identifier")
    status: OrderStatus = Field(..., description="Order status")
    message: Optional[str] = Field(default=None, description="Status message")
    trade_id: Optional[str] = Field(default=None, description="Audit trade record ID")

    model_config = {"frozen": True}
