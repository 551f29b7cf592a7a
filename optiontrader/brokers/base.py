"""Base broker interface for OptionTrader."""

from abc import ABC, abstractmethod
from typing import Optional

from optiontrader.models import OrderRequest, OrderResponse, Quote


class NotAuthenticatedError(RuntimeError):
    """Raised when a broker call is made without a valid session."""

    def __init__(self, message: str = "Not authenticated with broker"):
        super().__init__(message)


class BaseBroker(ABC):
    """Abstract base class for broker implementations.
    
    All broker implementations (Angel One, Paper Trading, etc.) must
    inherit from this class and implement all abstract methods.
    """

    @abstractmethod
    def login(self) -> bool:
        """Authenticate with the broker.
        
        Returns:
            True if authentication successful, False otherwise.
        """

    @abstractmethod
    def logout(self) -> bool:
        """Logout and invalidate session.
        
        Returns:
            True if logout successful, False otherwise.
        """

    @abstractmethod
    def is_authenticated(self) -> bool:
        """Check if currently authenticated."""

    @abstractmethod
    def get_quote(self, symbol: str) -> Quote:
        """Get real-time quote for a symbol.
        
        Args:
            symbol: Trading symbol.
            
        Returns:
            Quote with current market data.
            
        Raises:
            ValueError: If the quote cannot be fetched.
        """

    @abstractmethod
    def place_order(self, order: OrderRequest) -> OrderResponse:
        """Submit an order.
        
        Args:
            order: Order to place. Its quantity is in contract units
                (lots times lot size).
            
        Returns:
            OrderResponse with status PENDING, EXECUTED or REJECTED.
            
        Raises:
            RuntimeError: If the broker cannot be reached.
        """

    def get_lot_size(self, symbol: str) -> Optional[int]:
        """Get the contract lot size for a symbol, if the broker knows it.

        Returns:
            Lot size, or None when the broker has no instrument metadata.
        """
        return None
