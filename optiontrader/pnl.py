"""Position profit and loss arithmetic."""


def direction_sign(action: str) -> int:
    """+1 for a long (BUY) position, -1 for a short (SELL) one."""
    return 1 if action == "BUY" else -1


def calculate_pnl(
    entry_price: float,
    current_price: float,
    action: str,
    quantity: int,
    lot_size: int,
) -> float:
    """Unrealized P&L of an option position in INR.

    Args:
        entry_price: Price the position was opened at.
        current_price: Latest traded price.
        action: Position side, BUY or SELL.
        quantity: Number of lots.
        lot_size: Contract multiplier.
    """
    return (current_price - entry_price) * direction_sign(action) * lot_size * quantity
