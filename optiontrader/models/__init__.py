"""Data models for OptionTrader."""

from optiontrader.models.advisory import (
    BacktestResult,
    FoundStrategies,
    FoundStrategy,
    HistoricalPnl,
    OptionPick,
    PnlPoint,
    StrategyLegIdea,
    StrategySuggestion,
    SuggestionParameters,
    TopPicks,
)
from optiontrader.models.order import OrderRequest, OrderResponse
from optiontrader.models.position import Position
from optiontrader.models.quote import Quote
from optiontrader.models.settings import UserSettings
from optiontrader.models.strategy import RiskParams, Strategy, StrategyConfig, StrategyLeg
from optiontrader.models.system_log import SystemLog
from optiontrader.models.trade import TradeRecord

__all__ = [
    "BacktestResult",
    "FoundStrategies",
    "FoundStrategy",
    "HistoricalPnl",
    "OptionPick",
    "OrderRequest",
    "OrderResponse",
    "PnlPoint",
    "Position",
    "Quote",
    "RiskParams",
    "Strategy",
    "StrategyConfig",
    "StrategyLeg",
    "StrategyLegIdea",
    "StrategySuggestion",
    "SuggestionParameters",
    "SystemLog",
    "TopPicks",
    "TradeRecord",
    "UserSettings",
]
