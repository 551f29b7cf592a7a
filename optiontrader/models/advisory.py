"""Structured results returned by the AI advisor."""

from pydantic import BaseModel, Field


class SuggestionParameters(BaseModel):
    """Key parameters of a suggested strategy."""

    view: str = Field(..., description="The market view (e.g., Bullish, Bearish, Neutral).")
    suggested_strikes: str = Field(
        ..., description='Suggested strike prices, e.g., "ATM Call & OTM Call".'
    )
    stop_loss: str = Field(
        ..., description='A hypothetical stop-loss target, e.g., "50% of max loss".'
    )


class StrategySuggestion(BaseModel):
    """A strategy suggested for today's market."""

    strategy_name: str = Field(..., description="The name of the suggested strategy.")
    rationale: str = Field(..., description="The reasoning behind the suggestion.")
    parameters: SuggestionParameters
    risks: str = Field(..., description="The potential risks of this strategy.")


class StrategyLegIdea(BaseModel):
    """One hypothetical leg of a simulated strategy."""

    instrument: str = Field(..., description='e.g., "NIFTY 23500 CE".')
    action: str = Field(..., description='"Buy" or "Sell".')
    entry_price: float = Field(..., description="Hypothetical entry price in INR.")


class PnlPoint(BaseModel):
    """Intraday P/L sample."""

    time: str = Field(..., description='The time of the data point (e.g., "10:30").')
    pnl_amount: float = Field(..., description="The P/L amount in INR at that time.")


class HistoricalPnl(BaseModel):
    """P/L of one past trading day."""

    date: str = Field(..., description="The date of the trading day in YYYY-MM-DD format.")
    pnl_amount: float = Field(..., description="The P/L amount in INR for that day.")


class BacktestResult(BaseModel):
    """Hypothetical intraday and 7-day simulation of a strategy."""

    pnl: float = Field(..., description="The final estimated Profit/Loss percentage.")
    pnl_amount: float = Field(..., description="The final estimated Profit/Loss in INR.")
    required_capital: float = Field(..., description="The estimated capital required in INR.")
    max_loss: float = Field(..., description="The maximum potential loss in INR.")
    strategy_legs: list[StrategyLegIdea] = Field(
        ..., description="The individual legs of the strategy."
    )
    commentary: str = Field(..., description="A brief analysis of the performance.")
    data_points: list[PnlPoint] = Field(..., description="Intraday P/L samples.")
    historical_pnl: list[HistoricalPnl] = Field(
        ...,
        description="Hypothetical P/L for the past 7 trading days, ordered from most recent to oldest.",
    )


class OptionPick(BaseModel):
    """A single intraday options trading idea."""

    instrument: str = Field(..., description='The specific option instrument, e.g., "NIFTY 23500 CE".')
    action: str = Field(..., description='The action to take, e.g., "Buy" or "Sell".')
    entry_price: float = Field(..., description="Hypothetical entry price in INR for one lot.")
    required_capital: float = Field(..., description="Approximate capital in INR for one lot.")
    potential_profit: float = Field(..., description="Potential profit in INR.")
    potential_loss: float = Field(..., description="Potential maximum loss in INR.")
    rationale: str = Field(..., description="A brief reason for the suggestion.")


class TopPicks(BaseModel):
    """Wrapper for a list of option picks."""

    picks: list[OptionPick]


class FoundStrategy(BaseModel):
    """A strategy matching a profit/loss target."""

    strategy_name: str = Field(..., description="The name of the suggested strategy.")
    rationale: str = Field(..., description="Why this strategy fits the profit/loss criteria.")
    suggested_strikes: str = Field(
        ..., description='Specific suggested strike prices, e.g., "Buy 23500 CE, Sell 23700 CE".'
    )
    estimated_profit: float = Field(..., description="The estimated potential profit in INR.")
    estimated_loss: float = Field(..., description="The estimated maximum potential loss in INR.")


class FoundStrategies(BaseModel):
    """Wrapper for a list of found strategies."""

    strategies: list[FoundStrategy]
