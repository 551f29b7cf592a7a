"""Advisory Agent for options strategy ideas.

Each operation sends one prompt to the model with a structured output
type and returns the parsed result. Results are hypothetical and meant
for paper trading.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional, TypeVar

from pydantic import BaseModel

from optiontrader.agents.base import create_agent, run_agent_sync
from optiontrader.models import (
    BacktestResult,
    FoundStrategies,
    FoundStrategy,
    OptionPick,
    StrategySuggestion,
    TopPicks,
)
from optiontrader.strategies import strategy_names

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


ADVISOR_INSTRUCTIONS = """You are an expert financial analyst specializing in Indian derivatives markets, particularly Nifty and Bank Nifty options.
Your goal is to provide data-driven, insightful, and cautious advice for paper trading simulations.
Do not provide real financial advice. All outputs must be in JSON format.
"""


class AdvisoryError(RuntimeError):
    """Raised when the model cannot produce a usable answer."""


class AdvisoryAgent:
    """Read-only AI advisor for index options strategies."""

    def __init__(
        self,
        model: Optional[str] = None,
        runner: Callable[[Any, str], Any] = run_agent_sync,
        today: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the Advisory Agent.

        Args:
            model: Optional model override.
            runner: Function running an agent on a prompt.
            today: Clock used for date-stamped prompts (UTC).
        """
        self._model = model
        self._runner = runner
        self._today = today or (lambda: datetime.now(timezone.utc))

    def _complete(self, name: str, prompt: str, output_type: type[T], error: str) -> T:
        agent = create_agent(
            name=name,
            instructions=ADVISOR_INSTRUCTIONS,
            output_type=output_type,
            model=self._model,
        )
        try:
            output = self._runner(agent, prompt)
            if isinstance(output, output_type):
                return output
            if isinstance(output, str):
                return output_type.model_validate_json(output.strip())
            return output_type.model_validate(output)
        except Exception as e:
            logger.error("%s failed: %s", name, e)
            raise AdvisoryError(error) from e

    def suggest_strategy(self, instrument: str) -> StrategySuggestion:
        """Suggest the most promising strategy for today's market."""
        prompt = (
            f"Analyze the current market sentiment for today for {instrument}. "
            "Based on your analysis, suggest the most potentially profitable options "
            f"trading strategy from the following list: {strategy_names()}. "
            "For the suggested strategy, provide a brief rationale (2-3 sentences), key "
            "parameters (like market view, suggested strike prices relative to the current "
            "price, and a hypothetical stop-loss), and potential risks."
        )
        return self._complete(
            "Strategy Advisor",
            prompt,
            StrategySuggestion,
            "Failed to get a strategy suggestion from the AI. Please try again.",
        )

    def run_backtest(self, instrument: str, strategy_name: str) -> BacktestResult:
        """Simulate a strategy today and over the last 7 trading days."""
        today = self._today().strftime("%Y-%m-%d")
        prompt = f"""Simulate the performance of the '{strategy_name}' strategy for {instrument} options. Provide two sets of hypothetical data:
1. Today's Intraday Simulation: Generate an outcome for today's market conditions ({today}) including: an array of individual strategy legs (instrument, action, entry price), estimated capital required in INR for one lot, maximum potential loss in INR, final Profit/Loss as a percentage, final Profit/Loss as an absolute amount in INR, a brief commentary on today's performance, and 8 data points representing the P/L amount in INR fluctuation throughout a 6-hour trading day (e.g., 9:30, 10:30, etc.).
2. 7-Day Historical Simulation: Provide a hypothetical daily P/L amount in INR for this same strategy if it were executed on each of the last 7 market working days prior to today. The days must be sequential working days (Monday-Friday), going backwards from yesterday. For each day, provide the date in 'YYYY-MM-DD' format. The list must be ordered from the most recent trading day (yesterday) to the oldest."""
        return self._complete(
            "Backtest Simulator",
            prompt,
            BacktestResult,
            "Failed to run the simulation. Please try again.",
        )

    def top_picks(self, instrument: str) -> list[OptionPick]:
        """List the top 5 intraday options ideas for today."""
        prompt = (
            f"Analyze today's market conditions for {instrument}. Provide a list of the top 5 "
            "most promising intraday options trading ideas. For each idea, specify the exact "
            "instrument (e.g., NIFTY 23500 CE), the action (Buy or Sell), a hypothetical entry "
            "price in INR for one lot, the approximate capital required in INR to enter one lot, "
            "the potential profit in INR, the potential loss (max loss) in INR, and a brief "
            "rationale for the trade. The suggestions are for paper trading only."
        )
        return self._complete(
            "Top Picks",
            prompt,
            TopPicks,
            "Failed to get top picks from the AI. Please try again.",
        ).picks

    def find_strategies(
        self,
        instrument: str,
        target_profit: float,
        max_loss: float,
    ) -> list[FoundStrategy]:
        """Find up to 3 strategies matching a profit target and loss cap."""
        prompt = (
            f"Based on today's intraday market conditions for {instrument}, find up to 3 "
            f"options strategies from this list: {strategy_names()}. The strategies should "
            "have a reasonable probability of achieving a profit greater than "
            f"{target_profit:g} INR, while keeping the maximum potential loss below "
            f"{max_loss:g} INR for a single lot. For each suggested strategy, provide the "
            "strategy name, a brief rationale explaining why it fits the criteria, the "
            "suggested strike prices, and the estimated profit and loss in INR."
        )
        return self._complete(
            "Strategy Finder",
            prompt,
            FoundStrategies,
            "Failed to find strategies from the AI. Please try again.",
        ).strategies
