"""AI agents for OptionTrader.

- AdvisoryAgent: strategy suggestions, simulated backtests, top picks
  and target-driven strategy search
"""

from optiontrader.agents.base import (
    create_agent,
    get_api_key,
    get_model,
    run_agent_sync,
)
from optiontrader.agents.advisor import AdvisoryAgent, AdvisoryError

__all__ = [
    "AdvisoryAgent",
    "AdvisoryError",
    "create_agent",
    "get_api_key",
    "get_model",
    "run_agent_sync",
]
