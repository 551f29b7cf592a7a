"""Tests for the advisory agent.

Model calls are replaced by a fake runner so no API key is needed.
"""

import json
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from optiontrader.agents.advisor import AdvisoryAgent, AdvisoryError
from optiontrader.agents.base import DEFAULT_MODEL, create_agent, get_model, run_agent_sync
from optiontrader.models import (
    BacktestResult,
    FoundStrategies,
    StrategySuggestion,
    TopPicks,
)

SUGGESTION = {
    "strategy_name": "Iron Condor",
    "rationale": "Range-bound market.",
    "parameters": {
        "view": "Neutral",
        "suggested_strikes": "OTM Call & OTM Put",
        "stop_loss": "50% of max loss",
    },
    "risks": "Breakout on news.",
}

BACKTEST = {
    "pnl": 1.5,
    "pnl_amount": 1200.0,
    "required_capital": 80000.0,
    "max_loss": 5000.0,
    "strategy_legs": [{"instrument": "NIFTY 23500 CE", "action": "Sell", "entry_price": 120.0}],
    "commentary": "Theta decay helped.",
    "data_points": [{"time": "09:30", "pnl_amount": 0.0}, {"time": "10:30", "pnl_amount": 300.0}],
    "historical_pnl": [{"date": "2024-12-24", "pnl_amount": -400.0}],
}


class FakeRunner:
    """Records prompts and returns a canned output."""

    def __init__(self, output):
        self.output = output
        self.calls = []

    def __call__(self, agent, message):
        self.calls.append((agent, message))
        if isinstance(self.output, Exception):
            raise self.output
        return self.output


class TestAdvisoryAgent:
    def test_suggest_strategy_from_model_instance(self):
        runner = FakeRunner(StrategySuggestion.model_validate(SUGGESTION))
        result = AdvisoryAgent(runner=runner).suggest_strategy("NIFTY")

        assert result.strategy_name == "Iron Condor"
        agent, prompt = runner.calls[0]
        assert agent.output_type is StrategySuggestion
        assert "NIFTY" in prompt
        assert "Iron Condor" in prompt and "Short Strangle" in prompt

    def test_suggest_strategy_from_json_text(self):
        runner = FakeRunner("  " + json.dumps(SUGGESTION) + "\n")
        result = AdvisoryAgent(runner=runner).suggest_strategy("BANKNIFTY")
        assert result.parameters.view == "Neutral"

    def test_backtest_prompt_has_date(self):
        runner = FakeRunner(BACKTEST)
        today = lambda: datetime(2024, 12, 26, 4, 0, tzinfo=timezone.utc)  # noqa: E731

        result = AdvisoryAgent(runner=runner, today=today).run_backtest("NIFTY", "Iron Condor")

        assert isinstance(result, BacktestResult)
        assert result.strategy_legs[0].entry_price == 120.0
        prompt = runner.calls[0][1]
        assert "2024-12-26" in prompt
        assert "'Iron Condor'" in prompt

    def test_top_picks_unwraps_list(self):
        runner = FakeRunner(TopPicks(picks=[]))
        assert AdvisoryAgent(runner=runner).top_picks("NIFTY") == []

    def test_find_strategies_prompt_has_thresholds(self):
        runner = FakeRunner({"strategies": [{
            "strategy_name": "Bull Call Spread",
            "rationale": "Mild upside.",
            "suggested_strikes": "Buy 23500 CE, Sell 23700 CE",
            "estimated_profit": 4000,
            "estimated_loss": 2000,
        }]})

        found = AdvisoryAgent(runner=runner).find_strategies("NIFTY", 3000, 5000)

        assert [s.strategy_name for s in found] == ["Bull Call Spread"]
        agent, prompt = runner.calls[0]
        assert agent.output_type is FoundStrategies
        assert "3000 INR" in prompt
        assert "5000 INR" in prompt

    @pytest.mark.parametrize("output", [
        RuntimeError("rate limited"),
        "not json",
        {"strategy_name": "missing fields"},
    ])
    def test_failures_raise_advisory_error(self, output):
        advisor = AdvisoryAgent(runner=FakeRunner(output))
        with pytest.raises(AdvisoryError, match="Failed to get a strategy suggestion"):
            advisor.suggest_strategy("NIFTY")

    def test_model_override(self):
        runner = FakeRunner(TopPicks(picks=[]))
        AdvisoryAgent(model="gpt-test", runner=runner).top_picks("NIFTY")
        assert runner.calls[0][0].model == "gpt-test"


class TestAgentBase:
    def test_model_from_env(self, monkeypatch):
        monkeypatch.delenv("OPENAI_MODEL", raising=False)
        assert get_model() == DEFAULT_MODEL
        monkeypatch.setenv("OPENAI_MODEL", "gpt-other")
        assert get_model() == "gpt-other"
        assert create_agent("A", "do things").model == "gpt-other"

    def test_run_agent_sync_returns_final_output(self):
        agent = create_agent("A", "do things", model="gpt-test")
        with patch("optiontrader.agents.base.Runner") as runner:
            runner.run_sync.return_value = MagicMock(final_output="done")
            assert run_agent_sync(agent, "hi") == "done"
            runner.run_sync.assert_called_once_with(agent, "hi", context=None)
