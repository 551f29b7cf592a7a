"""Base utilities for AI agents.

This module provides common utilities for creating and running AI agents
using the OpenAI Agents SDK.
"""

import logging
import os
from typing import Any, Optional

# Disable tracing to avoid noisy 503 errors from telemetry
os.environ.setdefault("OPENAI_AGENTS_DISABLE_TRACING", "1")

from agents import Agent, Runner

logger = logging.getLogger(__name__)

# Default model to use for agents
DEFAULT_MODEL = "gpt-5.2"


def get_model() -> str:
    """Get the model to use for agents.
    
    Checks OPENAI_MODEL environment variable, falls back to default.
    """
    return os.environ.get("OPENAI_MODEL", DEFAULT_MODEL)


def get_api_key() -> Optional[str]:
    """Get the OpenAI API key, or None if not configured."""
    return os.environ.get("OPENAI_API_KEY")


def create_agent(
    name: str,
    instructions: str,
    output_type: Optional[type] = None,
    model: Optional[str] = None,
) -> Agent:
    """Create an AI agent with the specified configuration.
    
    Args:
        name: Name of the agent.
        instructions: System instructions for the agent.
        output_type: Optional pydantic model the agent must answer with.
        model: Optional model override. Uses default if not specified.
        
    Returns:
        Configured Agent instance.
    """
    return Agent(
        name=name,
        instructions=instructions,
        output_type=output_type,
        model=model or get_model(),
    )


def run_agent_sync(
    agent: Agent,
    message: str,
    context: Optional[dict[str, Any]] = None,
) -> Any:
    """Run an agent synchronously and return its final output.
    
    Args:
        agent: The agent to run.
        message: User message to send to the agent.
        context: Optional context dictionary to pass to the agent.
        
    Returns:
        The agent's final output (a string, or an instance of its output type).
    """
    logger.debug("Running agent %s with model %s", agent.name, agent.model)
    result = Runner.run_sync(agent, message, context=context)
    return result.final_output
