"""
Agents package for Gemini-backed review agents.

Each agent follows a consistent structure with agent.py and prompts.py.
"""

from agents.registry import registry, register_agent
from agents.base import BaseAgent

# Import all agents to register them
from agents.review.agent import IdeaSimilarityAgent

__all__ = [
    "registry",
    "register_agent",
    "BaseAgent",
    "IdeaSimilarityAgent",
]
