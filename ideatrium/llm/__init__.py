"""
LLM integration: generative-language client and prompt templates
"""

from .client import GeminiClient
from .prompt_manager import PromptManager

__all__ = ["GeminiClient", "PromptManager"]
