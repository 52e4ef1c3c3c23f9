"""
LLM Provider Implementations
"""

from .claude import ClaudeModel
from .gemini import GeminiModel
from .openai import OpenAIModel

__all__ = ['ClaudeModel', 'GeminiModel', 'OpenAIModel']
