"""Generative-AI review layer."""

from .gemini import GeminiClient
from .json_repair import repair_json
from .strategy import PromptRequest, TwoStepStrategy

__all__ = ["GeminiClient", "repair_json", "PromptRequest", "TwoStepStrategy"]
