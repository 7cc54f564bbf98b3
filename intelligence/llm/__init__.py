"""
LLM Module
多供应商 LLM 抽象层
"""
from .base import BaseLLM, LLMResponse, Message, MessageRole
from .openai_llm import OpenAILLM
from .gemini_llm import GeminiLLM, extract_gemini_text
from .factory import DEFAULT_MODELS, get_llm

__all__ = [
    "BaseLLM",
    "LLMResponse",
    "Message",
    "MessageRole",
    "OpenAILLM",
    "GeminiLLM",
    "extract_gemini_text",
    "DEFAULT_MODELS",
    "get_llm",
]
