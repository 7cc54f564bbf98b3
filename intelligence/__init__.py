"""
Intelligence Module
LLM 抽象层 + 文章生成
"""
from .llm import (
    BaseLLM,
    LLMResponse,
    Message,
    OpenAILLM,
    GeminiLLM,
    get_llm,
)
from .synthesizer import (
    ArticleSynthesizer,
    MANUAL_FALLBACK_TEXT,
    build_last_resort_article,
    build_prompt,
    clean_generated_content,
)

__all__ = [
    # LLM
    "BaseLLM",
    "LLMResponse",
    "Message",
    "OpenAILLM",
    "GeminiLLM",
    "get_llm",
    # Synthesis
    "ArticleSynthesizer",
    "MANUAL_FALLBACK_TEXT",
    "build_last_resort_article",
    "build_prompt",
    "clean_generated_content",
]
