"""
LLM Factory
工厂函数 - 根据配置自动创建 LLM 实例
"""
from typing import TYPE_CHECKING, Optional
import logging

from utils.exceptions import ConfigurationError

from .base import BaseLLM
from .openai_llm import OpenAILLM
from .gemini_llm import GeminiLLM

if TYPE_CHECKING:
    from config import LLMSettings


logger = logging.getLogger(__name__)


# 默认模型配置
DEFAULT_MODELS = {
    "gemini": "gemini-2.0-flash",
    "openai": "gpt-4o-mini",
}


def get_llm(
    provider: Optional[str] = None,
    model: Optional[str] = None,
    settings: Optional["LLMSettings"] = None,
    **kwargs,
) -> BaseLLM:
    """
    获取 LLM 实例

    自动从 .env 读取配置，也可手动指定。
    API Key 不在这里校验，首次调用时才会失败。

    Example:
        # 使用 .env 配置
        llm = get_llm()

        # 指定供应商和模型
        llm = get_llm(provider="openai", model="gpt-4o")
    """
    from config import get_llm_settings

    settings = settings or get_llm_settings()

    provider = (provider or settings.provider or "gemini").lower()
    if provider not in DEFAULT_MODELS:
        raise ConfigurationError(f"Unsupported LLM provider: {provider}", {"supported": sorted(DEFAULT_MODELS)})

    if model is None and provider == (settings.provider or "").lower():
        model = settings.model_name
    model = model or DEFAULT_MODELS[provider]

    api_keys = {
        "gemini": settings.gemini_api_key,
        "openai": settings.openai_api_key,
    }
    api_key = kwargs.pop("api_key", None) or api_keys.get(provider)

    # 合并默认参数
    default_params = {
        "temperature": settings.temperature,
        "max_tokens": settings.max_tokens,
        "timeout": settings.timeout,
    }
    for key, value in default_params.items():
        if key not in kwargs:
            kwargs[key] = value

    logger.debug(f"Creating {provider} LLM ({model})")
    if provider == "openai":
        return OpenAILLM(
            model=model,
            api_key=api_key,
            base_url=kwargs.pop("base_url", None),
            **kwargs,
        )
    return GeminiLLM(
        model=model,
        api_key=api_key,
        **kwargs,
    )
