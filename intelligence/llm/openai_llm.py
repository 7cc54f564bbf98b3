"""
OpenAI LLM
支持 GPT-4o, GPT-4o-mini 等模型
"""
from typing import List, Optional
import logging
import inspect

from utils.exceptions import LLMError, SafetyBlockedError

from .base import BaseLLM, Message, LLMResponse


logger = logging.getLogger(__name__)


class OpenAILLM(BaseLLM):
    """
    OpenAI LLM 实现

    支持模型:
    - gpt-4o
    - gpt-4o-mini (经济)
    - gpt-4-turbo
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 8000,
        timeout: float = 90.0,
        **kwargs,
    ):
        super().__init__(model, api_key, temperature, max_tokens, timeout, **kwargs)
        self.base_url = base_url
        self._async_client = None

    @property
    def provider(self) -> str:
        return "openai"

    def _get_async_client(self):
        """获取异步客户端"""
        if self._async_client is None:
            api_key = self._require_api_key()
            from openai import AsyncOpenAI
            self._async_client = AsyncOpenAI(
                api_key=api_key,
                base_url=self.base_url,
                timeout=self.timeout,
            )
        return self._async_client

    async def acomplete(
        self,
        messages: List[Message],
        **kwargs,
    ) -> LLMResponse:
        """异步生成响应"""
        client = self._get_async_client()

        request_params = {
            "model": self.model,
            "messages": [{"role": m.role.value, "content": m.content} for m in messages],
            "temperature": kwargs.get("temperature", self.temperature),
            "max_tokens": kwargs.get("max_tokens", self.max_tokens),
        }

        logger.info(f"Calling OpenAI ({self.model})...")
        try:
            response = await client.chat.completions.create(**request_params)
        except Exception as exc:
            raise LLMError(f"OpenAI API error: {exc}", provider="openai") from exc

        if not getattr(response, "choices", None):
            raise LLMError("Invalid response from OpenAI API", provider="openai")

        choice = response.choices[0]
        if choice.finish_reason == "content_filter":
            raise SafetyBlockedError("Content blocked by safety filters", provider="openai")

        content = choice.message.content or ""
        if not content.strip():
            raise LLMError("OpenAI returned an empty completion", provider="openai")

        usage = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return LLMResponse(
            content=content,
            model=response.model,
            usage=usage,
            finish_reason=choice.finish_reason,
            raw_response=response,
        )

    async def aclose(self) -> None:
        client = self._async_client
        if client is None:
            return
        close_fn = getattr(client, "close", None)
        if callable(close_fn):
            maybe_awaitable = close_fn()
            if inspect.isawaitable(maybe_awaitable):
                await maybe_awaitable
        self._async_client = None
