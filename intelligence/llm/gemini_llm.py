"""
Google Gemini LLM
默认的文章生成后端
"""
from typing import Any, List, Optional, Tuple
import asyncio
import logging

from utils.exceptions import LLMError, SafetyBlockedError

from .base import BaseLLM, Message, LLMResponse


logger = logging.getLogger(__name__)


def _reason_name(reason: Any) -> str:
    if reason is None:
        return ""
    return str(getattr(reason, "name", reason)).upper()


def extract_gemini_text(response: Any) -> Tuple[str, str]:
    """
    从 Gemini 响应中取出文本

    Returns:
        (text, finish_reason)

    Raises:
        SafetyBlockedError: 提示词或候选结果被安全过滤器拦截
        LLMError: 响应中没有可用的候选文本
    """
    feedback = getattr(response, "prompt_feedback", None)
    block_reason = getattr(feedback, "block_reason", None)
    if block_reason and _reason_name(block_reason) != "BLOCK_REASON_UNSPECIFIED":
        raise SafetyBlockedError(
            f"Prompt blocked by safety filters: {_reason_name(block_reason)}",
            provider="gemini",
        )

    candidates = list(getattr(response, "candidates", None) or [])
    if not candidates:
        raise LLMError("Invalid response from Gemini API", provider="gemini")

    candidate = candidates[0]
    finish_reason = _reason_name(getattr(candidate, "finish_reason", None))
    if finish_reason == "SAFETY":
        raise SafetyBlockedError("Content blocked by safety filters", provider="gemini")

    content = getattr(candidate, "content", None)
    parts = getattr(content, "parts", None) or []
    text = "".join(str(getattr(part, "text", "") or "") for part in parts)
    if not text.strip():
        raise LLMError("Gemini returned an empty candidate", provider="gemini", finish_reason=finish_reason)
    return text, finish_reason


class GeminiLLM(BaseLLM):
    """
    Google Gemini LLM 实现

    支持模型:
    - gemini-2.0-flash (推荐)
    - gemini-1.5-pro
    - gemini-1.5-flash
    """

    def __init__(
        self,
        model: str = "gemini-2.0-flash",
        api_key: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 8000,
        timeout: float = 90.0,
        **kwargs,
    ):
        super().__init__(model, api_key, temperature, max_tokens, timeout, **kwargs)

    @property
    def provider(self) -> str:
        return "gemini"

    async def acomplete(
        self,
        messages: List[Message],
        **kwargs,
    ) -> LLMResponse:
        """
        异步生成响应

        单轮调用 generate_content_async，不经过 ChatSession：
        ChatSession 会在返回前把安全拦截转换成 SDK 自己的异常
        """
        api_key = self._require_api_key()

        import google.generativeai as genai

        genai.configure(api_key=api_key)

        prompt = "\n\n".join(msg.content for msg in messages)

        # 构建模型配置
        generation_config = {
            "temperature": kwargs.get("temperature", self.temperature),
            "max_output_tokens": kwargs.get("max_tokens", self.max_tokens),
        }

        model = genai.GenerativeModel(
            model_name=self.model,
            generation_config=generation_config,
        )

        logger.info(f"Calling Gemini ({self.model})...")
        try:
            response = await asyncio.wait_for(
                model.generate_content_async(prompt),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as exc:
            raise LLMError(f"Gemini request timed out after {self.timeout}s", provider="gemini") from exc
        except Exception as exc:
            raise LLMError(f"Gemini API error: {exc}", provider="gemini") from exc

        content, finish_reason = extract_gemini_text(response)
        logger.info(f"Gemini generated {len(content)} characters")

        # 解析 usage
        usage = {}
        usage_metadata = getattr(response, "usage_metadata", None)
        if usage_metadata:
            usage = {
                "prompt_tokens": usage_metadata.prompt_token_count,
                "completion_tokens": usage_metadata.candidates_token_count,
                "total_tokens": usage_metadata.total_token_count,
            }

        return LLMResponse(
            content=content,
            model=self.model,
            usage=usage,
            finish_reason=finish_reason or None,
            raw_response=response,
        )
