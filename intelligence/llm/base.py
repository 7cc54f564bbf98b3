"""
Base LLM
LLM 抽象基类
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Dict, Any
from dataclasses import dataclass, field
from enum import Enum

from utils.exceptions import LLMCredentialsError


# .env 模板里常见的占位符
_PLACEHOLDER_MARKERS = ("your_", "_here")


class MessageRole(str, Enum):
    """消息角色 (文章生成只发送单轮用户提示词)"""
    USER = "user"


@dataclass
class Message:
    """对话消息"""
    role: MessageRole
    content: str

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=MessageRole.USER, content=content)


@dataclass
class LLMResponse:
    """LLM 响应"""
    content: str
    model: str
    usage: Dict[str, int] = field(default_factory=dict)  # prompt_tokens, completion_tokens, total_tokens
    finish_reason: Optional[str] = None
    raw_response: Optional[Any] = None  # 原始响应对象


class BaseLLM(ABC):
    """
    LLM 抽象基类

    所有 LLM 供应商实现需继承此类
    """

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 8000,
        timeout: float = 90.0,
        **kwargs,
    ):
        self.model = model
        self.api_key = api_key
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.extra_config = kwargs

    @property
    @abstractmethod
    def provider(self) -> str:
        """返回供应商名称"""
        pass

    @abstractmethod
    async def acomplete(
        self,
        messages: List[Message],
        **kwargs,
    ) -> LLMResponse:
        """
        异步生成响应

        Args:
            messages: 对话消息列表
            **kwargs: 额外参数 (temperature, max_tokens)

        Returns:
            LLMResponse

        Raises:
            LLMError: 凭据无效、非 2xx、响应格式错误或超时
            SafetyBlockedError: 内容被安全过滤器拦截
        """
        pass

    def _require_api_key(self) -> str:
        """首次使用时校验 API Key，缺失或为占位符时立即失败"""
        key = (self.api_key or "").strip()
        if not key or any(marker in key for marker in _PLACEHOLDER_MARKERS):
            raise LLMCredentialsError(
                f"{self.provider} API key not configured properly",
                provider=self.provider,
            )
        return key

    async def achat(self, user_message: str, **kwargs) -> str:
        """异步简单对话接口"""
        response = await self.acomplete([Message.user(user_message)], **kwargs)
        return response.content

    async def aclose(self) -> None:
        """
        关闭底层客户端资源（默认 no-op）。
        子类可覆盖以释放 HTTP 连接池，避免事件循环关闭时的析构警告。
        """
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model}, provider={self.provider})"
