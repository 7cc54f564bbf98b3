"""
Base Scraper
抓取策略抽象基类 + 降级链驱动
"""
from abc import ABC, abstractmethod
from typing import Generic, Sequence, Tuple, Type, TypeVar
import logging

from utils.exceptions import FallbackExhaustedError


logger = logging.getLogger(__name__)

I = TypeVar("I")  # 输入类型
T = TypeVar("T")  # 返回类型


class ExtractionStrategy(ABC, Generic[I, T]):
    """
    抓取策略抽象基类

    同一能力 (如页面正文抽取) 的多个实现按优先级排列，
    由 run_fallback_chain 依次尝试。
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """返回策略名称"""
        pass

    @abstractmethod
    async def extract(self, target: I) -> T:
        """
        执行抽取，失败时直接抛出异常

        Args:
            target: 抽取目标 (URL / 搜索请求)

        Returns:
            抽取结果
        """
        pass

    def accepts(self, result: T, target: I) -> bool:
        """
        结果是否足够好，不足时降级到下一层
        子类可以覆盖此方法
        """
        return True

    async def __aenter__(self):
        """异步上下文管理器入口"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.aclose()

    async def aclose(self) -> None:
        """清理资源"""
        return None

    def _log_error(self, message: str, error: Exception):
        """记录错误日志"""
        logger.warning(f"[{self.name}] {message}: {error}")


async def run_fallback_chain(
    strategies: Sequence[ExtractionStrategy[I, T]],
    target: I,
    *,
    fatal_errors: Tuple[Type[BaseException], ...] = (),
) -> T:
    """
    按顺序尝试各层策略

    - 抛出异常 (fatal_errors 除外) 或结果不被接受时，进入下一层
    - 返回第一个被接受的结果
    - 链条以未被接受的结果结束时返回该结果；以异常结束时抛出 FallbackExhaustedError
    """
    if not strategies:
        raise FallbackExhaustedError("No strategies configured")

    last_result = None
    last_error = None

    for strategy in strategies:
        try:
            result = await strategy.extract(target)
        except fatal_errors:
            raise
        except Exception as exc:
            strategy._log_error("Strategy failed", exc)
            last_result, last_error = None, exc
            continue

        if strategy.accepts(result, target):
            return result

        logger.info(f"[{strategy.name}] Result below threshold, escalating")
        last_result, last_error = result, None

    if last_result is not None:
        return last_result

    raise FallbackExhaustedError(
        f"All strategies failed: {last_error}",
        source=strategies[-1].name,
    ) from last_error
