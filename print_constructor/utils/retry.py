"""重试机制模块.

提供异步函数重试装饰器，用于模板源等网络访问。

Features:
    - 可配置重试次数和延迟
    - 指数退避
    - 异常类型过滤
"""

from __future__ import annotations

import asyncio
import functools
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

from print_constructor.utils.logger import setup_logger

logger = setup_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def async_retry(
    max_retries: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    max_delay: float = 30.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable[[int, Exception], None]] = None,
) -> Callable[[F], F]:
    """异步函数重试装饰器.

    Args:
        max_retries: 最大重试次数
        delay: 初始延迟（秒）
        backoff: 退避乘数
        max_delay: 最大延迟（秒）
        exceptions: 需要重试的异常类型
        on_retry: 重试时的回调函数 (attempt, exception)

    Returns:
        装饰器函数

    Example:
        >>> @async_retry(max_retries=3, exceptions=(httpx.ConnectError,))
        ... async def fetch_templates():
        ...     pass
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            current_delay = delay

            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= max_retries:
                        logger.error(
                            f"异步函数 {func.__name__} 重试 {max_retries} 次后仍然失败: {e}"
                        )
                        raise

                    logger.warning(
                        f"异步函数 {func.__name__} 执行失败 (尝试 {attempt + 1}/{max_retries + 1}): {e}"
                    )
                    if on_retry:
                        on_retry(attempt + 1, e)
                    await asyncio.sleep(current_delay)
                    current_delay = min(current_delay * backoff, max_delay)

        return wrapper  # type: ignore

    return decorator
