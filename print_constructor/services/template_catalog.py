"""模板目录服务.

产品构造器自带种子模板，可再从外部模板源补充。

Features:
    - 本地目录模板源（.template.json 文件）
    - 远程 HTTP 模板源（httpx，连接失败和超时自动重试）
    - 模板合并（种子模板始终保留，同 ID 外部模板被忽略）
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Iterable, Optional, Protocol

import httpx
from pydantic import ValidationError

from print_constructor.models.template import DesignTemplate
from print_constructor.utils.constants import TEMPLATE_EXTENSION, TEMPLATE_SOURCE_TIMEOUT
from print_constructor.utils.exceptions import TemplateSourceError
from print_constructor.utils.logger import setup_logger
from print_constructor.utils.retry import async_retry

logger = setup_logger(__name__)


class TemplateSource(Protocol):
    """外部模板源协议."""

    async def fetch(self, product_type: str) -> list[DesignTemplate]:
        """获取指定产品类型的模板."""
        ...


def merge_templates(
    seed: Iterable[DesignTemplate],
    extra: Iterable[DesignTemplate],
) -> list[DesignTemplate]:
    """合并模板列表.

    种子模板在前；外部模板按 ID 去重，且不能覆盖种子模板。

    Args:
        seed: 种子模板
        extra: 外部模板

    Returns:
        合并后的模板列表
    """
    merged = list(seed)
    seen = {template.id for template in merged}
    for template in extra:
        if template.id in seen:
            logger.debug(f"忽略重复模板: {template.id}")
            continue
        seen.add(template.id)
        merged.append(template)
    return merged


# ===================
# 本地目录模板源
# ===================


class FileTemplateSource:
    """本地目录模板源.

    读取目录下所有 .template.json 文件，无法解析的文件记录警告后跳过。

    Example:
        >>> source = FileTemplateSource(Path("~/.print-constructor/templates"))
        >>> templates = await source.fetch("business-cards")
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory).expanduser()

    def _read_all(self) -> list[DesignTemplate]:
        if not self.directory.is_dir():
            logger.debug(f"模板目录不存在: {self.directory}")
            return []

        templates = []
        for path in sorted(self.directory.glob(f"*{TEMPLATE_EXTENSION}")):
            try:
                templates.append(DesignTemplate.from_json(path.read_text(encoding="utf-8")))
            except (OSError, ValidationError) as e:
                logger.warning(f"跳过无效模板文件: {path.name}, 错误: {e}")
        return templates

    async def fetch(self, product_type: str) -> list[DesignTemplate]:
        """读取指定产品类型的模板."""
        templates = await asyncio.to_thread(self._read_all)
        return [t for t in templates if t.product_type == product_type]

    def save(self, template: DesignTemplate) -> Path:
        """保存模板到目录.

        Args:
            template: 模板

        Returns:
            模板文件路径

        Raises:
            TemplateSourceError: 写入失败
        """
        path = self.directory / f"{template.id}{TEMPLATE_EXTENSION}"
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_text(template.to_json(), encoding="utf-8")
        except OSError as e:
            raise TemplateSourceError(f"保存模板失败: {template.id}, {e}") from e
        logger.info(f"模板已保存: {path}")
        return path


# ===================
# 远程模板源
# ===================


class RemoteTemplateSource:
    """远程 HTTP 模板源.

    请求 ``GET {base_url}/templates?product_type=...``，响应为模板对象数组，
    或 ``{"templates": [...]}``。

    Attributes:
        base_url: 服务地址
        timeout: 请求超时（秒）
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = TEMPLATE_SOURCE_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """初始化远程模板源.

        Args:
            base_url: 服务地址
            timeout: 请求超时（秒）
            client: 自定义 HTTP 客户端（测试时可注入 MockTransport）
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http_client = client

    @property
    def http_client(self) -> httpx.AsyncClient:
        """获取 HTTP 客户端."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    @async_retry(
        max_retries=2,
        delay=0.5,
        backoff=2.0,
        exceptions=(httpx.ConnectError, httpx.TimeoutException),
    )
    async def _request(self, product_type: str) -> httpx.Response:
        return await self.http_client.get(
            f"{self.base_url}/templates",
            params={"product_type": product_type},
        )

    async def fetch(self, product_type: str) -> list[DesignTemplate]:
        """获取远程模板.

        Raises:
            TemplateSourceError: 连接失败、状态码异常或数据格式错误
        """
        try:
            response = await self._request(product_type)
        except httpx.TimeoutException as e:
            logger.error(f"模板源请求超时: {self.base_url}")
            raise TemplateSourceError(f"模板源请求超时 ({self.timeout}s)") from e
        except httpx.HTTPError as e:
            logger.error(f"模板源连接错误: {self.base_url}, {e}")
            raise TemplateSourceError(f"无法连接到模板源: {e}") from e

        if response.status_code != 200:
            raise TemplateSourceError(f"模板源返回错误状态: {response.status_code}")

        try:
            payload = response.json()
        except json.JSONDecodeError as e:
            raise TemplateSourceError("模板源返回的不是 JSON") from e

        items = payload.get("templates", []) if isinstance(payload, dict) else payload
        if not isinstance(items, list):
            raise TemplateSourceError("模板源数据格式错误")

        templates = []
        for item in items:
            try:
                template = DesignTemplate.model_validate(item)
            except ValidationError as e:
                logger.warning(f"跳过无效远程模板: {e.error_count()} 个字段错误")
                continue
            if template.product_type == product_type:
                templates.append(template)

        logger.info(f"从模板源获取 {len(templates)} 个模板: {product_type}")
        return templates

    async def close(self) -> None:
        """关闭 HTTP 客户端."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "RemoteTemplateSource":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
