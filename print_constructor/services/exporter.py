"""设计导出流水线.

将文档某一面的元素快照栅格化并编码为印刷文件。

Features:
    - 按层级升序绘制，不可见元素跳过
    - 图片源异步加载（文件路径、data URL、HTTP），单个元素失败只跳过该元素
    - 文本占位符在绘制前替换
    - 产品专用的图片处理钩子和后期叠加效果
    - 超出像素上限时自动降低分辨率
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import io
import math
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import AsyncIterator, Callable, Optional

import httpx
from PIL import Image

from print_constructor.models.design_element import DesignElement, ImageData, ShapeData, TextData
from print_constructor.models.product_config import Dimensions, Unit
from print_constructor.models.results import ExportResult
from print_constructor.services.rasterizer import PillowRasterizer, Rasterizer
from print_constructor.utils.constants import EXPORT_MIME_TYPES, MAX_EXPORT_PIXELS, UNITS_PER_INCH
from print_constructor.utils.exceptions import ImageSourceError, UnsupportedExportFormatError
from print_constructor.utils.logger import setup_logger

logger = setup_logger(__name__)

TextResolver = Callable[[str], str]
ImageAdjuster = Callable[[Image.Image, DesignElement], Image.Image]
PostEffect = Callable[[Image.Image, float], Image.Image]


def _identity(text: str) -> str:
    return text


@dataclass
class RenderJob:
    """一次导出任务.

    元素列表是调用时的文档快照，导出过程中文档的后续变更不影响结果。

    Attributes:
        elements: 元素快照
        dimensions: 产品尺寸
        format: 导出格式
        dpi: 覆盖产品配置的分辨率
        background: 画布背景色，None 为透明
        width_factor: 画布宽度倍数（展开的折页）
        resolve_text: 文本占位符替换函数
        adjust_image: 图片元素的额外处理
        post_effects: 全部元素绘制完成后的叠加效果，接收 (画布, 每单位像素数)
    """

    elements: list[DesignElement]
    dimensions: Dimensions
    format: str = "png"
    dpi: Optional[float] = None
    background: Optional[str] = "#ffffff"
    width_factor: float = 1
    resolve_text: TextResolver = _identity
    adjust_image: Optional[ImageAdjuster] = None
    post_effects: list[PostEffect] = field(default_factory=list)


class ImageLoader:
    """图片源加载器.

    支持本地文件路径、``data:`` URL 和 HTTP(S) 地址，解码在线程中执行。
    HTTP 客户端只在一次加载内有效，不跨事件循环复用；注入的客户端由调用方关闭。
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = 30.0) -> None:
        self._client = client
        self._timeout = timeout

    @asynccontextmanager
    async def open_client(self) -> AsyncIterator[httpx.AsyncClient]:
        """打开本次加载使用的 HTTP 客户端."""
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
            yield client

    @staticmethod
    async def _fetch(src: str, client: httpx.AsyncClient) -> bytes:
        try:
            response = await client.get(src)
        except httpx.HTTPError as e:
            raise ImageSourceError(src, str(e)) from e
        if response.status_code != 200:
            raise ImageSourceError(src, f"HTTP {response.status_code}")
        return response.content

    async def _read(self, src: str, client: Optional[httpx.AsyncClient]) -> bytes:
        if src.startswith("data:"):
            try:
                _, encoded = src.split(",", 1)
                return base64.b64decode(encoded, validate=False)
            except (ValueError, binascii.Error) as e:
                raise ImageSourceError(src, "无效的 data URL") from e

        if src.startswith(("http://", "https://")):
            if client is not None:
                return await self._fetch(src, client)
            async with self.open_client() as own_client:
                return await self._fetch(src, own_client)

        path = Path(src).expanduser()
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise ImageSourceError(src, str(e)) from e

    @staticmethod
    def _decode(data: bytes) -> Image.Image:
        image = Image.open(io.BytesIO(data))
        image.load()
        return image

    async def load(self, src: str, client: Optional[httpx.AsyncClient] = None) -> Image.Image:
        """加载并解码图片.

        Args:
            src: 图片源
            client: 已打开的 HTTP 客户端，省略时按需临时创建

        Raises:
            ImageSourceError: 读取或解码失败
        """
        if not src:
            raise ImageSourceError(src, "图片源为空")
        data = await self._read(src, client)
        try:
            return await asyncio.to_thread(self._decode, data)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise ImageSourceError(src, f"解码失败: {e}") from e


class ExportPipeline:
    """导出流水线.

    Example:
        >>> pipeline = ExportPipeline()
        >>> result = await pipeline.export(RenderJob(elements, config.dimensions, "png"))
        >>> result.mime_type
        'image/png'
    """

    def __init__(
        self,
        rasterizer: Optional[Rasterizer] = None,
        loader: Optional[ImageLoader] = None,
        max_pixels: int = MAX_EXPORT_PIXELS,
    ) -> None:
        self.rasterizer = rasterizer or PillowRasterizer()
        self.loader = loader or ImageLoader()
        self.max_pixels = max_pixels

    # ===================
    # 尺寸计算
    # ===================

    def resolve_scale(self, job: RenderJob) -> tuple[float, float, tuple[int, int]]:
        """计算每单位像素数、实际分辨率和画布像素尺寸.

        Returns:
            (scale, dpi, (width_px, height_px))
        """
        dimensions = job.dimensions
        dpi = float(job.dpi or dimensions.dpi)
        if dimensions.unit == Unit.PX:
            scale = 1.0 if job.dpi is None else job.dpi / dimensions.dpi
        else:
            scale = dpi / UNITS_PER_INCH[dimensions.unit.value]

        width = dimensions.width * job.width_factor * scale
        height = dimensions.height * scale
        if width * height > self.max_pixels:
            ratio = math.sqrt(self.max_pixels / (width * height))
            scale *= ratio
            dpi *= ratio
            width *= ratio
            height *= ratio
            logger.warning(f"导出尺寸超过像素上限，分辨率降至 {dpi:.0f} DPI")

        return scale, dpi, (max(1, round(width)), max(1, round(height)))

    # ===================
    # 渲染
    # ===================

    async def _load_sources(self, elements: list[DesignElement]) -> dict[str, Optional[Image.Image]]:
        """并发加载所有图片元素的源，失败的元素映射为 None."""
        image_elements = [e for e in elements if isinstance(e.data, ImageData)]
        if not image_elements:
            return {}

        async with self.loader.open_client() as client:

            async def load_one(element: DesignElement) -> Optional[Image.Image]:
                try:
                    return await self.loader.load(element.data.src, client)
                except ImageSourceError as e:
                    logger.warning(f"图片元素 {element.id} 加载失败，已跳过: {e}")
                    return None

            images = await asyncio.gather(*(load_one(e) for e in image_elements))
        return {element.id: image for element, image in zip(image_elements, images)}

    async def render(self, job: RenderJob) -> tuple[Image.Image, float]:
        """栅格化任务.

        Returns:
            (画布, 实际分辨率)
        """
        scale, dpi, size = self.resolve_scale(job)
        text_dpi = dpi if job.dimensions.unit != Unit.PX else 72.0 * scale
        canvas = self.rasterizer.new_canvas(size, job.background)

        visible = sorted((e for e in job.elements if e.visible), key=lambda e: e.layer)
        sources = await self._load_sources(visible)

        for element in visible:
            try:
                if isinstance(element.data, TextData):
                    text = job.resolve_text(element.data.text)
                    canvas = self.rasterizer.draw_text(canvas, element, text, scale, text_dpi)
                elif isinstance(element.data, ShapeData):
                    canvas = self.rasterizer.draw_shape(canvas, element, scale)
                else:
                    source = sources.get(element.id)
                    if source is None:
                        continue
                    if job.adjust_image:
                        source = job.adjust_image(source, element)
                    canvas = self.rasterizer.draw_image(canvas, element, source, scale)
            except (ValueError, OSError) as e:
                logger.warning(f"元素 {element.id} 绘制失败，已跳过: {e}")

        for effect in job.post_effects:
            canvas = effect(canvas, scale)

        return canvas, dpi

    async def export(self, job: RenderJob) -> ExportResult:
        """渲染并编码.

        Raises:
            UnsupportedExportFormatError: 格式不受支持
        """
        fmt = job.format.lower()
        if fmt not in EXPORT_MIME_TYPES:
            raise UnsupportedExportFormatError(job.format)

        canvas, dpi = await self.render(job)
        unit = job.dimensions.unit.value
        physical = (
            f"{job.dimensions.width * job.width_factor:g}{unit}",
            f"{job.dimensions.height:g}{unit}",
        )
        data = await asyncio.to_thread(self.rasterizer.encode, canvas, fmt, dpi, physical)

        logger.info(f"导出完成: {fmt}, {canvas.width}x{canvas.height}, {len(data)} bytes")
        return ExportResult(
            data=data,
            mime_type=EXPORT_MIME_TYPES[fmt],
            format=fmt,
            width=canvas.width,
            height=canvas.height,
        )
