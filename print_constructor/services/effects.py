"""图片效果工具模块.

提供产品导出时使用的色调调整、滤镜和材质叠加效果。
所有函数保留输入图片的透明通道。
"""

from __future__ import annotations

from typing import Callable, Optional

from PIL import Image, ImageEnhance, ImageFilter, ImageOps

from print_constructor.models.design_element import GradientFill
from print_constructor.services.rasterizer import render_gradient

# 棕褐色转换矩阵（RGB -> RGB）
SEPIA_MATRIX = (
    0.393, 0.769, 0.189, 0,
    0.349, 0.686, 0.168, 0,
    0.272, 0.534, 0.131, 0,
)


def ensure_rgba(image: Image.Image) -> Image.Image:
    """确保图片为 RGBA 模式.

    Args:
        image: PIL Image 对象

    Returns:
        RGBA 模式的图片
    """
    if image.mode != "RGBA":
        return image.convert("RGBA")
    return image


def _on_rgb(image: Image.Image, operation: Callable[[Image.Image], Image.Image]) -> Image.Image:
    """对 RGB 通道执行处理并恢复原透明通道."""
    image = ensure_rgba(image)
    alpha = image.getchannel("A")
    result = operation(image.convert("RGB")).convert("RGBA")
    result.putalpha(alpha)
    return result


def adjust_tone(
    image: Image.Image,
    brightness: float = 1.0,
    contrast: float = 1.0,
    saturation: float = 1.0,
) -> Image.Image:
    """调整亮度、对比度、饱和度（1.0 为原值）.

    Args:
        image: PIL Image 对象
        brightness: 亮度倍数
        contrast: 对比度倍数
        saturation: 饱和度倍数

    Returns:
        调整后的 RGBA 图片
    """

    def operation(rgb: Image.Image) -> Image.Image:
        if brightness != 1.0:
            rgb = ImageEnhance.Brightness(rgb).enhance(brightness)
        if contrast != 1.0:
            rgb = ImageEnhance.Contrast(rgb).enhance(contrast)
        if saturation != 1.0:
            rgb = ImageEnhance.Color(rgb).enhance(saturation)
        return rgb

    if brightness == contrast == saturation == 1.0:
        return ensure_rgba(image)
    return _on_rgb(image, operation)


def grayscale(image: Image.Image, amount: float = 1.0) -> Image.Image:
    """按比例去色（0 原图，1 完全灰度）."""
    amount = min(max(amount, 0.0), 1.0)
    return _on_rgb(
        image,
        lambda rgb: Image.blend(rgb, ImageOps.grayscale(rgb).convert("RGB"), amount),
    )


def sepia(image: Image.Image, amount: float = 1.0) -> Image.Image:
    """按比例做棕褐色处理."""
    amount = min(max(amount, 0.0), 1.0)
    return _on_rgb(image, lambda rgb: Image.blend(rgb, rgb.convert("RGB", SEPIA_MATRIX), amount))


def gaussian_blur(image: Image.Image, radius: float) -> Image.Image:
    if radius <= 0:
        return image
    return ensure_rgba(image).filter(ImageFilter.GaussianBlur(radius))


def overlay_gradient(
    canvas: Image.Image,
    fill: GradientFill,
    box: Optional[tuple[int, int, int, int]] = None,
) -> Image.Image:
    """在画布（或其中一个矩形区域）上叠加半透明渐变.

    Args:
        canvas: 画布
        fill: 渐变描述（色标可带透明度）
        box: 叠加区域 (left, top, right, bottom)，默认整张画布

    Returns:
        叠加后的 RGBA 画布
    """
    canvas = ensure_rgba(canvas)
    left, top, right, bottom = box or (0, 0, canvas.width, canvas.height)
    width, height = right - left, bottom - top
    if width <= 0 or height <= 0:
        return canvas
    canvas.alpha_composite(render_gradient(fill, (width, height)), dest=(left, top))
    return canvas
