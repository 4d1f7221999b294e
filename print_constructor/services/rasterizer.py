"""栅格化绘制后端.

将设计元素绘制到 Pillow 位图上。导出流水线只依赖 Rasterizer 协议，
可替换为其他二维绘图后端。

Features:
    - 每个元素先绘制到独立的透明图层，再旋转、调整透明度并合成
    - 形状：矩形（含圆角）、圆形、三角形、多边形、直线、箭头，支持渐变填充
    - 文字：多行、对齐、字间距、阴影、下划线
    - 图片：百分比裁剪、亮度/对比度/饱和度/模糊调整、蒙版形状
    - 编码为 PNG / JPEG / PDF / SVG
"""

from __future__ import annotations

import base64
import io
import math
import os
import re
from typing import Optional, Protocol

from PIL import Image, ImageColor, ImageDraw, ImageEnhance, ImageFilter, ImageFont

from print_constructor.models.design_element import (
    DesignElement,
    GradientFill,
    ImageData,
    ShapeData,
    ShapeKind,
    TextAlign,
    TextData,
)
from print_constructor.utils.constants import DEFAULT_JPEG_QUALITY, EXPORT_MIME_TYPES
from print_constructor.utils.exceptions import UnsupportedExportFormatError
from print_constructor.utils.logger import setup_logger

logger = setup_logger(__name__)

RGBA = tuple[int, int, int, int]


# ===================
# 常量定义
# ===================

# 字号按印刷点数计算：1pt = 1/72 英寸
POINTS_PER_INCH = 72.0

FONT_SEARCH_PATHS = [
    "/System/Library/Fonts/",
    "/System/Library/Fonts/Supplemental/",
    "/Library/Fonts/",
    "~/Library/Fonts/",
    "C:/Windows/Fonts/",
    "/usr/share/fonts/",
    "/usr/share/fonts/truetype/",
    "/usr/share/fonts/truetype/dejavu/",
]

FALLBACK_FONTS = ["Arial.ttf", "DejaVuSans.ttf", "LiberationSans-Regular.ttf"]


# ===================
# 颜色解析
# ===================


_RGBA_PATTERN = re.compile(
    r"rgba?\(\s*([\d.]+)\s*,\s*([\d.]+)\s*,\s*([\d.]+)\s*(?:,\s*([\d.]+%?)\s*)?\)",
    re.I,
)


def parse_color(value: Optional[str], default: RGBA = (0, 0, 0, 0)) -> RGBA:
    """解析 CSS 颜色.

    支持十六进制、颜色名、rgb()/rgba()（alpha 为 0-1 小数或百分比）、hsl()、transparent。

    Args:
        value: 颜色字符串
        default: 空值时的默认颜色

    Returns:
        RGBA 元组

    Raises:
        ValueError: 无法识别的颜色
    """
    if value is None or value == "" or value == "none":
        return default
    text = value.strip()
    if text.lower() == "transparent":
        return (0, 0, 0, 0)

    match = _RGBA_PATTERN.fullmatch(text)
    if match:
        r, g, b = (min(255, int(float(match.group(i)))) for i in (1, 2, 3))
        alpha_text = match.group(4)
        if alpha_text is None:
            alpha = 255
        elif alpha_text.endswith("%"):
            alpha = round(float(alpha_text[:-1]) * 2.55)
        else:
            alpha = round(min(1.0, float(alpha_text)) * 255)
        return (r, g, b, alpha)

    color = ImageColor.getrgb(text)
    if len(color) == 3:
        return (*color, 255)
    return color  # type: ignore[return-value]


def _gradient_lut(fill: GradientFill) -> list[list[int]]:
    """生成 256 级渐变查找表（每个通道一个列表）."""
    stops = sorted(fill.stops, key=lambda s: s.offset)
    colors = [(stop.offset, parse_color(stop.color)) for stop in stops]
    bands: list[list[int]] = [[], [], [], []]
    for i in range(256):
        t = i / 255
        if t <= colors[0][0]:
            rgba = colors[0][1]
        elif t >= colors[-1][0]:
            rgba = colors[-1][1]
        else:
            rgba = colors[-1][1]
            for (o1, c1), (o2, c2) in zip(colors, colors[1:]):
                if o1 <= t <= o2:
                    k = 0 if o2 == o1 else (t - o1) / (o2 - o1)
                    rgba = tuple(round(a + (b - a) * k) for a, b in zip(c1, c2))  # type: ignore[assignment]
                    break
        for band, value in zip(bands, rgba):
            band.append(int(value))
    return bands


def render_gradient(fill: GradientFill, size: tuple[int, int]) -> Image.Image:
    """渲染渐变填充图像.

    线性渐变按 CSS 角度约定（180 度为自上而下）。

    Args:
        fill: 渐变描述
        size: 目标尺寸

    Returns:
        RGBA 图像
    """
    width, height = size
    if fill.gradient == "radial":
        ramp = Image.radial_gradient("L").resize(size, Image.Resampling.BILINEAR)
    else:
        diagonal = max(1, math.ceil(math.hypot(width, height)))
        ramp = Image.linear_gradient("L").resize((diagonal, diagonal), Image.Resampling.BILINEAR)
        ramp = ramp.rotate(180 - fill.angle, resample=Image.Resampling.BILINEAR)
        left = (diagonal - width) // 2
        top = (diagonal - height) // 2
        ramp = ramp.crop((left, top, left + width, top + height))

    bands = _gradient_lut(fill)
    return Image.merge("RGBA", [ramp.point(band) for band in bands])


# ===================
# 字体管理
# ===================


def find_font(
    font_family: Optional[str],
    font_size: int,
    bold: bool = False,
    italic: bool = False,
) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """查找字体.

    依次尝试直接加载、常用字体目录中的变体文件名和通用回退字体，
    都失败时使用 Pillow 内置默认字体。

    Args:
        font_family: 字体名称
        font_size: 像素字号
        bold: 是否粗体
        italic: 是否斜体

    Returns:
        字体对象
    """
    font_size = max(1, font_size)
    candidates: list[str] = []
    if font_family:
        suffix = "-BoldItalic" if bold and italic else "-Bold" if bold else "-Italic" if italic else ""
        if suffix:
            candidates.extend([f"{font_family}{suffix}.ttf", f"{font_family}{suffix}.otf"])
        candidates.extend([font_family, f"{font_family}.ttf", f"{font_family}.otf", f"{font_family}.ttc"])
    candidates.extend(FALLBACK_FONTS)

    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, font_size)
        except OSError:
            pass

    for search_path in FONT_SEARCH_PATHS:
        expanded_path = os.path.expanduser(search_path)
        if not os.path.isdir(expanded_path):
            continue
        for candidate in candidates:
            font_path = os.path.join(expanded_path, candidate)
            if os.path.exists(font_path):
                try:
                    return ImageFont.truetype(font_path, font_size)
                except OSError:
                    continue

    logger.debug(f"字体 '{font_family}' 未找到，使用默认字体")
    return ImageFont.load_default(size=font_size)


# ===================
# 绘制协议
# ===================


class Rasterizer(Protocol):
    """二维绘制后端协议."""

    def new_canvas(self, size: tuple[int, int], background: Optional[str]) -> Image.Image:
        ...

    def draw_shape(self, canvas: Image.Image, element: DesignElement, scale: float) -> Image.Image:
        ...

    def draw_text(
        self, canvas: Image.Image, element: DesignElement, text: str, scale: float, dpi: float
    ) -> Image.Image:
        ...

    def draw_image(
        self, canvas: Image.Image, element: DesignElement, source: Image.Image, scale: float
    ) -> Image.Image:
        ...

    def encode(self, canvas: Image.Image, format: str, dpi: float, physical_size: tuple[str, str]) -> bytes:
        ...


# ===================
# Pillow 实现
# ===================


class PillowRasterizer:
    """基于 Pillow 的绘制后端.

    坐标以产品物理单位给出，scale 为每单位像素数。

    Example:
        >>> rasterizer = PillowRasterizer()
        >>> canvas = rasterizer.new_canvas((1004, 650), "#ffffff")
        >>> canvas = rasterizer.draw_shape(canvas, element, scale=11.81)
    """

    def new_canvas(self, size: tuple[int, int], background: Optional[str]) -> Image.Image:
        """创建 RGBA 画布."""
        return Image.new("RGBA", size, parse_color(background, (255, 255, 255, 0)))

    # ===================
    # 合成
    # ===================

    @staticmethod
    def _layer_size(element: DesignElement, scale: float) -> tuple[int, int]:
        return (max(1, round(element.width * scale)), max(1, round(element.height * scale)))

    def composite(
        self,
        canvas: Image.Image,
        layer: Image.Image,
        element: DesignElement,
        scale: float,
    ) -> Image.Image:
        """将元素图层旋转、调整透明度后合成到画布.

        Args:
            canvas: 画布
            layer: 元素尺寸的 RGBA 图层
            element: 元素
            scale: 每单位像素数

        Returns:
            合成后的画布
        """
        if element.rotation:
            layer = layer.rotate(-element.rotation, resample=Image.Resampling.BICUBIC, expand=True)

        if element.opacity < 1:
            alpha = layer.getchannel("A").point(lambda p: int(p * element.opacity))
            layer.putalpha(alpha)

        center_x = (element.x + element.width / 2) * scale
        center_y = (element.y + element.height / 2) * scale
        left = round(center_x - layer.width / 2)
        top = round(center_y - layer.height / 2)

        # 裁掉画布外部分，alpha_composite 只接受非负目标位置
        crop_left = max(0, -left)
        crop_top = max(0, -top)
        crop_right = min(layer.width, canvas.width - left)
        crop_bottom = min(layer.height, canvas.height - top)
        if crop_right <= crop_left or crop_bottom <= crop_top:
            return canvas

        visible = layer.crop((crop_left, crop_top, crop_right, crop_bottom))
        canvas.alpha_composite(visible, dest=(left + crop_left, top + crop_top))
        return canvas

    # ===================
    # 形状
    # ===================

    def draw_shape(self, canvas: Image.Image, element: DesignElement, scale: float) -> Image.Image:
        """绘制形状元素."""
        data = element.data
        assert isinstance(data, ShapeData)
        size = self._layer_size(element, scale)
        layer = self.render_shape(data, size, scale)
        return self.composite(canvas, layer, element, scale)

    def render_shape(self, data: ShapeData, size: tuple[int, int], scale: float) -> Image.Image:
        """在元素尺寸的透明图层上绘制形状."""
        width, height = size
        mask = Image.new("L", size, 0)
        mask_draw = ImageDraw.Draw(mask)
        outline = self._shape_outline(data, size, scale)

        if data.shape == ShapeKind.RECTANGLE:
            radius = round((data.border_radius or 0) * scale)
            if radius > 0:
                mask_draw.rounded_rectangle((0, 0, width - 1, height - 1), radius=radius, fill=255)
            else:
                mask_draw.rectangle((0, 0, width - 1, height - 1), fill=255)
        elif data.shape == ShapeKind.CIRCLE:
            r = min(width, height) / 2
            cx, cy = width / 2, height / 2
            mask_draw.ellipse((cx - r, cy - r, cx + r - 1, cy + r - 1), fill=255)
        elif data.shape in (ShapeKind.TRIANGLE, ShapeKind.POLYGON):
            if len(outline) >= 3:
                mask_draw.polygon(outline, fill=255)

        if data.shape in (ShapeKind.LINE, ShapeKind.ARROW):
            layer = Image.new("RGBA", size, (0, 0, 0, 0))
        elif isinstance(data.fill, GradientFill):
            layer = Image.new("RGBA", size, (0, 0, 0, 0))
            layer.paste(render_gradient(data.fill, size), (0, 0), mask)
        else:
            layer = Image.new("RGBA", size, (0, 0, 0, 0))
            fill = parse_color(data.fill)
            layer.paste(Image.new("RGBA", size, fill), (0, 0), mask)

        self._draw_stroke(layer, data, outline, size, scale)
        return layer

    def _shape_outline(self, data: ShapeData, size: tuple[int, int], scale: float) -> list[tuple[float, float]]:
        """计算形状轮廓点（图层像素坐标）."""
        width, height = size
        if data.shape == ShapeKind.TRIANGLE:
            return [(width / 2, 0), (width - 1, height - 1), (0, height - 1)]
        if data.shape == ShapeKind.POLYGON and data.points:
            return [(x * scale, y * scale) for x, y in data.points]
        if data.shape in (ShapeKind.LINE, ShapeKind.ARROW):
            if data.points and len(data.points) >= 2:
                return [(x * scale, y * scale) for x, y in data.points]
            return [(0, height / 2), (width - 1, height / 2)]
        return []

    def _draw_stroke(
        self,
        layer: Image.Image,
        data: ShapeData,
        outline: list[tuple[float, float]],
        size: tuple[int, int],
        scale: float,
    ) -> None:
        """绘制描边（含虚线、直线和箭头）."""
        is_line = data.shape in (ShapeKind.LINE, ShapeKind.ARROW)
        if not data.has_stroke and not is_line:
            return

        width, height = size
        color = parse_color(data.stroke) if data.has_stroke else parse_color(
            data.fill if isinstance(data.fill, str) else data.fill.stops[0].color
        )
        stroke_px = max(1, round(max(data.stroke_width, 0.1) * scale))
        draw = ImageDraw.Draw(layer)

        if is_line:
            segments = list(zip(outline, outline[1:]))
        elif data.shape == ShapeKind.RECTANGLE:
            radius = round((data.border_radius or 0) * scale)
            if radius > 0 and not data.stroke_dash_array:
                draw.rounded_rectangle((0, 0, width - 1, height - 1), radius=radius, outline=color, width=stroke_px)
                return
            corners = [(0, 0), (width - 1, 0), (width - 1, height - 1), (0, height - 1)]
            segments = list(zip(corners, corners[1:] + corners[:1]))
        elif data.shape == ShapeKind.CIRCLE:
            r = min(width, height) / 2
            cx, cy = width / 2, height / 2
            if not data.stroke_dash_array:
                draw.ellipse((cx - r, cy - r, cx + r - 1, cy + r - 1), outline=color, width=stroke_px)
                return
            points = [
                (cx + (r - stroke_px / 2) * math.cos(math.radians(a)), cy + (r - stroke_px / 2) * math.sin(math.radians(a)))
                for a in range(0, 361, 5)
            ]
            segments = list(zip(points, points[1:]))
        else:
            closed = outline + outline[:1]
            segments = list(zip(closed, closed[1:]))

        dash = [d * scale for d in data.stroke_dash_array] if data.stroke_dash_array else None
        for start, end in segments:
            if dash:
                draw_dashed_line(draw, start, end, dash, color, stroke_px)
            else:
                draw.line([start, end], fill=color, width=stroke_px)

        if data.shape == ShapeKind.ARROW and len(outline) >= 2:
            (x1, y1), (x2, y2) = outline[-2], outline[-1]
            angle = math.atan2(y2 - y1, x2 - x1)
            head = max(stroke_px * 4, min(width, height) * 0.3)
            left = (x2 - head * math.cos(angle - math.pi / 6), y2 - head * math.sin(angle - math.pi / 6))
            right = (x2 - head * math.cos(angle + math.pi / 6), y2 - head * math.sin(angle + math.pi / 6))
            draw.polygon([(x2, y2), left, right], fill=color)

    # ===================
    # 文字
    # ===================

    def draw_text(
        self,
        canvas: Image.Image,
        element: DesignElement,
        text: str,
        scale: float,
        dpi: float,
    ) -> Image.Image:
        """绘制文字元素.

        Args:
            canvas: 画布
            element: 文字元素
            text: 已替换占位符的文本
            scale: 每单位像素数
            dpi: 输出分辨率（用于字号点数换算）

        Returns:
            合成后的画布
        """
        data = element.data
        assert isinstance(data, TextData)
        size = self._layer_size(element, scale)
        layer = Image.new("RGBA", size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(layer)

        if data.background_color:
            draw.rectangle((0, 0, size[0] - 1, size[1] - 1), fill=parse_color(data.background_color))

        font_px = max(1, round(data.font_size * dpi / POINTS_PER_INCH))
        font = find_font(data.font_family, font_px, data.is_bold, data.font_style == "italic")
        spacing_px = data.letter_spacing * dpi / POINTS_PER_INCH
        line_px = font_px * data.line_height

        if data.text_shadow:
            shadow = Image.new("RGBA", size, (0, 0, 0, 0))
            self._draw_lines(
                ImageDraw.Draw(shadow),
                text,
                font,
                size[0],
                line_px,
                spacing_px,
                data,
                parse_color(data.text_shadow.color),
                offset=(data.text_shadow.offset_x * scale, data.text_shadow.offset_y * scale),
            )
            if data.text_shadow.blur:
                shadow = shadow.filter(ImageFilter.GaussianBlur(data.text_shadow.blur * scale / 2))
            layer.alpha_composite(shadow)
            draw = ImageDraw.Draw(layer)

        self._draw_lines(draw, text, font, size[0], line_px, spacing_px, data, parse_color(data.color))
        return self.composite(canvas, layer, element, scale)

    def _draw_lines(
        self,
        draw: ImageDraw.ImageDraw,
        text: str,
        font: ImageFont.FreeTypeFont | ImageFont.ImageFont,
        box_width: int,
        line_px: float,
        spacing_px: float,
        data: TextData,
        color: RGBA,
        offset: tuple[float, float] = (0, 0),
    ) -> None:
        """逐行绘制文字."""
        for index, line in enumerate(text.split("\n")):
            if not line:
                continue
            line_width = font.getlength(line) + spacing_px * max(0, len(line) - 1)
            if data.text_align == TextAlign.CENTER:
                x = (box_width - line_width) / 2
            elif data.text_align == TextAlign.RIGHT:
                x = box_width - line_width
            else:
                x = 0
            x += offset[0]
            y = index * line_px + offset[1]

            if spacing_px:
                cursor = x
                for char in line:
                    draw.text((cursor, y), char, font=font, fill=color)
                    cursor += font.getlength(char) + spacing_px
            else:
                draw.text((x, y), line, font=font, fill=color)

            if data.text_decoration == "underline":
                bottom = y + line_px * 0.9
                draw.line([(x, bottom), (x + line_width, bottom)], fill=color, width=max(1, round(line_px / 15)))

    # ===================
    # 图片
    # ===================

    def draw_image(
        self,
        canvas: Image.Image,
        element: DesignElement,
        source: Image.Image,
        scale: float,
    ) -> Image.Image:
        """绘制图片元素（裁剪、调整、蒙版后合成）."""
        data = element.data
        assert isinstance(data, ImageData)
        size = self._layer_size(element, scale)
        layer = self.prepare_image(source, data, size, scale)
        return self.composite(canvas, layer, element, scale)

    def prepare_image(
        self,
        source: Image.Image,
        data: ImageData,
        size: tuple[int, int],
        scale: float,
    ) -> Image.Image:
        """按载荷参数生成元素尺寸的图片图层."""
        image = source.convert("RGBA")

        # 裁剪矩形为源图百分比
        left = data.crop_x / 100 * image.width
        top = data.crop_y / 100 * image.height
        right = min(image.width, left + data.crop_width / 100 * image.width)
        bottom = min(image.height, top + data.crop_height / 100 * image.height)
        if right - left >= 1 and bottom - top >= 1:
            image = image.crop((round(left), round(top), round(right), round(bottom)))

        image = image.resize(size, Image.Resampling.LANCZOS)
        alpha = image.getchannel("A")
        rgb = image.convert("RGB")

        if data.brightness != 1:
            rgb = ImageEnhance.Brightness(rgb).enhance(data.brightness)
        if data.contrast != 1:
            rgb = ImageEnhance.Contrast(rgb).enhance(data.contrast)
        if data.saturation != 1:
            rgb = ImageEnhance.Color(rgb).enhance(data.saturation)
        if data.blur > 0:
            rgb = rgb.filter(ImageFilter.GaussianBlur(data.blur * scale / 10))

        image = rgb.convert("RGBA")
        image.putalpha(alpha)

        if data.mask_shape:
            mask = self._mask(data.mask_shape, size)
            image.putalpha(Image.composite(alpha, Image.new("L", size, 0), mask))

        return image

    @staticmethod
    def _mask(shape: str, size: tuple[int, int]) -> Image.Image:
        """生成蒙版形状."""
        width, height = size
        mask = Image.new("L", size, 0)
        draw = ImageDraw.Draw(mask)
        if shape == "circle":
            r = min(width, height) / 2
            draw.ellipse((width / 2 - r, height / 2 - r, width / 2 + r - 1, height / 2 + r - 1), fill=255)
        elif shape == "ellipse":
            draw.ellipse((0, 0, width - 1, height - 1), fill=255)
        elif shape == "rounded":
            draw.rounded_rectangle((0, 0, width - 1, height - 1), radius=min(width, height) // 8, fill=255)
        elif shape == "hexagon":
            points = [
                (width / 2 + width / 2 * math.cos(math.radians(a)), height / 2 + height / 2 * math.sin(math.radians(a)))
                for a in range(0, 360, 60)
            ]
            draw.polygon(points, fill=255)
        elif shape == "heart":
            points = []
            for step in range(0, 360, 4):
                t = math.radians(step)
                hx = 16 * math.sin(t) ** 3
                hy = 13 * math.cos(t) - 5 * math.cos(2 * t) - 2 * math.cos(3 * t) - math.cos(4 * t)
                points.append((width / 2 + hx / 34 * width, height / 2 - hy / 34 * height))
            draw.polygon(points, fill=255)
        else:
            draw.rectangle((0, 0, width - 1, height - 1), fill=255)
        return mask

    # ===================
    # 编码
    # ===================

    def encode(
        self,
        canvas: Image.Image,
        format: str,
        dpi: float,
        physical_size: tuple[str, str],
    ) -> bytes:
        """编码画布.

        Args:
            canvas: RGBA 画布
            format: png / jpg / jpeg / pdf / svg
            dpi: 输出分辨率（写入文件元数据）
            physical_size: SVG 物理宽高字符串，如 ("85mm", "55mm")

        Returns:
            编码后的字节数据

        Raises:
            UnsupportedExportFormatError: 格式不受支持
        """
        fmt = format.lower()
        if fmt not in EXPORT_MIME_TYPES:
            raise UnsupportedExportFormatError(format)

        buffer = io.BytesIO()
        if fmt == "png":
            canvas.save(buffer, format="PNG", dpi=(dpi, dpi))
        elif fmt in ("jpg", "jpeg"):
            flatten_on_white(canvas).save(buffer, format="JPEG", quality=DEFAULT_JPEG_QUALITY, dpi=(round(dpi), round(dpi)))
        elif fmt == "pdf":
            flatten_on_white(canvas).save(buffer, format="PDF", resolution=dpi)
        else:
            canvas.save(buffer, format="PNG")
            encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
            width, height = physical_size
            svg = (
                f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
                f'viewBox="0 0 {canvas.width} {canvas.height}">'
                f'<image href="data:image/png;base64,{encoded}" x="0" y="0" '
                f'width="{canvas.width}" height="{canvas.height}"/></svg>'
            )
            return svg.encode("utf-8")
        return buffer.getvalue()


# ===================
# 辅助函数
# ===================


def flatten_on_white(image: Image.Image) -> Image.Image:
    """将 RGBA 图像合成到白色背景并转为 RGB."""
    background = Image.new("RGBA", image.size, (255, 255, 255, 255))
    background.alpha_composite(image.convert("RGBA"))
    return background.convert("RGB")


def draw_dashed_line(
    draw: ImageDraw.ImageDraw,
    start: tuple[float, float],
    end: tuple[float, float],
    pattern: list[float],
    color: RGBA,
    width: int = 1,
) -> None:
    """绘制虚线.

    Args:
        draw: 绘制对象
        start: 起点
        end: 终点
        pattern: 虚线模式 [实线长度, 间隔长度, ...]（像素）
        color: 颜色
        width: 线宽
    """
    length = math.hypot(end[0] - start[0], end[1] - start[1])
    if length == 0 or not pattern or sum(pattern) <= 0:
        draw.line([start, end], fill=color, width=width)
        return

    dx = (end[0] - start[0]) / length
    dy = (end[1] - start[1]) / length
    position = 0.0
    index = 0
    while position < length:
        segment = max(pattern[index % len(pattern)], 0.5)
        if index % 2 == 0:
            stop = min(position + segment, length)
            draw.line(
                [(start[0] + dx * position, start[1] + dy * position), (start[0] + dx * stop, start[1] + dy * stop)],
                fill=color,
                width=width,
            )
        position += segment
        index += 1
