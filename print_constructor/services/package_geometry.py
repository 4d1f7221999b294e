"""包装几何模块.

提供与图形后端无关的包装盒几何：展开图（十字形盒型）、折线、
SVG 刀版与等轴测视图，以及用纯数据描述的 3D 场景。

坐标约定：length 沿 X 轴，height 沿 Y 轴，width（深度）沿 Z 轴。
"""

from __future__ import annotations

import math
from typing import Literal, Optional, Sequence

from pydantic import BaseModel, Field

from print_constructor.models.design_element import Point

Point3 = tuple[float, float, float]
Segment = tuple[Point, Point]

CUT_LINE_COLOR = "#000000"
FOLD_LINE_COLOR = "#ff0000"
WINDOW_COLOR = "#87ceeb"
ISOMETRIC_SCALE = 2
ISOMETRIC_OFFSET = 100

# 纸张在 3D 预览中的外观 (颜色, 光泽度)
MATERIAL_APPEARANCE: dict[str, tuple[str, float]] = {
    "kraft": ("#d2b48c", 30),
    "corrugated": ("#f4e4bc", 30),
    "glossy": ("#ffffff", 100),
    "matte": ("#f5f5f5", 10),
}
DEFAULT_APPEARANCE = ("#ffffff", 30)


# ===================
# 展开图
# ===================


class NetFace(BaseModel):
    """展开图上的一个面."""

    name: Literal["top", "bottom", "front", "back", "left", "right"]
    x: float
    y: float
    width: float
    height: float

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        return (self.x, self.y, self.x + self.width, self.y + self.height)


def unfold_net(length: float, width: float, height: float) -> list[NetFace]:
    """十字形展开图.

    侧面一行依次为 左、前、右、后；顶面和底面分别位于前面的上方和下方。

    Args:
        length: 长
        width: 宽（深度）
        height: 高

    Returns:
        六个面的位置
    """
    return [
        NetFace(name="top", x=width, y=0, width=length, height=width),
        NetFace(name="left", x=0, y=width, width=width, height=height),
        NetFace(name="front", x=width, y=width, width=length, height=height),
        NetFace(name="right", x=width + length, y=width, width=width, height=height),
        NetFace(name="back", x=2 * width + length, y=width, width=length, height=height),
        NetFace(name="bottom", x=width, y=width + height, width=length, height=width),
    ]


def net_size(length: float, width: float, height: float) -> tuple[float, float]:
    """展开图外接尺寸 (宽, 高)."""
    return (2 * (length + width), height + 2 * width)


def unfold_fold_lines(length: float, width: float, height: float) -> list[Segment]:
    """展开图折线：侧面之间的竖线与前面上下两条横线."""
    top, bottom = width, width + height
    vertical = [((x, top), (x, bottom)) for x in (width, width + length, 2 * width + length)]
    horizontal = [((width, y), (width + length, y)) for y in (top, bottom)]
    return vertical + horizontal


def _svg_rect(face: NetFace) -> str:
    return (
        f'<rect id="{face.name}" x="{face.x:g}" y="{face.y:g}" width="{face.width:g}" '
        f'height="{face.height:g}" fill="none" stroke="{CUT_LINE_COLOR}" stroke-width="1"/>'
    )


def _svg_line(segment: Segment) -> str:
    (x1, y1), (x2, y2) = segment
    return (
        f'<line x1="{x1:g}" y1="{y1:g}" x2="{x2:g}" y2="{y2:g}" stroke="{FOLD_LINE_COLOR}" '
        f'stroke-width="0.5" stroke-dasharray="5,5"/>'
    )


def unfold_body(length: float, width: float, height: float) -> str:
    """展开图的 SVG 内容（不含外层 svg 标签）."""
    faces = "".join(_svg_rect(face) for face in unfold_net(length, width, height))
    folds = "".join(_svg_line(segment) for segment in unfold_fold_lines(length, width, height))
    return f'<g id="faces">{faces}</g><g id="fold-lines">{folds}</g>'


def unfold_svg(length: float, width: float, height: float, unit: str = "mm") -> str:
    """生成展开图 SVG 刀版（实线为裁切线，红色虚线为折线）."""
    sheet_width, sheet_height = net_size(length, width, height)
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{sheet_width:g}{unit}" height="{sheet_height:g}{unit}" '
        f'viewBox="0 0 {sheet_width:g} {sheet_height:g}">'
        f"{unfold_body(length, width, height)}</svg>"
    )


def isometric_point(x: float, y: float, z: float) -> Point:
    """3D 坐标到等轴测 2D 坐标."""
    return (
        ISOMETRIC_OFFSET + (x - z) * math.cos(math.pi / 6) * ISOMETRIC_SCALE,
        ISOMETRIC_OFFSET + (x + z) * math.sin(math.pi / 6) * ISOMETRIC_SCALE + y * ISOMETRIC_SCALE,
    )


def isometric_view(length: float, width: float, height: float) -> str:
    """盒子的等轴测视图（正面、右侧面、顶面三个多边形）."""
    corners = [
        isometric_point(x, y, z)
        for x, y, z in (
            (0, 0, 0),
            (length, 0, 0),
            (length, height, 0),
            (0, height, 0),
            (0, 0, width),
            (length, 0, width),
            (length, height, width),
            (0, height, width),
        )
    ]
    faces = [
        ("front", (0, 1, 2, 3), "#ffffff"),
        ("right", (1, 5, 6, 2), "#f0f0f0"),
        ("top", (3, 2, 6, 7), "#e0e0e0"),
    ]
    polygons = []
    for name, indices, fill in faces:
        points = " ".join(f"{corners[i][0]:.2f},{corners[i][1]:.2f}" for i in indices)
        polygons.append(f'<polygon id="iso-{name}" points="{points}" fill="{fill}" stroke="black" stroke-width="1"/>')
    return f'<g id="isometric-view">{"".join(polygons)}</g>'


def presentation_svg(length: float, width: float, height: float) -> str:
    """等轴测视图与展开图并排的展示 SVG."""
    return (
        '<svg xmlns="http://www.w3.org/2000/svg" width="1200" height="800">'
        f"{isometric_view(length, width, height)}"
        f'<g transform="translate(600, 0)">{unfold_body(length, width, height)}</g>'
        "</svg>"
    )


# ===================
# 3D 场景
# ===================


class Light(BaseModel):
    """光源."""

    kind: Literal["ambient", "directional", "point"]
    color: str = "#ffffff"
    intensity: float = Field(default=1.0, ge=0)
    position: Optional[Point3] = None
    distance: Optional[float] = None
    cast_shadow: bool = False


class Camera(BaseModel):
    fov: float = 75
    near: float = 0.1
    far: float = 1000
    position: Point3 = (15, 15, 15)
    target: Point3 = (0, 0, 0)


class BoxMesh(BaseModel):
    """盒体网格（以原点为中心）."""

    length: float
    height: float
    width: float
    color: str = "#ffffff"
    opacity: float = 0.9
    shininess: float = 30


class WindowOverlay(BaseModel):
    """开窗在盒面上的半透明覆盖层."""

    width: float
    height: float
    position: Point3
    color: str = WINDOW_COLOR
    opacity: float = 0.3


class PackageScene(BaseModel):
    """包装 3D 场景描述.

    只包含数据，由调用方选择的图形后端负责渲染。
    """

    box: BoxMesh
    edges: list[tuple[Point3, Point3]] = Field(default_factory=list)
    windows: list[WindowOverlay] = Field(default_factory=list)
    lights: list[Light] = Field(default_factory=list)
    camera: Camera = Field(default_factory=Camera)
    lighting_setup: str = "studio"


def default_lights() -> list[Light]:
    """影棚布光：环境光、带阴影的方向光和两盏点光源."""
    return [
        Light(kind="ambient", intensity=0.4),
        Light(kind="directional", intensity=0.8, position=(10, 10, 5), cast_shadow=True),
        Light(kind="point", intensity=0.5, position=(-10, 10, 10), distance=100),
        Light(kind="point", intensity=0.3, position=(10, -10, 10), distance=100),
    ]


def box_edges(length: float, height: float, width: float) -> list[tuple[Point3, Point3]]:
    """以原点为中心的长方体 12 条棱."""
    hx, hy, hz = length / 2, height / 2, width / 2
    edges = []
    for y in (-hy, hy):
        for z in (-hz, hz):
            edges.append(((-hx, y, z), (hx, y, z)))
    for x in (-hx, hx):
        for z in (-hz, hz):
            edges.append(((x, -hy, z), (x, hy, z)))
    for x in (-hx, hx):
        for y in (-hy, hy):
            edges.append(((x, y, -hz), (x, y, hz)))
    return edges


def build_scene(
    length: float,
    width: float,
    height: float,
    paper_type: str,
    windows: Sequence[WindowOverlay] = (),
    lighting_setup: str = "studio",
) -> PackageScene:
    """根据尺寸、纸张和开窗构建场景.

    Args:
        length: 长
        width: 宽（深度）
        height: 高
        paper_type: 纸张类型，决定盒体颜色和光泽
        windows: 开窗覆盖层
        lighting_setup: 布光方案

    Returns:
        PackageScene
    """
    color, shininess = MATERIAL_APPEARANCE.get(paper_type, DEFAULT_APPEARANCE)
    return PackageScene(
        box=BoxMesh(length=length, height=height, width=width, color=color, shininess=shininess),
        edges=box_edges(length, height, width),
        windows=list(windows),
        lights=default_lights(),
        lighting_setup=lighting_setup,
    )
