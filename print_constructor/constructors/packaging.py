"""包装构造器.

Features:
    - 盒型、三维尺寸、纸材与结构选项
    - 与配置保持同步的 3D 场景描述（盒体、棱线、开窗）
    - 展开图 SVG 刀版与组装说明
    - 体积分档的报价乘数
    - 校验同时给出错误、警告和建议
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, Literal, Mapping, Optional, Union

from PIL import Image, ImageDraw
from pydantic import BaseModel, Field, computed_field

from print_constructor.core.base_constructor import BaseConstructor
from print_constructor.core.events import ConstructorEvent
from print_constructor.models.product_config import ProductConfig
from print_constructor.models.results import DesignValidationResult, ExportResult, PriceQuote
from print_constructor.models.template import DesignTemplate, TemplateMetadata
from print_constructor.services import package_geometry as geometry
from print_constructor.services.exporter import RenderJob
from print_constructor.services.package_geometry import Point3, WindowOverlay
from print_constructor.services.pricing import PriceBuilder, tier_rate
from print_constructor.services.rasterizer import draw_dashed_line, parse_color
from print_constructor.utils.constants import UNITS_PER_INCH
from print_constructor.utils.helpers import clamp, utc_now
from print_constructor.utils.logger import setup_logger

logger = setup_logger(__name__)

PackageType = Literal["box", "tube", "envelope", "bag", "tray", "wrapper", "label"]
Difficulty = Literal["easy", "medium", "complex"]
Face = Literal["front", "back", "left", "right", "top", "bottom"]


# ===================
# 常量定义
# ===================

QUANTITY_DISCOUNTS = [(5000, 0.15), (2000, 0.12), (1000, 0.08), (500, 0.05)]

MATERIAL_MULTIPLIERS = {
    "cardboard": 1.0,
    "corrugated": 1.3,
    "kraft": 0.9,
    "glossy": 1.4,
    "matte": 1.2,
    "recycled": 1.1,
}
COMPLEXITY_MULTIPLIERS = {"easy": 1.0, "medium": 1.3, "complex": 1.8}
TYPE_MULTIPLIERS = {
    "box": 1.0,
    "tube": 1.2,
    "envelope": 0.8,
    "bag": 0.7,
    "tray": 1.1,
    "wrapper": 0.6,
    "label": 0.5,
}

# 每件附加费
FEATURE_PRICES = {
    "window_cutouts": 15,
    "perforations": 8,
    "embossing": 25,
    "foil_stamping": 30,
    "coating": 12,
}
FEATURE_LABELS = {
    "window_cutouts": "开窗",
    "perforations": "打孔撕拉线",
    "embossing": "压凸",
    "foil_stamping": "烫金",
    "coating": "表面涂层",
    "fsc_certified": "FSC 认证",
}

# 体积乘数 = 1 + (升 - 1) * 0.1，限制在 [0.5, 2]
VOLUME_RATE = 0.1
VOLUME_MULTIPLIER_RANGE = (0.5, 2.0)

LARGE_CARDBOARD_SIDE_MM = 600
LARGE_VOLUME_LITERS = 1000
THIN_MATERIAL_MM = 2
THIN_MATERIAL_SIDE_MM = 300
MIN_EMBOSSING_THICKNESS_MM = 1.5
WINDOW_MAX_RATIO = 0.8
EASY_ASSEMBLY_MAX_MINUTES = 30

DIELINE_CUT_COLOR = "#000000"
DIELINE_FOLD_COLOR = "#ff0000"

ASSEMBLY_STEPS_BY_TYPE: dict[str, list[str]] = {
    "box": ["从底部开始组装盒体", "固定侧壁", "装上顶盖"],
    "tube": ["卷成圆筒形", "粘合纵向接缝", "固定两端盖"],
    "envelope": ["依次折叠信封", "固定封舌", "检查封口密合"],
}
QUALITY_STEPS = ["检查所有粘合处的牢固程度", "确认成品尺寸正确", "进行承重测试"]


# ===================
# 配置模型
# ===================


class PackageStructure(BaseModel):
    type: Literal["3d", "flat", "popup"] = "3d"
    folding_pattern: Literal["standard", "custom", "die_cut"] = "standard"
    unfold_template: str = "box_standard"
    assembly_instructions: list[str] = Field(default_factory=list)


class Dimensions3D(BaseModel):
    """包装三维尺寸."""

    length: float = Field(default=200, ge=0)
    width: float = Field(default=150, ge=0)
    height: float = Field(default=100, ge=0)
    unit: Literal["mm", "cm", "in"] = "mm"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def volume(self) -> float:
        """体积（单位的立方）."""
        return self.length * self.width * self.height

    def to_mm(self, value: float) -> float:
        return value * UNITS_PER_INCH["mm"] / UNITS_PER_INCH[self.unit]

    @property
    def max_side_mm(self) -> float:
        return self.to_mm(max(self.length, self.width, self.height))

    @property
    def liters(self) -> float:
        """体积（升）."""
        return self.to_mm(self.length) * self.to_mm(self.width) * self.to_mm(self.height) / 1_000_000


class PackagingSustainability(BaseModel):
    recyclable: bool = True
    biodegradable: bool = False
    fsc_certified: bool = False
    carbon_neutral: bool = False


class PackagingMaterials(BaseModel):
    """纸材（厚度 mm，克重 g/m²）."""

    paper_type: Literal["cardboard", "corrugated", "kraft", "glossy", "matte", "recycled"] = "cardboard"
    thickness: float = Field(default=1.5, gt=0)
    weight: float = Field(default=350, gt=0)
    coating: Literal["none", "lamination", "varnish", "spot_uv", "foil"] = "none"
    sustainability: PackagingSustainability = Field(default_factory=PackagingSustainability)


class WindowCutout(BaseModel):
    """开窗."""

    enabled: bool = True
    shape: Literal["rectangle", "circle", "custom"] = "rectangle"
    position: Point3 = (0, 0, 0)
    width: float = Field(gt=0)
    height: float = Field(gt=0)


class Perforations(BaseModel):
    enabled: bool = False
    type: Literal["tear_strip", "easy_open", "vent_holes"] = "tear_strip"
    pattern: Literal["straight", "curved", "custom"] = "straight"


class StructuralOptions(BaseModel):
    glue_type: Literal["hot_melt", "cold_glue", "double_sided_tape", "none"] = "hot_melt"
    reinforcement: bool = False
    window_cutouts: list[WindowCutout] = Field(default_factory=list)
    perforations: Perforations = Field(default_factory=Perforations)


class FoilStamping(BaseModel):
    enabled: bool = False
    color: str = "#d4af37"
    areas: list[str] = Field(default_factory=list)


class SpecialFinishes(BaseModel):
    embossing: bool = False
    debossing: bool = False
    foil_stamping: FoilStamping = Field(default_factory=FoilStamping)
    spot_varnish: bool = False
    textural_effects: list[str] = Field(default_factory=list)


class PackagingPrinting(BaseModel):
    sides: list[Face] = Field(default_factory=lambda: ["front", "back", "left", "right", "top", "bottom"])
    color_mode: Literal["cmyk", "pantone", "digital_rgb"] = "cmyk"
    special_finishes: SpecialFinishes = Field(default_factory=SpecialFinishes)


class Assembly(BaseModel):
    """组装要求（时间单位分钟）."""

    difficulty: Difficulty = "easy"
    estimated_time: float = Field(default=5, ge=0)
    tools_required: list[str] = Field(default_factory=list)
    quality_checks: list[str] = Field(default_factory=list)


class LogoPlacement(BaseModel):
    face: Face = "front"
    position: tuple[float, float] = (0, 0)
    size: float = Field(default=30, gt=0)


class Typography(BaseModel):
    primary: str = "Inter"
    secondary: str = "Inter"
    hierarchy: Literal["title", "subtitle", "body", "caption"] = "title"


class BrandConsistency(BaseModel):
    brand_guidelines: bool = False
    color_accuracy: float = Field(default=95, ge=0, le=100)
    logo_integrity: bool = True


class PackagingBranding(BaseModel):
    logo_placement: list[LogoPlacement] = Field(default_factory=list)
    brand_colors: list[str] = Field(default_factory=list)
    typography: Typography = Field(default_factory=Typography)
    consistency: BrandConsistency = Field(default_factory=BrandConsistency)


class Visualization(BaseModel):
    render_3d: bool = True
    unfold_view: bool = True
    assembly_animation: bool = False
    material_preview: bool = True
    lighting_setup: Literal["studio", "natural", "dramatic", "custom"] = "studio"
    viewing_angles: list[str] = Field(default_factory=lambda: ["front", "isometric"])


class PackagingConfig(ProductConfig):
    """包装配置.

    dimensions 为展开图（印刷面）的平面尺寸，随 dimensions_3d 自动推导。
    """

    category: str = "packaging"
    package_type: PackageType = "box"
    structure: PackageStructure = Field(default_factory=PackageStructure)
    dimensions_3d: Dimensions3D = Field(default_factory=Dimensions3D)
    packaging_materials: PackagingMaterials = Field(default_factory=PackagingMaterials)
    structural: StructuralOptions = Field(default_factory=StructuralOptions)
    printing: PackagingPrinting = Field(default_factory=PackagingPrinting)
    assembly: Assembly = Field(default_factory=Assembly)
    branding: PackagingBranding = Field(default_factory=PackagingBranding)
    visualization: Visualization = Field(default_factory=Visualization)


def flat_layout(dimensions: Mapping[str, Any]) -> dict[str, Any]:
    """由三维尺寸推导展开图的平面尺寸与印刷区域."""
    dims = Dimensions3D.model_validate(dimensions)
    width, height = geometry.net_size(dims.length, dims.width, dims.height)
    return {
        "dimensions": {"width": width, "height": height, "unit": dims.unit, "dpi": 300},
        "print_area": {"x": 0, "y": 0, "width": width, "height": height},
    }


# ===================
# 种子模板
# ===================


@lru_cache(maxsize=1)
def _seed_templates() -> tuple[DesignTemplate, ...]:
    classic = DesignTemplate(
        id="pkg_classic_box",
        name="经典纸盒",
        category="packaging",
        product_type="packaging",
        thumbnail="/templates/packaging/classic-box.jpg",
        tags=["classic", "box", "cardboard"],
        attributes={
            "package_type": "box",
            "structure": {
                "type": "3d",
                "folding_pattern": "standard",
                "unfold_template": "box_standard",
                "assembly_instructions": ["沿轮廓裁切", "沿折线折叠", "粘合封舌", "检查接合强度"],
            },
            "difficulty": "easy",
            "industry_focus": "gift",
            "preview_3d": "/templates/packaging/classic-box-3d.glb",
            "unfold_pattern": "/templates/packaging/classic-box-unfold.svg",
            "dieline": "/templates/packaging/classic-box-dieline.svg",
            "assembly_steps": ["准备工具", "裁切坯料", "压出折痕", "粘合各部件", "质量检查"],
            "marketing_features": {
                "shelf_appeal": 8,
                "functional_benefits": ["组装简单", "结构牢固", "用途广泛"],
                "target_audience": ["小微企业", "网店", "礼品服务"],
                "usage_scenarios": ["礼品包装", "商品配送", "收纳"],
            },
        },
        metadata=TemplateMetadata(
            author="Poliprint Design Team",
            description="通用标准纸盒",
            usage_count=124,
            rating=4.6,
        ),
    )
    pillow = DesignTemplate(
        id="pkg_pillow_box",
        name="枕形盒",
        category="packaging",
        product_type="packaging",
        thumbnail="/templates/packaging/pillow-box.jpg",
        is_premium=True,
        tags=["pillow", "premium", "curved"],
        attributes={
            "package_type": "box",
            "structure": {
                "type": "3d",
                "folding_pattern": "custom",
                "unfold_template": "pillow_curved",
                "assembly_instructions": ["沿曲线轮廓裁切", "压出弧形折痕", "成型为枕形", "固定两端"],
            },
            "difficulty": "medium",
            "industry_focus": "cosmetics",
            "preview_3d": "/templates/packaging/pillow-box-3d.glb",
            "unfold_pattern": "/templates/packaging/pillow-box-unfold.svg",
            "dieline": "/templates/packaging/pillow-box-dieline.svg",
            "assembly_steps": ["准备曲线加工工具", "精确裁切坯料", "压出平滑折痕", "塑造立体形状", "无变形固定"],
            "marketing_features": {
                "shelf_appeal": 9,
                "functional_benefits": ["高端外观", "保护商品", "开启方便"],
                "target_audience": ["化妆品品牌", "珠宝店", "奢侈品牌"],
                "usage_scenarios": ["高端商品", "礼品", "品牌包装"],
            },
        },
        metadata=TemplateMetadata(
            author="Poliprint Design Team",
            description="适合高端商品的优雅枕形包装",
            usage_count=89,
            rating=4.9,
        ),
    )
    display = DesignTemplate(
        id="pkg_display_box",
        name="开窗展示盒",
        category="packaging",
        product_type="packaging",
        thumbnail="/templates/packaging/display-box.jpg",
        tags=["display", "window", "retail"],
        attributes={
            "package_type": "box",
            "structure": {
                "type": "3d",
                "folding_pattern": "die_cut",
                "unfold_template": "display_window",
                "assembly_instructions": ["裁切主体", "裁切窗口", "贴透明膜", "组装成盒"],
            },
            "difficulty": "medium",
            "industry_focus": "food",
            "preview_3d": "/templates/packaging/display-box-3d.glb",
            "unfold_pattern": "/templates/packaging/display-box-unfold.svg",
            "dieline": "/templates/packaging/display-box-dieline.svg",
            "assembly_steps": ["准备材料与工具", "裁切主体坯料", "开出窗口", "贴上透明膜", "组装成型"],
            "marketing_features": {
                "shelf_appeal": 9,
                "functional_benefits": ["展示商品", "防止损坏", "货架吸引力"],
                "target_audience": ["食品品牌", "玩具店", "零售商"],
                "usage_scenarios": ["超市", "品牌门店", "展会"],
            },
        },
        metadata=TemplateMetadata(
            author="Poliprint Design Team",
            description="带展示窗口的包装盒",
            usage_count=67,
            rating=4.4,
        ),
    )
    return (classic, pillow, display)


# ===================
# 构造器
# ===================


class PackagingConstructor(BaseConstructor):
    """包装构造器.

    元素绘制在展开图平面上；3D 场景只是配置的数据投影，不依赖任何图形后端。

    Example:
        >>> constructor = PackagingConstructor()
        >>> dimensions = constructor.update_dimensions_3d({"length": 100, "width": 100, "height": 100})
        >>> constructor.get_scene().box.length
        100.0
    """

    product_type = "packaging"
    config_class = PackagingConfig
    config: PackagingConfig

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self._scene: Optional[geometry.PackageScene] = None
        self._unfold_pattern = ""
        self._assembly_steps: list[str] = []
        super().__init__(*args, **kwargs)
        self._sync_scene()

    def default_config(self, supplied: Mapping[str, Any]) -> dict[str, Any]:
        dimensions_3d = {**Dimensions3D().model_dump(exclude={"volume"}), **supplied.get("dimensions_3d", {})}
        return {
            "name": "包装",
            "category": "packaging",
            **flat_layout(dimensions_3d),
            "bleed_area": 3,
            "materials": ["cardboard"],
            "finishes": [],
            "orientation": "landscape",
            "sides": 1,
            "min_quantity": 100,
            "max_quantity": 100000,
            "base_price": 100,
            "price_per_unit": 2.5,
            "constraints": {"min_font_size": 6, "required_dpi": 300},
            "packaging_materials": {"paper_type": "cardboard", "thickness": 1.5, "weight": 350},
            "structure": {"assembly_instructions": ["沿轮廓裁切", "沿折线折叠", "粘合封舌"]},
            "assembly": {"difficulty": "easy"},
        }

    def seed_templates(self) -> list[DesignTemplate]:
        return list(_seed_templates())

    def _apply_template(self, template: DesignTemplate) -> None:
        """套用模板的盒型、结构、组装难度和组装步骤."""
        attributes = template.attributes
        changes: dict[str, Any] = {}
        if "package_type" in attributes:
            changes["package_type"] = attributes["package_type"]
        if "structure" in attributes:
            changes["structure"] = attributes["structure"]
        if "difficulty" in attributes:
            changes["assembly"] = {"difficulty": attributes["difficulty"]}
        if changes:
            self._update_config(**changes)
        self._assembly_steps = list(attributes.get("assembly_steps", []))
        self._unfold_pattern = ""
        self._sync_scene()

    # ===================
    # 3D 场景
    # ===================

    def _window_overlays(self) -> list[WindowOverlay]:
        return [
            WindowOverlay(
                width=cutout.width,
                height=cutout.height,
                position=(cutout.position[0], cutout.position[1], cutout.position[2] + 1),
            )
            for cutout in self.config.structural.window_cutouts
            if cutout.enabled
        ]

    def _sync_scene(self) -> None:
        """按当前配置重建场景（关闭 3D 预览时清空）."""
        config = self.config
        if not config.visualization.render_3d:
            self._scene = None
            return
        dims = config.dimensions_3d
        self._scene = geometry.build_scene(
            dims.length,
            dims.width,
            dims.height,
            config.packaging_materials.paper_type,
            self._window_overlays(),
            config.visualization.lighting_setup,
        )

    def import_config(self, config: Any) -> None:
        super().import_config(config)
        self._unfold_pattern = ""
        self._sync_scene()

    def restore_project(self, project: Any) -> None:
        super().restore_project(project)
        self._unfold_pattern = ""
        self._sync_scene()

    def get_scene(self) -> Optional[geometry.PackageScene]:
        """当前 3D 场景的副本."""
        return self._scene.model_copy(deep=True) if self._scene else None

    # ===================
    # 校验
    # ===================

    def validate_design(self) -> DesignValidationResult:
        """校验包装设计.

        错误阻止下单，警告提示结构或生产风险，建议给出改进方向。
        """
        result = DesignValidationResult()
        config = self.config
        dims = config.dimensions_3d
        materials = config.packaging_materials
        assembly = config.assembly
        finishes = config.printing.special_finishes

        if min(dims.length, dims.width, dims.height) <= 0:
            result.add_error("包装的所有尺寸都必须大于零")

        max_side = dims.max_side_mm
        needs_reinforcement = materials.paper_type == "cardboard" and max_side > LARGE_CARDBOARD_SIDE_MM
        if needs_reinforcement:
            result.add_warning("大尺寸纸盒可能需要额外加固")
        if dims.liters > LARGE_VOLUME_LITERS:
            result.add_warning("体积过大可能增加生产难度")
        if materials.thickness < THIN_MATERIAL_MM and max_side > THIN_MATERIAL_SIDE_MM:
            result.add_warning("材料较薄，大尺寸包装可能强度不足")

        if assembly.difficulty == "complex" and not assembly.tools_required:
            result.add_error("复杂组装必须列出所需工具")
        if not config.printing.sides:
            result.add_error("至少需要选择一个印刷面")

        for index, cutout in enumerate(config.structural.window_cutouts, start=1):
            if not cutout.enabled:
                continue
            if cutout.width >= dims.width * WINDOW_MAX_RATIO or cutout.height >= dims.height * WINDOW_MAX_RATIO:
                result.add_warning(f"开窗 {index} 过大，可能削弱结构强度")

        if materials.sustainability.recyclable and materials.coating == "lamination":
            result.add_warning("覆膜会增加材料回收难度")
        if not config.branding.logo_placement:
            result.add_warning("建议添加标志以提升品牌辨识度")
        if finishes.embossing and materials.thickness < MIN_EMBOSSING_THICKNESS_MM:
            result.add_error(f"压凸工艺要求材料厚度不低于 {MIN_EMBOSSING_THICKNESS_MM}mm")
        if assembly.estimated_time > EASY_ASSEMBLY_MAX_MINUTES and assembly.difficulty == "easy":
            result.add_warning("组装时间与标注的简单难度不符")

        if needs_reinforcement:
            result.add_suggestion("考虑改用瓦楞纸板以提高强度")
        if materials.sustainability.recyclable:
            result.add_suggestion("添加环保标识以提升吸引力")
        if config.package_type == "box" and not config.structural.reinforcement:
            result.add_suggestion("增加边角加固以提高耐用性")
        if assembly.difficulty == "complex":
            result.add_suggestion("为复杂组装制作视频说明")
        if not config.branding.logo_placement:
            result.add_suggestion("将标志放在包装最显眼的一面")
        return result

    # ===================
    # 报价
    # ===================

    def get_active_features(self) -> list[str]:
        """已启用的附加工艺（键名）."""
        config = self.config
        finishes = config.printing.special_finishes
        active = {
            "window_cutouts": any(cutout.enabled for cutout in config.structural.window_cutouts),
            "perforations": config.structural.perforations.enabled,
            "embossing": finishes.embossing,
            "foil_stamping": finishes.foil_stamping.enabled,
            "coating": config.packaging_materials.coating != "none",
            "fsc_certified": config.packaging_materials.sustainability.fsc_certified,
        }
        return [name for name, enabled in active.items() if enabled]

    def calculate_price(self, quantity: int) -> PriceQuote:
        """计算包装报价.

        体积乘数 1 + (升 - 1) * 0.1 限制在 0.5 到 2 之间，附加工艺按件计价。
        """
        config = self.config
        builder = PriceBuilder(config.base_price, config.price_per_unit, quantity, self.settings.currency)
        dims = config.dimensions_3d
        volume_multiplier = clamp(1 + (dims.liters - 1) * VOLUME_RATE, *VOLUME_MULTIPLIER_RANGE)

        builder.multiply("material", MATERIAL_MULTIPLIERS.get(config.packaging_materials.paper_type, 1.0))
        builder.multiply("complexity", COMPLEXITY_MULTIPLIERS.get(config.assembly.difficulty, 1.0))
        builder.multiply("type", TYPE_MULTIPLIERS.get(config.package_type, 1.0))
        builder.multiply("volume", volume_multiplier)
        builder.discount(tier_rate(quantity, QUANTITY_DISCOUNTS))

        features = self.get_active_features()
        features_price = sum(quantity * FEATURE_PRICES[name] for name in features if name in FEATURE_PRICES)
        builder.surcharge("features", features_price)

        builder.detail("package_type", config.package_type)
        builder.detail("material", config.packaging_materials.paper_type)
        builder.detail("complexity", config.assembly.difficulty)
        builder.detail("volume", f"{dims.volume:.2f} {dims.unit}³")
        builder.detail("coating", config.packaging_materials.coating)
        builder.detail("special_features", [FEATURE_LABELS[name] for name in features])
        return builder.build({"volume_multiplier": round(volume_multiplier, 4), "features_price": round(features_price, 2)})

    # ===================
    # 展开图与组装说明
    # ===================

    def generate_unfold_pattern(self) -> str:
        """生成展开图 SVG 并缓存."""
        dims = self.config.dimensions_3d
        self._unfold_pattern = geometry.unfold_svg(dims.length, dims.width, dims.height, dims.unit)
        return self._unfold_pattern

    def get_unfold_pattern(self) -> str:
        return self._unfold_pattern or self.generate_unfold_pattern()

    def generate_assembly_instructions(self) -> list[str]:
        """按盒型生成编号的组装步骤."""
        materials = self.config.packaging_materials
        steps = [
            f"准备材料：{materials.paper_type}，厚度 {materials.thickness:g}mm",
            "以 300 DPI 打印展开图",
            "沿实线裁切",
            "沿虚线压出折痕",
            "在对应封舌上涂胶",
            *ASSEMBLY_STEPS_BY_TYPE.get(self.config.package_type, []),
            *QUALITY_STEPS,
        ]
        self._assembly_steps = [f"{index}. {step}" for index, step in enumerate(steps, start=1)]
        return list(self._assembly_steps)

    def get_assembly_steps(self) -> list[str]:
        return list(self._assembly_steps) if self._assembly_steps else self.generate_assembly_instructions()

    # ===================
    # 导出
    # ===================

    def _draw_dieline(self, canvas: Image.Image, scale: float) -> Image.Image:
        """在展开图上叠加裁切线（实线）和折线（红色虚线）."""
        dims = self.config.dimensions_3d
        draw = ImageDraw.Draw(canvas)
        width = max(1, round(scale * 0.2))
        cut_color = parse_color(DIELINE_CUT_COLOR)
        for face in geometry.unfold_net(dims.length, dims.width, dims.height):
            left, top, right, bottom = (value * scale for value in face.bounds)
            draw.rectangle([left, top, right, bottom], outline=cut_color, width=width)
        fold_color = parse_color(DIELINE_FOLD_COLOR)
        dash = [5 * scale, 5 * scale]
        for (x1, y1), (x2, y2) in geometry.unfold_fold_lines(dims.length, dims.width, dims.height):
            draw_dashed_line(draw, (x1 * scale, y1 * scale), (x2 * scale, y2 * scale), dash, fold_color, width)
        return canvas

    def build_render_job(self, format: str, dpi: Optional[float]) -> RenderJob:
        job = super().build_render_job(format, dpi)
        if self.config.visualization.unfold_view:
            job.post_effects.append(self._draw_dieline)
        return job

    def export_scene_json(self) -> str:
        """3D 模型导出数据."""
        config = self.config
        payload = {
            "type": "3d-model",
            "package_type": config.package_type,
            "dimensions": config.dimensions_3d.model_dump(),
            "scene": self._scene.model_dump(mode="json") if self._scene else None,
            "timestamp": utc_now().isoformat(),
        }
        return json.dumps(payload, ensure_ascii=False)

    async def export_design(self, format: Optional[str] = None, *, dpi: Optional[float] = None) -> ExportResult:
        """导出包装设计.

        ``3d`` 导出场景 JSON，``unfold`` 导出展开图 SVG，``svg`` 导出等轴测视图加展开图，
        其他格式按展开图平面栅格化。
        """
        fmt = (format or self.settings.export_default_format).lower()
        dims = self.config.dimensions_3d
        if fmt == "3d":
            data = self.export_scene_json().encode("utf-8")
            mime_type = "application/json"
        elif fmt == "unfold":
            data = self.get_unfold_pattern().encode("utf-8")
            mime_type = "image/svg+xml"
        elif fmt == "svg":
            data = geometry.presentation_svg(dims.length, dims.width, dims.height).encode("utf-8")
            mime_type = "image/svg+xml"
        else:
            return await super().export_design(fmt, dpi=dpi)
        logger.info(f"导出包装 {fmt}: {len(data)} 字节")
        return ExportResult(data=data, mime_type=mime_type, format=fmt)

    # ===================
    # 包装专用操作
    # ===================

    def update_visualization(self, changes: Optional[Mapping[str, Any]] = None) -> Visualization:
        """更新预览设置并同步场景与展开图."""
        if changes:
            self._merge_section("visualization", changes)
        self._sync_scene()
        if self.config.visualization.unfold_view:
            self.generate_unfold_pattern()
        visualization = self.config.visualization.model_copy(deep=True)
        self._emit(ConstructorEvent.VISUALIZATION_UPDATED, {"config": visualization})
        return visualization

    def update_package_type(self, package_type: PackageType) -> None:
        self._update_config(package_type=package_type)
        self._assembly_steps = []
        self.update_visualization()
        self._emit(ConstructorEvent.PACKAGE_TYPE_CHANGED, {"type": package_type})

    def update_dimensions_3d(self, dimensions: Mapping[str, Any]) -> Dimensions3D:
        """更新三维尺寸，重新计算体积、展开图平面尺寸和场景."""
        merged = {**self.config.dimensions_3d.model_dump(exclude={"volume"}), **dimensions}
        layout = flat_layout(merged)
        layout["dimensions"]["dpi"] = self.config.dimensions.dpi
        self._update_config(dimensions_3d=merged, **layout)
        self._unfold_pattern = ""
        self._sync_scene()
        result = self.config.dimensions_3d.model_copy()
        logger.debug(f"包装尺寸更新: {result.length}x{result.width}x{result.height}{result.unit}")
        self._emit(ConstructorEvent.DIMENSIONS_CHANGED, {"dimensions": result})
        return result

    def update_materials(self, materials: Mapping[str, Any]) -> PackagingMaterials:
        """更新纸材（部分字段），同步场景中的盒体外观."""
        self._merge_section("packaging_materials", materials)
        self._update_config(materials=[self.config.packaging_materials.paper_type])
        self._sync_scene()
        result = self.config.packaging_materials.model_copy(deep=True)
        self._emit(ConstructorEvent.MATERIAL_CHANGED, {"material": result})
        return result

    def add_window_cutout(self, cutout: Union[WindowCutout, Mapping[str, Any]]) -> WindowCutout:
        """添加开窗."""
        window = cutout if isinstance(cutout, WindowCutout) else WindowCutout.model_validate(cutout)
        windows = [*self.config.structural.window_cutouts, window]
        self._merge_section("structural", {"window_cutouts": windows})
        self._sync_scene()
        self._emit(ConstructorEvent.WINDOW_CUTOUT_ADDED, {"cutout": window})
        return window

    def remove_window_cutout(self, index: int) -> bool:
        """按序号移除开窗."""
        windows = list(self.config.structural.window_cutouts)
        if not 0 <= index < len(windows):
            return False
        removed = windows.pop(index)
        self._merge_section("structural", {"window_cutouts": windows})
        self._sync_scene()
        self._emit(ConstructorEvent.WINDOW_CUTOUT_REMOVED, {"index": index, "cutout": removed})
        return True

    def get_dimensions_3d(self) -> Dimensions3D:
        return self.config.dimensions_3d.model_copy()

    def get_materials(self) -> PackagingMaterials:
        return self.config.packaging_materials.model_copy(deep=True)

    def get_structural_options(self) -> StructuralOptions:
        return self.config.structural.model_copy(deep=True)
