"""贴纸构造器单元测试."""

from __future__ import annotations

from datetime import date

import pytest

from print_constructor.constructors.sticker import (
    StickerConstructor,
    analyze_cut_path,
    circle_path,
    rectangle_path,
    sample_variable_data,
    size_multiplier,
)
from print_constructor.core.events import ConstructorEvent
from print_constructor.models.app_settings import Settings
from print_constructor.models.design_element import DesignElement


def dumbbell_path(neck: float) -> list[tuple[float, float]]:
    """两个 20mm 方块由 10mm 长的细颈相连."""
    top, bottom = 10 - neck / 2, 10 + neck / 2
    return [
        (0, 0), (20, 0), (20, top), (30, top), (30, 0), (50, 0), (50, 20),
        (30, 20), (30, bottom), (20, bottom), (20, 20), (0, 20), (0, 0),
    ]


WEATHERPROOF = {
    "weather_resistance": True,
    "temperature": {"min": -30, "max": 90},
}


@pytest.fixture
def sticker(settings: Settings) -> StickerConstructor:
    return StickerConstructor(settings=settings)


# ===================
# 轮廓几何测试
# ===================
class TestCutPathGeometry:
    """测试模切轮廓分析."""

    def test_rectangle_path_closed(self) -> None:
        path = rectangle_path(10, 10, 20, 8, margin=2)
        assert path == [(8, 8), (32, 8), (32, 20), (8, 20), (8, 8)]

    def test_circle_point_count(self) -> None:
        assert len(circle_path(0, 0, 50, 50)) == 37
        assert len(circle_path(0, 0, 50, 50, step=3)) == 121

    def test_complexity_by_point_count(self) -> None:
        assert analyze_cut_path(rectangle_path(0, 0, 50, 50)).complexity == "simple"
        assert analyze_cut_path(circle_path(0, 0, 50, 50)).complexity == "medium"
        analysis = analyze_cut_path(circle_path(0, 0, 50, 50, step=3))
        assert analysis.complexity == "very-complex"
        assert analysis.too_complex

    def test_tight_corner(self) -> None:
        """小于 30 度的顶点夹角视为锐角."""
        analysis = analyze_cut_path([(0, 0), (50, 0), (0, 5), (0, 0)])
        assert analysis.tight_corners
        assert not analyze_cut_path(rectangle_path(0, 0, 10, 10)).tight_corners

    def test_duplicate_points_ignored(self) -> None:
        assert not analyze_cut_path([(0, 0), (0, 0), (10, 0)]).tight_corners

    def test_thin_bridge(self) -> None:
        """细颈窄于桥宽时标记连接桥过窄."""
        assert analyze_cut_path(dumbbell_path(1)).thin_bridges
        assert not analyze_cut_path(dumbbell_path(4)).thin_bridges
        assert analyze_cut_path(dumbbell_path(4), bridge_width=5).thin_bridges
        assert not analyze_cut_path(circle_path(0, 0, 50, 50, step=3)).thin_bridges

    @pytest.mark.parametrize(
        ("area", "expected"),
        [(150, 2.5), (100, 2.0), (60, 2.0), (50, 1.5), (26, 1.5), (25, 1.2), (11, 1.2), (10, 1.0), (5, 1.0), (4, 1.8)],
    )
    def test_size_multiplier(self, area: float, expected: float) -> None:
        assert size_multiplier(area) == expected

    def test_sample_variable_data(self) -> None:
        text = "{{number}}-{{code}}-{{date}} ###"
        assert sample_variable_data(text, today=date(2026, 1, 2)) == "001-ABC123-2026-01-02 001"


# ===================
# 构造器测试
# ===================
class TestDefaults:
    """测试默认配置."""

    def test_default_config(self, sticker: StickerConstructor) -> None:
        config = sticker.config
        assert (config.dimensions.width, config.dimensions.height) == (50, 50)
        assert (config.base_price, config.price_per_unit) == (50, 2)
        assert config.cutting_details.cut_path == rectangle_path(0, 0, 50, 50)
        assert sticker.get_area_cm2() == 25

    def test_default_design_valid(self, sticker: StickerConstructor) -> None:
        result = sticker.validate_design()
        assert result.valid
        assert result.warnings == []


class TestCutting:
    """测试模切操作."""

    def test_update_cut_path(self, sticker: StickerConstructor) -> None:
        events = []
        sticker.on(ConstructorEvent.CUT_PATH_UPDATED, events.append)

        complexity = sticker.update_cut_path(circle_path(0, 0, 50, 50))

        assert complexity == "medium"
        assert sticker.get_cutting_details().cut_complexity == "medium"
        assert events[0]["complexity"] == "medium"

    def test_complex_path_rejected(self, sticker: StickerConstructor) -> None:
        sticker.update_cut_path(circle_path(0, 0, 50, 50, step=3))
        errors = sticker.validate_design().errors
        assert any("模切轮廓过于复杂" in e for e in errors)

    def test_complex_path_allowed_for_kiss_cut(self, sticker: StickerConstructor) -> None:
        """只有轮廓模切检查轮廓复杂度."""
        sticker.update_cut_path(circle_path(0, 0, 50, 50, step=3))
        sticker.update_cut_type("kiss-cut")
        assert sticker.validate_design().valid

    def test_tight_corner_error(self, sticker: StickerConstructor) -> None:
        sticker.update_cut_path([(0, 0), (50, 0), (0, 5), (0, 0)])
        assert any("转角半径" in e for e in sticker.validate_design().errors)

    def test_thin_bridge_error(self, sticker: StickerConstructor) -> None:
        sticker.update_cut_path(dumbbell_path(1))
        assert any("连接桥" in e for e in sticker.validate_design().errors)
        sticker.update_cut_path(dumbbell_path(4))
        assert sticker.validate_design().valid

    def test_generate_from_text(self, sticker: StickerConstructor) -> None:
        """文字按边界框外扩 2mm 生成轮廓."""
        sticker.add_element(DesignElement.text_element("Hi", x=10, y=10, width=20, height=8, element_id="label"))
        assert sticker.generate_cut_path_from_element("label")
        assert sticker.get_cutting_details().cut_path == [(8, 8), (32, 8), (32, 20), (8, 20), (8, 8)]

    def test_generate_from_circle(self, sticker: StickerConstructor) -> None:
        sticker.add_element(DesignElement.shape_element("circle", width=40, height=40, element_id="dot"))
        assert sticker.generate_cut_path_from_element("dot")
        assert len(sticker.get_cutting_details().cut_path) == 37

    def test_generate_unsupported(self, sticker: StickerConstructor) -> None:
        sticker.add_element(
            DesignElement.shape_element("polygon", width=10, height=10, points=[(0, 0), (10, 0), (5, 10)], element_id="tri")
        )
        assert not sticker.generate_cut_path_from_element("tri")
        assert not sticker.generate_cut_path_from_element("missing")

    def test_cut_type_preset(self, sticker: StickerConstructor) -> None:
        sticker.update_cut_type("laser-cut")
        assert sticker.get_cutting_details().minimum_cut_radius == 0.5
        assert sticker.config.cut_type == "laser-cut"


class TestValidation:
    """测试使用环境与内容校验."""

    def test_outdoor_requirements(self, settings: Settings) -> None:
        sticker = StickerConstructor({"application_area": "outdoor"}, settings=settings)
        result = sticker.validate_design()
        assert any("耐候" in e for e in result.errors)
        assert any("80°C" in e for e in result.errors)
        assert any("-20°C" in e for e in result.errors)
        assert result.warnings == ["户外使用建议覆膜"]

    def test_outdoor_ready(self, settings: Settings) -> None:
        sticker = StickerConstructor(
            {
                "application_area": "outdoor",
                "sticker_properties": WEATHERPROOF,
                "lamination": {"enabled": True},
            },
            settings=settings,
        )
        result = sticker.validate_design()
        assert result.valid
        assert result.warnings == []

    def test_safety_requires_reflective(self, settings: Settings) -> None:
        sticker = StickerConstructor({"application_area": "safety"}, settings=settings)
        assert any("反光" in e for e in sticker.validate_design().errors)
        sticker.update_sticker_type("reflective")
        assert sticker.validate_design().valid

    def test_small_element_and_font(self, settings: Settings) -> None:
        sticker = StickerConstructor({"dimensions": {"width": 20, "height": 20}}, settings=settings)
        sticker.add_element(DesignElement.shape_element(width=2, height=2, element_id="speck"))
        sticker.add_element(DesignElement.text_element("tiny", x=2, y=5, width=15, height=5, font_size=5))
        errors = sticker.validate_design().errors
        assert any('"speck"' in e for e in errors)
        assert any("字号" in e for e in errors)

    def test_qr_enabled_without_element(self, settings: Settings) -> None:
        sticker = StickerConstructor({"special_features": {"qr_integration": True}}, settings=settings)
        assert any("二维码" in e for e in sticker.validate_design().errors)

    def test_variable_data_without_field(self, settings: Settings) -> None:
        sticker = StickerConstructor({"special_features": {"variable_data": True}}, settings=settings)
        assert any("可变数据" in e for e in sticker.validate_design().errors)


class TestFeatures:
    """测试二维码、可变数据与材质."""

    def test_qr_code_sticker(self, sticker: StickerConstructor) -> None:
        element = sticker.add_qr_code_sticker("https://example.com")
        assert element.id == "sticker_qr_code"
        assert (element.x, element.y, element.width) == (33, 33, 15)
        assert sticker.get_special_features().qr_integration
        assert sticker.validate_design().valid

    def test_variable_data_field(self, sticker: StickerConstructor) -> None:
        element = sticker.add_variable_data_field("serial", (5, 5))
        assert element.id == "variable_serial"
        assert sticker.get_special_features().variable_data
        assert sticker.resolve_text("No. ###") == "No. 001"
        assert sticker.validate_design().valid

    def test_placeholders_untouched_without_variable_data(self, sticker: StickerConstructor) -> None:
        assert sticker.resolve_text("No. ###") == "No. ###"

    def test_sticker_type_preset(self, sticker: StickerConstructor) -> None:
        events = []
        sticker.on(ConstructorEvent.STICKER_TYPE_CHANGED, events.append)
        sticker.update_sticker_type("holographic")
        assert sticker.get_special_features().security_features
        assert events == ["holographic"]

    def test_paper_preset_removes_weather_resistance(self, sticker: StickerConstructor) -> None:
        sticker.update_sticker_type("vinyl")
        assert sticker.get_sticker_properties().weather_resistance
        sticker.update_sticker_type("paper")
        properties = sticker.get_sticker_properties()
        assert not properties.weather_resistance
        assert properties.adhesive_strength == "medium"

    def test_material_recommendations(self) -> None:
        assert [r["material"] for r in StickerConstructor.get_material_recommendations("outdoor")] == [
            "vinyl",
            "reflective",
        ]
        assert len(StickerConstructor.get_material_recommendations("kitchen")) == 2


class TestPricing:
    """测试报价."""

    def test_default_price(self, sticker: StickerConstructor) -> None:
        """(50 + 2 × 100) × 1.2 × 1.3 × 0.95，加每张 1 的单独包装."""
        quote = sticker.calculate_price(100)
        assert quote.breakdown["size_multiplier"] == 1.2
        assert quote.breakdown["cutting_multiplier"] == 1.3
        assert quote.breakdown["packaging_price"] == 100
        assert quote.total == pytest.approx(250 * 1.2 * 1.3 * 0.95 + 100)

    def test_very_complex_contour(self, sticker: StickerConstructor) -> None:
        sticker.update_cut_path(circle_path(0, 0, 50, 50, step=3))
        assert sticker.calculate_price(10).breakdown["cutting_multiplier"] == 3.5

    def test_weeding_and_lamination(self, settings: Settings) -> None:
        sticker = StickerConstructor({"lamination": {"enabled": True, "uv_protection": True}}, settings=settings)
        sticker.update_cut_type("contour-cut")
        quote = sticker.calculate_price(10)
        assert quote.breakdown["weeding_price"] == 10 * 25 * 2
        assert quote.breakdown["lamination_price"] == pytest.approx(10 * 25 * 5 * 1.3)

    def test_large_order_discount(self, sticker: StickerConstructor) -> None:
        assert sticker.calculate_price(10000).breakdown["discount_rate"] == 0.30


class TestExport:
    """测试贴纸导出."""

    def test_material_backgrounds(self, sticker: StickerConstructor) -> None:
        assert sticker.build_render_job("png", None).background == "#ffffff"
        sticker.update_sticker_type("transparent")
        assert sticker.build_render_job("png", None).background is None
        sticker.update_sticker_type("reflective")
        job = sticker.build_render_job("png", None)
        assert job.background == "#c0c0c0"
        assert len(job.post_effects) == 1

    def test_holographic_adds_background(self, sticker: StickerConstructor) -> None:
        sticker.update_sticker_type("holographic")
        job = sticker.build_render_job("png", 30)
        assert job.elements[0].type.value == "background"

    def test_cut_line_only_for_pdf(self, sticker: StickerConstructor) -> None:
        assert sticker.build_render_job("png", 30).post_effects == []
        assert len(sticker.build_render_job("pdf", 30).post_effects) == 1

    @pytest.mark.asyncio
    async def test_pdf_export(self, sticker: StickerConstructor, text_element: DesignElement) -> None:
        sticker.add_element(text_element)
        result = await sticker.export_design("pdf", dpi=100)
        assert result.data.startswith(b"%PDF")
