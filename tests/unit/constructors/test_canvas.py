"""画布构造器单元测试."""

from __future__ import annotations

import pytest

from print_constructor.constructors.canvas import CanvasConstructor, area_multiplier, minimum_dpi
from print_constructor.core.events import ConstructorEvent
from print_constructor.models.app_settings import Settings
from print_constructor.models.design_element import DesignElement


@pytest.fixture
def canvas(settings: Settings) -> CanvasConstructor:
    return CanvasConstructor(settings=settings)


class TestSizing:
    """测试尺寸阶梯."""

    @pytest.mark.parametrize(
        ("max_side", "expected"),
        [(120, 200), (101, 200), (100, 250), (61, 250), (60, 300), (41, 300), (40, 350)],
    )
    def test_minimum_dpi(self, max_side: float, expected: int) -> None:
        assert minimum_dpi(max_side) == expected

    @pytest.mark.parametrize(
        ("area", "expected"),
        [(150, 3.5), (100, 2.5), (50, 1.8), (24, 1.3), (10, 1.0)],
    )
    def test_area_multiplier_strict(self, area: float, expected: float) -> None:
        """面积等于阈值时取下一档."""
        assert area_multiplier(area) == expected

    def test_default_size(self, canvas: CanvasConstructor) -> None:
        dimensions = canvas.config.dimensions
        assert (dimensions.width, dimensions.height, dimensions.unit.value) == (60, 40, "cm")
        assert canvas.get_minimum_dpi() == 300


class TestValidation:
    """测试画布校验."""

    def test_default_canvas_valid(self, canvas: CanvasConstructor) -> None:
        assert canvas.validate_design().valid

    def test_small_canvas_needs_higher_dpi(self, settings: Settings) -> None:
        canvas = CanvasConstructor({"dimensions": {"width": 30, "height": 20}}, settings=settings)
        errors = canvas.validate_design().errors
        assert any("350 DPI" in e for e in errors)

    def test_gallery_wrap_edge_touch(self, canvas: CanvasConstructor) -> None:
        """包边画布上触及边缘的元素报错，背景除外."""
        canvas.add_element(DesignElement.text_element("edge", x=0, y=10, width=20, height=5, element_id="edge"))
        canvas.add_element(DesignElement.text_element("inner", x=5, y=10, width=20, height=5, element_id="inner"))
        canvas.add_element(
            DesignElement.shape_element(width=60, height=40, element_type="background", element_id="bg")
        )

        errors = canvas.validate_design().errors
        assert any('"edge"' in e for e in errors)
        assert not any('"inner"' in e for e in errors)
        assert not any('"bg"' in e for e in errors)

    def test_edge_allowed_without_gallery_wrap(self, canvas: CanvasConstructor) -> None:
        canvas.update_canvas_properties({"edge_treatment": "white"})
        canvas.add_element(DesignElement.text_element("edge", x=0, y=10, width=20, height=5))
        assert canvas.validate_design().valid

    def test_large_image_warning(self, settings: Settings) -> None:
        """覆盖大部分画布的大幅图片提示源图分辨率."""
        canvas = CanvasConstructor({"dimensions": {"width": 100, "height": 75}}, settings=settings)
        canvas.update_canvas_properties({"edge_treatment": "mirror"})
        canvas.add_element(DesignElement.image_element("photo.jpg", x=0, y=0, width=100, height=75))
        result = canvas.validate_design()
        assert result.valid
        assert any("350 DPI" in w for w in result.warnings)

    def test_oil_painting_strength(self, canvas: CanvasConstructor) -> None:
        canvas.update_image_enhancements({"artistic": {"enabled": True, "effect": "oil-painting", "strength": 80}})
        assert any("油画" in e for e in canvas.validate_design().errors)

    def test_upscaling_limit(self, canvas: CanvasConstructor) -> None:
        canvas.update_image_enhancements({"upscaling": {"enabled": True, "target_dpi": 700}})
        assert not canvas.validate_design().valid


class TestPricing:
    """测试报价."""

    def test_default_price(self, canvas: CanvasConstructor) -> None:
        """24 dm² 取 1.3 面积乘数，fine-art 纹理与 satin 涂层合计 1.35."""
        quote = canvas.calculate_price(1)
        assert quote.breakdown["size_multiplier"] == 1.3
        assert quote.breakdown["material_multiplier"] == 1.35
        assert quote.total == pytest.approx(550 * 1.3 * 1.35)

    def test_frame_and_processing(self, canvas: CanvasConstructor) -> None:
        canvas.update_frame_options({"type": "traditional-frame"})
        canvas.update_color_correction({"enabled": True, "contrast": 10})
        quote = canvas.calculate_price(1)
        assert quote.breakdown["frame_price"] == 1600
        assert quote.breakdown["processing_price"] == 50

    def test_deep_stretcher(self, canvas: CanvasConstructor) -> None:
        canvas.update_canvas_properties({"stretcher_depth": 2})
        assert canvas.calculate_price(1).breakdown["depth_multiplier"] == 1.2

    def test_quantity_discount(self, canvas: CanvasConstructor) -> None:
        assert canvas.calculate_price(10).breakdown["discount_rate"] == 0.10


class TestEnhancements:
    """测试图片增强与预设."""

    def test_apply_preset(self, canvas: CanvasConstructor) -> None:
        presets = []
        canvas.on(ConstructorEvent.PRESET_APPLIED, presets.append)

        assert canvas.apply_preset("vintage")

        enhancements = canvas.get_image_enhancements()
        assert enhancements.filters.enabled
        assert enhancements.filters.type == "vintage"
        assert enhancements.color_correction.saturation == -20
        assert presets == ["vintage"]

    def test_unknown_preset(self, canvas: CanvasConstructor) -> None:
        assert not canvas.apply_preset("neon")

    def test_partial_update_merges(self, canvas: CanvasConstructor) -> None:
        """分组内只覆盖提供的字段."""
        canvas.update_image_enhancements({"filters": {"type": "sepia"}})
        canvas.update_image_enhancements({"filters": {"enabled": True}})
        filters = canvas.get_image_enhancements().filters
        assert filters.type == "sepia"
        assert filters.enabled
        assert filters.intensity == 50

    def test_update_canvas_type_preset(self, canvas: CanvasConstructor) -> None:
        canvas.update_canvas_type("art-reproduction")
        assert canvas.config.artwork_style == "painterly"
        assert canvas.get_canvas_properties().texture == "canvas-textured"
        assert canvas.get_canvas_properties().coating == "satin"

    def test_room_visualization(self, canvas: CanvasConstructor) -> None:
        description = canvas.generate_room_visualization("bedroom")
        assert description["canvas_size"] == "60x40cm"
        assert len(description["recommended_sizes"]) == 2
        assert canvas.get_display_settings().room_visualization.enabled

    def test_recommended_sizes_fallback(self) -> None:
        assert CanvasConstructor.get_recommended_sizes("garage") == [{"size": "60x40cm", "description": "通用尺寸"}]


class TestExport:
    """测试画布导出."""

    @pytest.mark.asyncio
    async def test_export_applies_enhancements(self, canvas: CanvasConstructor, png_data_url: str) -> None:
        canvas.update_image_enhancements({"filters": {"enabled": True, "type": "black-white", "intensity": 100}})
        canvas.add_element(DesignElement.image_element(png_data_url, x=0, y=0, width=60, height=40))

        result = await canvas.export_design("png", dpi=30)

        assert result.width == round(60 * 30 / 2.54)
        assert result.height == round(40 * 30 / 2.54)

    def test_default_export_dpi_floor(self, settings: Settings) -> None:
        """未指定分辨率时导出不低于 300 DPI."""
        canvas = CanvasConstructor({"dimensions": {"dpi": 150}}, settings=settings)
        assert canvas.build_render_job("png", None).dpi == 300
