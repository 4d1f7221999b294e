"""亚克力构造器单元测试."""

from __future__ import annotations

import pytest

from print_constructor.constructors.acrylic import AcrylicConstructor, mounting_zones
from print_constructor.core.events import ConstructorEvent
from print_constructor.models.app_settings import Settings
from print_constructor.models.design_element import DesignElement


@pytest.fixture
def acrylic(settings: Settings) -> AcrylicConstructor:
    return AcrylicConstructor(settings=settings)


@pytest.fixture
def large_panel(settings: Settings) -> AcrylicConstructor:
    return AcrylicConstructor({"dimensions": {"width": 60, "height": 50}}, settings=settings)


class TestGeometry:
    """测试面积与安装区."""

    def test_default_size(self, acrylic: AcrylicConstructor) -> None:
        dimensions = acrylic.config.dimensions
        assert (dimensions.width, dimensions.height, dimensions.unit.value) == (30, 20, "cm")
        assert acrylic.get_area_dm2() == 6

    def test_area_dm2(self, large_panel: AcrylicConstructor) -> None:
        assert large_panel.get_area_dm2() == 30

    def test_mounting_zones(self) -> None:
        zones = mounting_zones(30, 20)
        assert zones == [(0, 0, 3, 3), (27, 0, 30, 3), (0, 17, 3, 20), (27, 17, 30, 20)]

    def test_thickness_recommendations(self, acrylic: AcrylicConstructor, large_panel: AcrylicConstructor) -> None:
        assert [r["thickness"] for r in acrylic.get_thickness_recommendations()] == [3, 5]
        assert [r["thickness"] for r in large_panel.get_thickness_recommendations()] == [8, 10, 12]


class TestValidation:
    """测试亚克力校验."""

    def test_default_valid_with_reverse_print_warning(self, acrylic: AcrylicConstructor) -> None:
        """没有图片时背面印刷只给出提示."""
        result = acrylic.validate_design()
        assert result.valid
        assert len(result.warnings) == 1

    def test_thin_large_panel(self, large_panel: AcrylicConstructor) -> None:
        assert any("25 dm²" in e for e in large_panel.validate_design().errors)
        large_panel.update_acrylic_properties({"thickness": 8})
        assert large_panel.validate_design().valid

    def test_corner_mounting_conflict(self, acrylic: AcrylicConstructor) -> None:
        """角部元素与安装五金冲突，背景元素除外."""
        acrylic.add_element(DesignElement.text_element("corner", x=0, y=0, width=10, height=2, element_id="corner"))
        acrylic.add_element(DesignElement.text_element("center", x=10, y=8, width=10, height=2, element_id="center"))
        acrylic.add_element(
            DesignElement.shape_element(width=30, height=20, element_type="background", element_id="bg")
        )

        errors = acrylic.validate_design().errors
        assert any('"corner"' in e for e in errors)
        assert not any('"center"' in e for e in errors)
        assert not any('"bg"' in e for e in errors)

    def test_edge_lit_thickness(self, acrylic: AcrylicConstructor) -> None:
        acrylic.update_acrylic_properties({"thickness": 3})
        acrylic.update_illumination({"enabled": True, "type": "edge-lit"})
        assert any("侧边发光" in e for e in acrylic.validate_design().errors)

    def test_back_lit_opaque(self, acrylic: AcrylicConstructor) -> None:
        acrylic.update_acrylic_properties({"transparency": "opaque"})
        acrylic.update_illumination({"enabled": True, "type": "back-lit"})
        assert any("背光" in e for e in acrylic.validate_design().errors)

    def test_large_panel_standoff(self, settings: Settings) -> None:
        panel = AcrylicConstructor(
            {"dimensions": {"width": 80, "height": 60}, "acrylic_properties": {"thickness": 12}},
            settings=settings,
        )
        assert any("支架距离" in e for e in panel.validate_design().errors)
        panel.update_mounting_system({"hardware": {"standoff_distance": 25}})
        assert panel.validate_design().valid

    def test_laser_qr_on_high_gloss(self, acrylic: AcrylicConstructor) -> None:
        acrylic.add_qr_code("https://example.com")
        assert any("高光" in e for e in acrylic.validate_design().errors)

    def test_carbon_neutral_requires_eco_inks(self, acrylic: AcrylicConstructor) -> None:
        acrylic.update_modern_features(
            {"sustainability": {"carbon_neutral": True, "eco_friendly_inks": False}}
        )
        assert any("环保油墨" in e for e in acrylic.validate_design().errors)


class TestPricing:
    """测试报价."""

    def test_default_price(self, acrylic: AcrylicConstructor) -> None:
        """6 dm² 5mm premium 钻石抛光，背面印刷广色域，不锈钢支架."""
        quote = acrylic.calculate_price(1)
        assert quote.breakdown["material_multiplier"] == 2.55
        assert quote.breakdown["printing_multiplier"] == 1.5
        assert quote.breakdown["mounting_price"] == 300
        assert quote.total == pytest.approx(800 * 2.55 * 1.5 + 300)

    def test_rgb_battery_illumination(self, acrylic: AcrylicConstructor) -> None:
        acrylic.update_illumination({"enabled": True, "led_type": "rgb", "power": "battery"})
        quote = acrylic.calculate_price(2)
        assert quote.breakdown["illumination_price"] == 2 * 500 * 1.5 + 2 * 200

    def test_quantity_discount(self, acrylic: AcrylicConstructor) -> None:
        assert acrylic.calculate_price(20).breakdown["discount_rate"] == 0.15

    def test_printing_details(self, acrylic: AcrylicConstructor) -> None:
        """直接印刷去掉背面印刷附加费."""
        details = acrylic.update_printing_details({"print_type": "direct-print"})
        assert details.print_type == "direct-print"
        assert acrylic.calculate_price(1).breakdown["printing_multiplier"] == 1.2

    def test_modern_features_price(self, acrylic: AcrylicConstructor) -> None:
        acrylic.add_qr_code("data")
        acrylic.enable_smart_features(touch_sensitive=True)
        assert acrylic.calculate_price(1).breakdown["modern_features_price"] == 150 + 800


class TestFeatures:
    """测试二维码、智能功能与预设."""

    def test_add_qr_code(self, acrylic: AcrylicConstructor) -> None:
        """激光雕刻二维码放在右下角并半透明."""
        events = []
        acrylic.on(ConstructorEvent.QR_CODE_ADDED, events.append)

        element = acrylic.add_qr_code("https://example.com")

        assert element.id == "acrylic_qr_code"
        assert (element.x, element.y, element.width, element.height) == (22, 12, 6, 6)
        assert element.opacity == 0.8
        assert acrylic.get_modern_features().qr_integration.enabled
        assert events == [{"type": "laser-etched", "data": "https://example.com"}]

    def test_printed_qr_replaces(self, acrylic: AcrylicConstructor) -> None:
        acrylic.add_qr_code("first")
        element = acrylic.add_qr_code("second", qr_type="printed")
        assert element.opacity == 1
        assert len([e for e in acrylic.get_all_elements() if e.id == "acrylic_qr_code"]) == 1

    def test_proximity_lighting_enables_illumination(self, acrylic: AcrylicConstructor) -> None:
        interactivity = acrylic.enable_smart_features(proximity_lighting=True)
        assert interactivity.enabled and interactivity.proximity_lighting
        illumination = acrylic.get_illumination()
        assert illumination.enabled
        assert (illumination.type, illumination.led_type) == ("edge-lit", "rgb")

    def test_existing_illumination_kept(self, acrylic: AcrylicConstructor) -> None:
        acrylic.update_illumination({"enabled": True, "type": "back-lit"})
        acrylic.enable_smart_features(proximity_lighting=True)
        assert acrylic.get_illumination().type == "back-lit"

    def test_design_preset(self, acrylic: AcrylicConstructor) -> None:
        """预设按字段合并，未涉及的字段保留."""
        assert acrylic.apply_design_preset("luxury")
        mounting = acrylic.get_mounting_system()
        assert acrylic.get_acrylic_properties().thickness == 12
        assert mounting.type == "floating-mount"
        assert mounting.hardware.material == "brass"
        assert mounting.hardware.standoff_distance == 15

    def test_tech_preset_enables_smart_features(self, acrylic: AcrylicConstructor) -> None:
        assert acrylic.apply_design_preset("tech")
        interactivity = acrylic.get_modern_features().interactivity
        assert interactivity.smart_connectivity
        assert acrylic.get_illumination().type == "ambient"

    def test_unknown_preset(self, acrylic: AcrylicConstructor) -> None:
        assert not acrylic.apply_design_preset("baroque")

    def test_acrylic_type_preset(self, acrylic: AcrylicConstructor) -> None:
        events = []
        acrylic.on(ConstructorEvent.ACRYLIC_TYPE_CHANGED, events.append)
        acrylic.update_acrylic_type("logo-display")
        assert acrylic.config.design_style == "corporate"
        assert acrylic.get_acrylic_properties().thickness == 8
        assert events == ["logo-display"]


class TestExport:
    """测试亚克力导出."""

    def test_render_job_transparency(self, acrylic: AcrylicConstructor) -> None:
        """透明度决定背景，默认导出不低于 300 DPI."""
        job = acrylic.build_render_job("png", None)
        assert job.background is None
        assert job.dpi == 300
        assert len(job.post_effects) == 1

        acrylic.update_acrylic_properties({"transparency": "frosted", "surface_finish": "matte"})
        job = acrylic.build_render_job("png", None)
        assert job.background == "rgba(255, 255, 255, 0.3)"
        assert job.post_effects == []

    @pytest.mark.asyncio
    async def test_export_with_image(self, acrylic: AcrylicConstructor, png_data_url: str) -> None:
        acrylic.add_element(DesignElement.image_element(png_data_url, x=5, y=5, width=20, height=10))
        result = await acrylic.export_design("png", dpi=30)
        assert result.width == round(30 * 30 / 2.54)
        assert result.height == round(20 * 30 / 2.54)
