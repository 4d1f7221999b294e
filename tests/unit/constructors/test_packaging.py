"""包装构造器单元测试."""

from __future__ import annotations

import json

import pytest

from print_constructor.constructors.packaging import Dimensions3D, PackagingConstructor, flat_layout
from print_constructor.core.events import ConstructorEvent
from print_constructor.models.app_settings import Settings


@pytest.fixture
def package(settings: Settings) -> PackagingConstructor:
    return PackagingConstructor(settings=settings)


class TestDimensions:
    """测试三维尺寸与展开图平面尺寸."""

    def test_default_dimensions(self, package: PackagingConstructor) -> None:
        dims = package.get_dimensions_3d()
        assert (dims.length, dims.width, dims.height) == (200, 150, 100)
        assert dims.volume == 3_000_000
        assert dims.liters == 3
        assert (package.config.dimensions.width, package.config.dimensions.height) == (700, 400)

    def test_liters_in_centimeters(self) -> None:
        assert Dimensions3D(length=10, width=10, height=10, unit="cm").liters == pytest.approx(1)

    def test_flat_layout(self) -> None:
        layout = flat_layout({"length": 100, "width": 50, "height": 40})
        assert layout["dimensions"]["width"] == 300
        assert layout["dimensions"]["height"] == 140
        assert layout["print_area"]["width"] == 300

    def test_update_dimensions_syncs_layout_and_scene(self, package: PackagingConstructor) -> None:
        """只更新长度时其余尺寸保留，平面尺寸和场景同步更新."""
        events = []
        package.on(ConstructorEvent.DIMENSIONS_CHANGED, events.append)

        dims = package.update_dimensions_3d({"length": 300})

        assert (dims.length, dims.width, dims.height) == (300, 150, 100)
        assert package.config.dimensions.width == 900
        assert package.config.dimensions.height == 400
        assert package.get_scene().box.length == 300
        assert len(events) == 1

    def test_supplied_dimensions(self, settings: Settings) -> None:
        package = PackagingConstructor({"dimensions_3d": {"length": 100, "width": 100, "height": 100}}, settings=settings)
        assert package.config.dimensions.width == 400
        assert package.get_scene().box.height == 100


class TestSceneAndStructure:
    """测试 3D 场景、纸材与开窗."""

    def test_material_changes_scene(self, package: PackagingConstructor) -> None:
        materials = package.update_materials({"paper_type": "kraft"})
        assert materials.paper_type == "kraft"
        assert materials.thickness == 1.5
        assert package.config.materials == ["kraft"]
        assert package.get_materials().paper_type == "kraft"
        assert package.get_scene().box.color == "#d2b48c"

    def test_window_cutouts(self, package: PackagingConstructor) -> None:
        """开窗在场景中显示为略微突出盒面的覆盖层."""
        package.add_window_cutout({"width": 50, "height": 30, "position": (0, 0, 75)})
        windows = package.get_scene().windows
        assert len(windows) == 1
        assert windows[0].position == (0, 0, 76)
        assert len(package.get_structural_options().window_cutouts) == 1

        assert package.remove_window_cutout(0)
        assert package.get_scene().windows == []
        assert not package.remove_window_cutout(0)

    def test_disable_3d_render(self, package: PackagingConstructor) -> None:
        updates = []
        package.on(ConstructorEvent.VISUALIZATION_UPDATED, updates.append)
        visualization = package.update_visualization({"render_3d": False})
        assert not visualization.render_3d
        assert package.get_scene() is None
        assert len(updates) == 1

    def test_scene_copy(self, package: PackagingConstructor) -> None:
        scene = package.get_scene()
        scene.box.color = "#000000"
        assert package.get_scene().box.color != "#000000"

    def test_load_template(self, package: PackagingConstructor) -> None:
        """模板套用结构、组装难度和组装步骤."""
        ids = [t.id for t in package.get_available_templates()]
        assert ids == ["pkg_classic_box", "pkg_pillow_box", "pkg_display_box"]
        assert package.load_template("pkg_pillow_box")
        assert package.config.assembly.difficulty == "medium"
        assert package.config.structure.unfold_template == "pillow_curved"
        assert len(package.get_assembly_steps()) == 5

    def test_assembly_instructions_by_type(self, package: PackagingConstructor) -> None:
        events = []
        package.on(ConstructorEvent.PACKAGE_TYPE_CHANGED, events.append)
        package.update_package_type("tube")

        steps = package.get_assembly_steps()

        assert steps[0] == "1. 准备材料：cardboard，厚度 1.5mm"
        assert "6. 卷成圆筒形" in steps
        assert len(steps) == 11
        assert events == [{"type": "tube"}]


class TestValidation:
    """测试包装校验."""

    def test_default_warnings_and_suggestions(self, package: PackagingConstructor) -> None:
        result = package.validate_design()
        assert result.valid
        assert result.warnings == ["建议添加标志以提升品牌辨识度"]
        assert len(result.suggestions) == 3

    def test_embossing_thickness(self, settings: Settings) -> None:
        package = PackagingConstructor(
            {
                "packaging_materials": {"thickness": 1.0},
                "printing": {"special_finishes": {"embossing": True}},
            },
            settings=settings,
        )
        assert any("压凸" in e for e in package.validate_design().errors)
        package.update_materials({"thickness": 1.5})
        assert package.validate_design().valid

    def test_complex_assembly_requires_tools(self, settings: Settings) -> None:
        package = PackagingConstructor({"assembly": {"difficulty": "complex"}}, settings=settings)
        result = package.validate_design()
        assert any("工具" in e for e in result.errors)
        assert "为复杂组装制作视频说明" in result.suggestions

    def test_large_window_warning(self, package: PackagingConstructor) -> None:
        package.add_window_cutout({"width": 130, "height": 30})
        assert any("开窗 1" in w for w in package.validate_design().warnings)

    def test_large_cardboard_box(self, package: PackagingConstructor) -> None:
        package.update_dimensions_3d({"length": 700})
        result = package.validate_design()
        assert any("加固" in w for w in result.warnings)
        assert "考虑改用瓦楞纸板以提高强度" in result.suggestions


class TestPricing:
    """测试报价."""

    def test_default_price(self, package: PackagingConstructor) -> None:
        """3 升的体积乘数为 1.2."""
        quote = package.calculate_price(100)
        assert quote.breakdown["volume_multiplier"] == 1.2
        assert quote.total == pytest.approx((100 + 2.5 * 100) * 1.2)

    def test_volume_multiplier_clamped(self, package: PackagingConstructor) -> None:
        package.update_dimensions_3d({"length": 1000, "width": 1000, "height": 1000})
        assert package.calculate_price(100).breakdown["volume_multiplier"] == 2.0

    def test_feature_surcharges(self, package: PackagingConstructor) -> None:
        package.add_window_cutout({"width": 50, "height": 30})
        package.update_materials({"coating": "varnish"})
        quote = package.calculate_price(100)
        assert quote.breakdown["features_price"] == 100 * (15 + 12)
        assert quote.breakdown["details"]["special_features"] == ["开窗", "表面涂层"]

    def test_material_and_discount(self, package: PackagingConstructor) -> None:
        package.update_materials({"paper_type": "corrugated"})
        quote = package.calculate_price(1000)
        assert quote.breakdown["multipliers"]["material"] == 1.3
        assert quote.breakdown["discount_rate"] == 0.08


class TestExport:
    """测试包装导出."""

    @pytest.mark.asyncio
    async def test_export_3d_json(self, package: PackagingConstructor) -> None:
        result = await package.export_design("3d")
        payload = json.loads(result.data)
        assert result.mime_type == "application/json"
        assert payload["type"] == "3d-model"
        assert payload["scene"]["box"]["length"] == 200

    @pytest.mark.asyncio
    async def test_export_unfold(self, package: PackagingConstructor) -> None:
        result = await package.export_design("unfold")
        assert result.mime_type == "image/svg+xml"
        assert result.data.startswith(b"<svg")
        assert result.data.count(b"<line") == 5

    @pytest.mark.asyncio
    async def test_export_presentation_svg(self, package: PackagingConstructor) -> None:
        result = await package.export_design("svg")
        assert b'id="isometric-view"' in result.data

    @pytest.mark.asyncio
    async def test_export_png_dieline(self, package: PackagingConstructor) -> None:
        """栅格导出按展开图平面尺寸，并叠加刀版线."""
        assert len(package.build_render_job("png", 10).post_effects) == 1
        result = await package.export_design("png", dpi=10)
        assert result.width == round(700 * 10 / 25.4)
        assert result.height == round(400 * 10 / 25.4)
