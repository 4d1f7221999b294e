"""传单构造器单元测试."""

from __future__ import annotations

import pytest

from print_constructor.constructors.flyer import FlyerConstructor, fold_lines
from print_constructor.core.events import ConstructorEvent
from print_constructor.models.app_settings import Settings
from print_constructor.models.design_element import DesignElement


@pytest.fixture
def flyer(settings: Settings) -> FlyerConstructor:
    return FlyerConstructor(settings=settings)


def fill_content(flyer: FlyerConstructor) -> None:
    flyer.update_content_section("headline", "Summer Sale")
    flyer.update_content_section("callToAction", "Call now")
    flyer.update_content_section("contact_info", "+380 44 000 00 00")


class TestSizesAndFolds:
    """测试尺寸与折页."""

    def test_size_drives_dimensions(self, settings: Settings) -> None:
        """尺寸决定默认成品尺寸和印刷区域."""
        flyer = FlyerConstructor({"size": "A5"}, settings=settings)
        assert (flyer.config.dimensions.width, flyer.config.dimensions.height) == (148, 210)
        assert flyer.config.print_area.width == 138

    def test_explicit_dimensions_win(self, settings: Settings) -> None:
        flyer = FlyerConstructor({"size": "A5", "dimensions": {"width": 150}}, settings=settings)
        assert flyer.config.dimensions.width == 150
        assert flyer.config.dimensions.height == 210

    def test_fold_lines(self) -> None:
        assert fold_lines("bifold", 148) == [74]
        assert fold_lines("trifold", 210) == [70, 140]
        assert fold_lines("gate-fold", 200) == [50, 100, 150]
        assert fold_lines(None, 210) == []

    def test_pages_from_fold_type(self, settings: Settings) -> None:
        flyer = FlyerConstructor({"fold_type": "trifold"}, settings=settings)
        assert flyer.config.pages == 6

    def test_change_fold_type(self, flyer: FlyerConstructor) -> None:
        """更换折页方式返回新页数并发出事件."""
        events = []
        flyer.on(ConstructorEvent.FOLD_TYPE_CHANGED, events.append)

        assert flyer.change_fold_type("gate-fold") == 8
        assert flyer.get_fold_lines() == [52.5, 105, 157.5]
        assert flyer.change_fold_type(None) == 2
        assert flyer.get_fold_lines() == []
        assert len(events) == 2


class TestContent:
    """测试内容与营销功能."""

    def test_update_content_section(self, flyer: FlyerConstructor) -> None:
        assert flyer.update_content_section("callToAction", "Book now")
        assert flyer.get_content_sections().call_to_action == "Book now"
        assert not flyer.update_content_section("footer", "x")

    def test_apply_flyer_type_preset(self, flyer: FlyerConstructor) -> None:
        """预设只覆盖标题和 CTA，其他内容保留."""
        flyer.update_content_section("contactInfo", "info@example.com")
        events = []
        flyer.on(ConstructorEvent.FLYER_TYPE_CHANGED, events.append)

        flyer.apply_flyer_type("event")

        sections = flyer.get_content_sections()
        assert flyer.config.flyer_type == "event"
        assert sections.headline == "欢迎加入我们！"
        assert sections.contact_info == "info@example.com"
        assert events == ["event"]

    def test_discount_placeholders(self, flyer: FlyerConstructor) -> None:
        flyer.add_discount_offer(20, "SALE20")
        assert flyer.resolve_text("-{{discountPercentage}}% {{discountCode}}") == "-20% SALE20"

    def test_remove_discount_offer(self, flyer: FlyerConstructor) -> None:
        flyer.add_discount_offer(20)
        flyer.remove_discount_offer()
        assert not flyer.get_marketing_features().discount_offer.enabled

    def test_qr_code(self, flyer: FlyerConstructor) -> None:
        element = flyer.add_qr_code("https://example.com")
        assert element.id == "flyer_qr_code"
        assert flyer.get_marketing_features().qr_code.enabled
        assert flyer.remove_qr_code()
        assert flyer.get_element("flyer_qr_code") is None

    def test_branding(self, flyer: FlyerConstructor) -> None:
        assert flyer.update_branding_element("companyName", "Poliprint")
        assert flyer.resolve_text("{{companyName}}") == "Poliprint"
        assert flyer.get_branding_elements().company_name == "Poliprint"

    def test_templates_by_size(self, flyer: FlyerConstructor) -> None:
        assert [t.id for t in flyer.get_templates_by_size("A5")] == ["fl_event_001"]


class TestValidation:
    """测试传单校验."""

    def test_required_content(self, flyer: FlyerConstructor) -> None:
        assert len(flyer.validate_design().errors) == 3

    def test_complete_flyer_valid(self, flyer: FlyerConstructor) -> None:
        fill_content(flyer)
        assert flyer.validate_design().valid

    def test_element_across_fold(self, flyer: FlyerConstructor) -> None:
        """跨越折线安全区的元素报错."""
        fill_content(flyer)
        flyer.change_fold_type("bifold")
        flyer.add_element(DesignElement.text_element("wide", x=60, y=20, width=30, element_id="wide"))
        flyer.add_element(DesignElement.text_element("left", x=20, y=40, width=30, element_id="left"))

        errors = flyer.validate_design().errors
        assert any('"wide"' in e for e in errors)
        assert not any('"left"' in e for e in errors)

    def test_headline_font_size(self, flyer: FlyerConstructor) -> None:
        fill_content(flyer)
        flyer.add_element(
            DesignElement.text_element("{{headline}}", x=10, y=10, font_size=18, element_id="main_headline")
        )
        assert any("主标题字号" in e for e in flyer.validate_design().errors)

    def test_large_image_warning(self, flyer: FlyerConstructor) -> None:
        fill_content(flyer)
        flyer.add_element(DesignElement.image_element("photo.jpg", x=10, y=10, width=100, height=80))
        result = flyer.validate_design()
        assert result.valid
        assert len(result.warnings) == 1

    def test_expired_discount(self, flyer: FlyerConstructor) -> None:
        fill_content(flyer)
        flyer.add_discount_offer(10, valid_until="2000-01-01")
        assert any("截止日期" in e for e in flyer.validate_design().errors)

    def test_discount_without_value(self, flyer: FlyerConstructor) -> None:
        fill_content(flyer)
        flyer.add_discount_offer()
        assert not flyer.validate_design().valid


class TestPricing:
    """测试报价."""

    def test_base_price(self, flyer: FlyerConstructor) -> None:
        """(100 + 0.8 × 1000) × (1 − 0.15)."""
        assert flyer.calculate_price(1000).total == 765

    def test_fold_and_size_multipliers(self, settings: Settings) -> None:
        flyer = FlyerConstructor({"size": "A5", "fold_type": "trifold"}, settings=settings)
        quote = flyer.calculate_price(100)
        assert quote.breakdown["size_multiplier"] == 0.7
        assert quote.breakdown["fold_multiplier"] == 1.6
        assert quote.total == pytest.approx(180 * 0.7 * 1.6)

    def test_print_features_surcharge(self, flyer: FlyerConstructor) -> None:
        flyer.update_print_feature("perforation", True)
        flyer.update_print_feature("spotColors", ["pantone-485"])
        quote = flyer.calculate_price(100)
        assert quote.breakdown["features_price"] == 40
        assert flyer.get_print_features().spot_colors == ["pantone-485"]
        assert quote.total == 220
        assert not flyer.update_print_feature("varnish", True)


class TestExport:
    """测试展开图导出."""

    @pytest.mark.asyncio
    async def test_bifold_export_is_two_panels_wide(self, settings: Settings) -> None:
        flyer = FlyerConstructor({"size": "A5", "fold_type": "bifold"}, settings=settings)
        result = await flyer.export_design("png", dpi=30)
        assert result.width == round(148 * 2 * 30 / 25.4)
        assert result.height == round(210 * 30 / 25.4)

    @pytest.mark.asyncio
    async def test_single_sheet_export(self, flyer: FlyerConstructor) -> None:
        result = await flyer.export_design("pdf", dpi=30)
        assert result.mime_type == "application/pdf"
