"""构造器工厂单元测试."""

from __future__ import annotations

import pytest

from print_constructor.constructors.acrylic import AcrylicConstructor
from print_constructor.constructors.business_card import BusinessCardConstructor
from print_constructor.constructors.packaging import PackagingConstructor
from print_constructor.constructors.sticker import StickerConstructor
from print_constructor.core.factory import ConstructorFactory, ProductType, create_constructor
from print_constructor.models.app_settings import Settings
from print_constructor.utils.exceptions import UnknownProductTypeError


class TestCreate:
    """测试按产品类型创建构造器."""

    @pytest.mark.parametrize(
        ("product_type", "expected"),
        [
            ("business-cards", BusinessCardConstructor),
            ("acrylic", AcrylicConstructor),
            ("stickers", StickerConstructor),
            (ProductType.PACKAGING, PackagingConstructor),
        ],
    )
    def test_create_resolves_class(self, product_type, expected, settings: Settings) -> None:
        constructor = ConstructorFactory.create(product_type, settings=settings)
        assert isinstance(constructor, expected)

    def test_create_with_config_and_template(self, settings: Settings) -> None:
        """配置和初始模板都被应用."""
        constructor = ConstructorFactory.create(
            "business-cards", {"base_price": 60}, "bc_corporate_001", settings=settings
        )
        assert constructor.config.base_price == 60
        assert len(constructor.get_all_elements()) == 6

    def test_unknown_product_type(self) -> None:
        """未知产品类型抛出异常，不回退到默认产品."""
        with pytest.raises(UnknownProductTypeError) as exc_info:
            ConstructorFactory.create("mugs")
        assert "Unknown product type" in str(exc_info.value)
        assert exc_info.value.product_type == "mugs"

    def test_create_constructor_helper(self, settings: Settings) -> None:
        constructor = create_constructor("flyers", settings=settings)
        assert constructor.product_type == "flyers"


class TestProductTypes:
    """测试产品类型枚举."""

    def test_available_product_types(self) -> None:
        types = ConstructorFactory.get_available_product_types()
        assert set(types) >= {member.value for member in ProductType}
        assert len([t for t in types if t in {m.value for m in ProductType}]) == 6

    def test_every_type_matches_constructor(self, settings: Settings) -> None:
        """每个构造器的 product_type 与注册名一致."""
        for member in ProductType:
            constructor = ConstructorFactory.create(member, settings=settings)
            assert constructor.product_type == member.value

    def test_register_custom_type(self, settings: Settings) -> None:
        class PosterConstructor(BusinessCardConstructor):
            product_type = "posters"

        ConstructorFactory.register("posters", PosterConstructor)
        try:
            assert isinstance(ConstructorFactory.create("posters", settings=settings), PosterConstructor)
        finally:
            ConstructorFactory._registry.pop("posters")

    def test_register_rejects_non_constructor(self) -> None:
        with pytest.raises(TypeError):
            ConstructorFactory.register("bad", dict)  # type: ignore[arg-type]


class TestLoadProject:
    """测试从序列化文本重建构造器."""

    def test_load_project_restores_type(self, settings: Settings) -> None:
        original = ConstructorFactory.create("stickers", template_id="st_logo_001", settings=settings)
        text = original.serialize_project()

        loaded = ConstructorFactory.load_project(text, settings=settings)

        assert isinstance(loaded, StickerConstructor)
        assert loaded.get_project_id() == original.get_project_id()
        assert len(loaded.get_all_elements()) == len(original.get_all_elements())

    def test_load_project_unknown_type(self, settings: Settings) -> None:
        original = ConstructorFactory.create("flyers", settings=settings)
        text = original.serialize_project().replace('"product_type":"flyers"', '"product_type":"mugs"')
        with pytest.raises(UnknownProductTypeError):
            ConstructorFactory.load_project(text, settings=settings)
