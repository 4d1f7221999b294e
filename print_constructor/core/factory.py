"""构造器工厂模块.

按产品类型创建对应的产品构造器。
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Type, Union

from print_constructor.constructors.acrylic import AcrylicConstructor
from print_constructor.constructors.business_card import BusinessCardConstructor
from print_constructor.constructors.canvas import CanvasConstructor
from print_constructor.constructors.flyer import FlyerConstructor
from print_constructor.constructors.packaging import PackagingConstructor
from print_constructor.constructors.sticker import StickerConstructor
from print_constructor.core.base_constructor import BaseConstructor, ConfigInput
from print_constructor.utils.exceptions import UnknownProductTypeError
from print_constructor.utils.logger import setup_logger

logger = setup_logger(__name__)


class ProductType(str, Enum):
    """支持的产品类型."""

    BUSINESS_CARDS = "business-cards"
    FLYERS = "flyers"
    CANVAS = "canvas"
    ACRYLIC = "acrylic"
    STICKERS = "stickers"
    PACKAGING = "packaging"


class ConstructorFactory:
    """产品构造器工厂.

    Example:
        >>> constructor = ConstructorFactory.create("business-cards", {"base_price": 50})
        >>> ConstructorFactory.get_available_product_types()
        ['business-cards', 'flyers', 'canvas', 'acrylic', 'stickers', 'packaging']
    """

    _registry: dict[str, Type[BaseConstructor]] = {
        ProductType.BUSINESS_CARDS.value: BusinessCardConstructor,
        ProductType.FLYERS.value: FlyerConstructor,
        ProductType.CANVAS.value: CanvasConstructor,
        ProductType.ACRYLIC.value: AcrylicConstructor,
        ProductType.STICKERS.value: StickerConstructor,
        ProductType.PACKAGING.value: PackagingConstructor,
    }

    @classmethod
    def resolve(cls, product_type: Union[str, ProductType]) -> Type[BaseConstructor]:
        """解析产品类型对应的构造器类.

        Raises:
            UnknownProductTypeError: 未注册的产品类型
        """
        key = product_type.value if isinstance(product_type, ProductType) else str(product_type)
        try:
            return cls._registry[key]
        except KeyError:
            raise UnknownProductTypeError(key) from None

    @classmethod
    def create(
        cls,
        product_type: Union[str, ProductType],
        config: ConfigInput = None,
        template_id: Optional[str] = None,
        **deps: Any,
    ) -> BaseConstructor:
        """创建产品构造器.

        Args:
            product_type: 产品类型
            config: 产品配置
            template_id: 初始模板 ID
            **deps: 透传给构造器的依赖（settings、store、pipeline、name）

        Returns:
            产品构造器

        Raises:
            UnknownProductTypeError: 未知产品类型
        """
        constructor_class = cls.resolve(product_type)
        constructor = constructor_class(config, template_id, **deps)
        logger.info(f"工厂创建构造器: {constructor_class.__name__} (template={template_id or '-'})")
        return constructor

    @classmethod
    def get_available_product_types(cls) -> list[str]:
        """获取支持的产品类型列表."""
        return list(cls._registry)

    @classmethod
    def register(cls, product_type: str, constructor_class: Type[BaseConstructor]) -> None:
        """注册（或覆盖）产品类型."""
        if not issubclass(constructor_class, BaseConstructor):
            raise TypeError(f"{constructor_class!r} 不是 BaseConstructor 的子类")
        cls._registry[product_type] = constructor_class
        logger.info(f"注册产品类型: {product_type} -> {constructor_class.__name__}")

    @classmethod
    def load_project(cls, text: str, **deps: Any) -> BaseConstructor:
        """从序列化文本重建构造器.

        Raises:
            ProjectFormatError: 文本不是有效的项目数据
            UnknownProductTypeError: 项目的产品类型未注册
        """
        project = BaseConstructor.load_project(text)
        constructor_class = cls.resolve(project.product_type)
        constructor = constructor_class(project.product_config, **deps)
        constructor.restore_project(project)
        logger.info(f"工厂加载项目: {project.id} ({project.product_type})")
        return constructor


def create_constructor(
    product_type: Union[str, ProductType],
    config: ConfigInput = None,
    template_id: Optional[str] = None,
    **deps: Any,
) -> BaseConstructor:
    """便捷函数：创建产品构造器."""
    return ConstructorFactory.create(product_type, config, template_id, **deps)
