"""产品构造器模块."""

from print_constructor.constructors.acrylic import AcrylicConfig, AcrylicConstructor
from print_constructor.constructors.business_card import BusinessCardConfig, BusinessCardConstructor
from print_constructor.constructors.canvas import CanvasConfig, CanvasConstructor
from print_constructor.constructors.flyer import FlyerConfig, FlyerConstructor
from print_constructor.constructors.packaging import PackagingConfig, PackagingConstructor
from print_constructor.constructors.sticker import StickerConfig, StickerConstructor

__all__ = [
    "AcrylicConfig",
    "AcrylicConstructor",
    "BusinessCardConfig",
    "BusinessCardConstructor",
    "CanvasConfig",
    "CanvasConstructor",
    "FlyerConfig",
    "FlyerConstructor",
    "PackagingConfig",
    "PackagingConstructor",
    "StickerConfig",
    "StickerConstructor",
]
