"""印刷品设计构造引擎.

提供设计文档模型（元素、层级、撤销/重做、模板、自动保存）以及名片、传单、
画布、亚克力、贴纸和包装六种产品构造器。
"""

__version__ = "1.0.0"

from print_constructor.core import BaseConstructor, ConfigManager, ConstructorEvent, ConstructorFactory, ProductType
from print_constructor.models import DesignElement, DesignTemplate

__all__ = [
    "__version__",
    "BaseConstructor",
    "ConfigManager",
    "ConstructorEvent",
    "ConstructorFactory",
    "DesignElement",
    "DesignTemplate",
    "ProductType",
]
