"""核心引擎模块."""

from print_constructor.core.base_constructor import BACK, FRONT, BaseConstructor
from print_constructor.core.config_manager import ConfigManager
from print_constructor.core.document import DesignDocument
from print_constructor.core.events import ConstructorEvent, EventBus
from print_constructor.core.history import HistoryManager
from print_constructor.core.factory import ConstructorFactory, ProductType, create_constructor

__all__ = [
    # 构造器
    "BACK",
    "FRONT",
    "BaseConstructor",
    # 文档与历史
    "DesignDocument",
    "HistoryManager",
    # 事件
    "ConstructorEvent",
    "EventBus",
    # 配置
    "ConfigManager",
    # 工厂
    "ConstructorFactory",
    "ProductType",
    "create_constructor",
]
