"""构造器事件订阅模块.

提供按事件名分通道的同步发布/订阅机制，是构造器通知 UI 协作方的唯一渠道。

Features:
    - 事件名枚举（通用事件与产品专用事件）
    - 按注册顺序同步投递
    - 单个处理器异常隔离并记录日志
"""

from __future__ import annotations

from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Union

from print_constructor.utils.logger import setup_logger

logger = setup_logger(__name__)

EventHandler = Callable[[Any], None]


class ConstructorEvent(str, Enum):
    """构造器事件名."""

    # 通用事件
    ELEMENT_ADDED = "elementAdded"
    ELEMENT_REMOVED = "elementRemoved"
    ELEMENT_UPDATED = "elementUpdated"
    STATE_CHANGED = "stateChanged"
    UNDO_PERFORMED = "undoPerformed"
    REDO_PERFORMED = "redoPerformed"
    TEMPLATE_LOADED = "templateLoaded"
    TEMPLATES_REFRESHED = "templatesRefreshed"
    SETTINGS_UPDATED = "settingsUpdated"
    AUTO_SAVED = "autoSaved"
    SIDE_CHANGED = "sideChanged"
    CONFIG_IMPORTED = "configImported"
    QR_CODE_ADDED = "qrCodeAdded"
    QR_CODE_REMOVED = "qrCodeRemoved"
    PRESET_APPLIED = "presetApplied"

    # 名片
    CORPORATE_FIELD_UPDATED = "corporateFieldUpdated"
    SPECIAL_FEATURE_UPDATED = "specialFeatureUpdated"
    STYLE_APPLIED = "styleApplied"

    # 传单
    CONTENT_SECTION_UPDATED = "contentSectionUpdated"
    BRANDING_ELEMENT_UPDATED = "brandingElementUpdated"
    DISCOUNT_OFFER_ADDED = "discountOfferAdded"
    DISCOUNT_OFFER_REMOVED = "discountOfferRemoved"
    PRINT_FEATURE_UPDATED = "printFeatureUpdated"
    FOLD_TYPE_CHANGED = "foldTypeChanged"
    FLYER_TYPE_CHANGED = "flyerTypeChanged"

    # 画布
    CANVAS_TYPE_CHANGED = "canvasTypeChanged"
    FRAME_OPTIONS_UPDATED = "frameOptionsUpdated"
    CANVAS_PROPERTIES_UPDATED = "canvasPropertiesUpdated"
    IMAGE_ENHANCEMENTS_UPDATED = "imageEnhancementsUpdated"
    COLOR_CORRECTION_UPDATED = "colorCorrectionUpdated"
    ROOM_VISUALIZATION_GENERATED = "roomVisualizationGenerated"

    # 亚克力
    ACRYLIC_TYPE_CHANGED = "acrylicTypeChanged"
    ACRYLIC_PROPERTIES_UPDATED = "acrylicPropertiesUpdated"
    MOUNTING_SYSTEM_UPDATED = "mountingSystemUpdated"
    ILLUMINATION_UPDATED = "illuminationUpdated"
    PRINTING_DETAILS_UPDATED = "printingDetailsUpdated"
    MODERN_FEATURES_UPDATED = "modernFeaturesUpdated"
    SMART_FEATURES_ENABLED = "smartFeaturesEnabled"

    # 贴纸
    STICKER_TYPE_CHANGED = "stickerTypeChanged"
    CUT_TYPE_CHANGED = "cutTypeChanged"
    CUT_PATH_UPDATED = "cutPathUpdated"
    VARIABLE_DATA_ADDED = "variableDataAdded"

    # 包装
    PACKAGE_TYPE_CHANGED = "packageTypeChanged"
    DIMENSIONS_CHANGED = "dimensionsChanged"
    MATERIAL_CHANGED = "materialChanged"
    WINDOW_CUTOUT_ADDED = "windowCutoutAdded"
    WINDOW_CUTOUT_REMOVED = "windowCutoutRemoved"
    VISUALIZATION_UPDATED = "visualizationUpdated"


EventName = Union[ConstructorEvent, str]


def _channel(event: EventName) -> str:
    """事件名归一化为通道键."""
    return event.value if isinstance(event, ConstructorEvent) else str(event)


class EventBus:
    """事件总线.

    每个事件名对应一个处理器列表，emit 时按注册顺序同步调用。
    某个处理器抛出的异常会被记录并跳过，不影响其他处理器和已完成的状态变更。

    Example:
        >>> bus = EventBus()
        >>> bus.on(ConstructorEvent.ELEMENT_ADDED, lambda element: print(element.id))
        >>> bus.emit(ConstructorEvent.ELEMENT_ADDED, element)
    """

    def __init__(self) -> None:
        """初始化事件总线."""
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def on(self, event: EventName, handler: EventHandler) -> None:
        """注册事件处理器.

        Args:
            event: 事件名
            handler: 处理器，接收事件载荷
        """
        self._handlers[_channel(event)].append(handler)

    def off(self, event: EventName, handler: EventHandler) -> bool:
        """注销事件处理器.

        Args:
            event: 事件名
            handler: 之前注册的处理器

        Returns:
            是否找到并移除
        """
        handlers = self._handlers.get(_channel(event))
        if not handlers or handler not in handlers:
            return False
        handlers.remove(handler)
        return True

    def emit(self, event: EventName, payload: Any = None) -> None:
        """向所有处理器投递事件.

        Args:
            event: 事件名
            payload: 事件载荷
        """
        channel = _channel(event)
        # 复制列表，处理器内注销自身不影响本轮投递
        for handler in list(self._handlers.get(channel, ())):
            try:
                handler(payload)
            except Exception:
                logger.exception(f"事件处理器执行失败: {channel}")

    def handler_count(self, event: EventName) -> int:
        """获取事件处理器数量."""
        return len(self._handlers.get(_channel(event), ()))

    def clear(self) -> None:
        """移除所有处理器."""
        self._handlers.clear()
