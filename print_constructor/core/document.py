"""设计文档状态与变更管理.

DesignDocument 是各产品构造器组合使用的共享组件，负责元素增删改、
层级调整、撤销/重做、分面切换和显示设置。产品构造器不直接修改元素列表，
所有变更都经过这里，以保证历史快照和事件通知的一致性。

Features:
    - 正反面元素集合（单面产品没有背面）
    - 每次元素变更保存一次历史快照并发出事件
    - 快照恢复只替换 sides 与 metadata
    - 读取接口返回防御性副本
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from print_constructor.core.events import ConstructorEvent, EventBus
from print_constructor.core.history import HistoryManager
from print_constructor.models.design_element import DesignElement
from print_constructor.models.project_state import (
    DocumentSettings,
    DocumentSides,
    HistoryState,
    ProjectMetadata,
    ProjectSnapshot,
    SerializedProject,
)
from print_constructor.utils.constants import DEFAULT_HISTORY_MAX_STATES
from print_constructor.utils.helpers import generate_element_id, merge_dicts, utc_now
from print_constructor.utils.logger import setup_logger

logger = setup_logger(__name__)

ElementInput = Union[DesignElement, Mapping[str, Any]]

FRONT = 0
BACK = 1


class DesignDocument:
    """设计文档.

    Attributes:
        sides_count: 产品印刷面数
        current_side: 当前操作的面（0 正面，1 背面）
        settings: 显示设置
        metadata: 项目元数据
        history: 历史快照管理器

    Example:
        >>> document = DesignDocument(sides_count=2, events=EventBus())
        >>> element = document.add_element(DesignElement.text_element("Hi"))
        >>> document.undo()
        True
    """

    def __init__(
        self,
        sides_count: int,
        events: EventBus,
        max_states: int = DEFAULT_HISTORY_MAX_STATES,
        settings: Optional[DocumentSettings] = None,
    ) -> None:
        """初始化文档并保存空白基线快照.

        Args:
            sides_count: 产品印刷面数 (1 或 2)
            events: 事件总线
            max_states: 历史快照上限
            settings: 初始显示设置
        """
        self.sides_count = sides_count
        self.events = events
        self.current_side = FRONT
        self.settings = settings.model_copy() if settings else DocumentSettings()
        self.metadata = ProjectMetadata()
        self.history = HistoryManager(max_states)

        self._front: list[DesignElement] = []
        self._back: Optional[list[DesignElement]] = [] if sides_count >= 2 else None

        # 基线快照，使第一次变更也可以撤销
        self.save_state()

    # ===================
    # 内部辅助
    # ===================

    def _side_list(self, side: Optional[int]) -> Optional[list[DesignElement]]:
        """获取指定面的元素列表，面不存在时返回 None."""
        side = self.current_side if side is None else side
        if side == FRONT:
            return self._front
        if side == BACK:
            return self._back
        return None

    @staticmethod
    def _find_index(elements: list[DesignElement], element_id: str) -> int:
        for i, element in enumerate(elements):
            if element.id == element_id:
                return i
        return -1

    @staticmethod
    def _coerce(element: ElementInput) -> DesignElement:
        """转换为独立的元素副本，缺失 ID 时分配新 ID."""
        if isinstance(element, DesignElement):
            copy = element.model_copy(deep=True)
        else:
            payload = dict(element)
            if not payload.get("id"):
                payload["id"] = generate_element_id()
            copy = DesignElement.model_validate(payload)
        if not copy.id:
            copy.id = generate_element_id()
        return copy

    # ===================
    # 元素操作
    # ===================

    def add_element(
        self,
        element: ElementInput,
        side: Optional[int] = None,
    ) -> Optional[DesignElement]:
        """添加元素.

        Args:
            element: 元素或元素字段字典
            side: 目标面，默认当前面

        Returns:
            实际加入文档的元素副本；目标面不存在时返回 None 且不做任何修改
        """
        target = self._side_list(side)
        if target is None:
            logger.debug(f"目标面不存在，忽略添加: side={side}")
            return None

        added = self._coerce(element)
        if self._find_index(target, added.id) >= 0:
            # 同一面内 ID 必须唯一
            added.id = generate_element_id()

        target.append(added)
        self.save_state()
        self.events.emit(ConstructorEvent.ELEMENT_ADDED, added.model_copy(deep=True))
        logger.debug(f"添加元素: {added.id} ({added.type.value})")
        return added.model_copy(deep=True)

    def remove_element(self, element_id: str, side: Optional[int] = None) -> bool:
        """删除第一个匹配 ID 的元素.

        Returns:
            是否删除成功
        """
        target = self._side_list(side)
        if target is None:
            return False

        index = self._find_index(target, element_id)
        if index < 0:
            return False

        removed = target.pop(index)
        self.save_state()
        self.events.emit(ConstructorEvent.ELEMENT_REMOVED, removed)
        logger.debug(f"删除元素: {element_id}")
        return True

    def update_element(
        self,
        element_id: str,
        fields: Mapping[str, Any],
        side: Optional[int] = None,
    ) -> bool:
        """合并字段到匹配的元素.

        载荷 data 做深度合并；id 字段不可修改。字段非法时抛出
        pydantic.ValidationError，文档保持不变。

        Args:
            element_id: 元素 ID
            fields: 要更新的字段
            side: 目标面，默认当前面

        Returns:
            是否找到并更新
        """
        target = self._side_list(side)
        if target is None:
            return False

        index = self._find_index(target, element_id)
        if index < 0:
            return False

        changes = {key: value for key, value in fields.items() if key != "id"}
        merged = merge_dicts(target[index].model_dump(), changes)
        updated = DesignElement.model_validate(merged)

        target[index] = updated
        self.save_state()
        self.events.emit(ConstructorEvent.ELEMENT_UPDATED, updated.model_copy(deep=True))
        logger.debug(f"更新元素: {element_id}, 字段: {list(changes)}")
        return True

    def get_element(self, element_id: str, side: Optional[int] = None) -> Optional[DesignElement]:
        """按 ID 获取元素副本."""
        target = self._side_list(side)
        if target is None:
            return None
        index = self._find_index(target, element_id)
        return target[index].model_copy(deep=True) if index >= 0 else None

    def get_all_elements(self, side: Optional[int] = None) -> list[DesignElement]:
        """获取某一面全部元素的副本列表."""
        target = self._side_list(side)
        if target is None:
            return []
        return [element.model_copy(deep=True) for element in target]

    def clear_sides(self) -> None:
        """清空所有面的元素（不保存快照）."""
        self._front = []
        if self._back is not None:
            self._back = []

    # ===================
    # 层级操作
    # ===================

    def move_to_layer(self, element_id: str, layer: int, side: Optional[int] = None) -> bool:
        """移动元素到指定层级，负层级被拒绝."""
        if layer < 0:
            return False
        return self.update_element(element_id, {"layer": layer}, side)

    def move_up(self, element_id: str, side: Optional[int] = None) -> bool:
        """上移一层."""
        element = self.get_element(element_id, side)
        if element is None:
            return False
        return self.move_to_layer(element_id, element.layer + 1, side)

    def move_down(self, element_id: str, side: Optional[int] = None) -> bool:
        """下移一层，已在 0 层时不操作."""
        element = self.get_element(element_id, side)
        if element is None or element.layer <= 0:
            return False
        return self.move_to_layer(element_id, element.layer - 1, side)

    def move_to_top(self, element_id: str, side: Optional[int] = None) -> bool:
        """移到最上层（当前最大层级 + 1）."""
        target = self._side_list(side)
        if target is None:
            return False
        max_layer = max([element.layer for element in target] + [0])
        return self.move_to_layer(element_id, max_layer + 1, side)

    def move_to_bottom(self, element_id: str, side: Optional[int] = None) -> bool:
        """移到最底层 (0)."""
        return self.move_to_layer(element_id, 0, side)

    # ===================
    # 历史记录
    # ===================

    def sides_model(self) -> DocumentSides:
        """当前正反面元素的模型副本."""
        return DocumentSides(
            front=[element.model_copy(deep=True) for element in self._front],
            back=None if self._back is None else [e.model_copy(deep=True) for e in self._back],
        )

    def save_state(self) -> None:
        """保存当前状态快照并发出 stateChanged."""
        self.metadata.updated_at = utc_now()
        snapshot = ProjectSnapshot(sides=self.sides_model(), metadata=self.metadata)
        self.history.push(snapshot.model_dump_json())
        self.events.emit(ConstructorEvent.STATE_CHANGED, self)

    def _restore_snapshot(self, raw: str) -> None:
        snapshot = ProjectSnapshot.model_validate_json(raw)
        self._front = list(snapshot.sides.front)
        if self.sides_count >= 2:
            self._back = list(snapshot.sides.back or [])
        self.metadata = snapshot.metadata

    def undo(self) -> bool:
        """撤销到上一个快照."""
        raw = self.history.undo()
        if raw is None:
            return False
        self._restore_snapshot(raw)
        self.events.emit(ConstructorEvent.UNDO_PERFORMED, self)
        logger.debug(f"撤销: 游标 {self.history.current_index}")
        return True

    def redo(self) -> bool:
        """重做到下一个快照."""
        raw = self.history.redo()
        if raw is None:
            return False
        self._restore_snapshot(raw)
        self.events.emit(ConstructorEvent.REDO_PERFORMED, self)
        logger.debug(f"重做: 游标 {self.history.current_index}")
        return True

    def can_undo(self) -> bool:
        """是否可以撤销."""
        return self.history.can_undo

    def can_redo(self) -> bool:
        """是否可以重做."""
        return self.history.can_redo

    # ===================
    # 分面与设置
    # ===================

    def switch_side(self, side: int) -> bool:
        """切换当前面，越界时不操作."""
        if not 0 <= side < self.sides_count:
            return False
        self.current_side = side
        self.events.emit(ConstructorEvent.SIDE_CHANGED, side)
        return True

    def update_settings(self, changes: Mapping[str, Any]) -> DocumentSettings:
        """浅合并显示设置（不产生历史快照）.

        Returns:
            更新后的设置副本
        """
        self.settings = DocumentSettings.model_validate({**self.settings.model_dump(), **changes})
        self.events.emit(ConstructorEvent.SETTINGS_UPDATED, self.settings.model_copy())
        return self.settings.model_copy()

    def get_settings(self) -> DocumentSettings:
        """显示设置副本."""
        return self.settings.model_copy()

    # ===================
    # 序列化
    # ===================

    def history_state(self) -> HistoryState:
        """历史记录的序列化形式."""
        return HistoryState(
            states=self.history.states,
            current_index=self.history.current_index,
            max_states=self.history.max_states,
        )

    def restore(self, project: SerializedProject) -> None:
        """从序列化项目恢复文档状态."""
        self._front = [element.model_copy(deep=True) for element in project.sides.front]
        if self.sides_count >= 2:
            self._back = [e.model_copy(deep=True) for e in (project.sides.back or [])]
        self.metadata = project.metadata.model_copy()
        self.settings = project.settings.model_copy()
        self.current_side = project.current_side if 0 <= project.current_side < self.sides_count else FRONT
        if project.history.states:
            self.history.restore(project.history.states, project.history.current_index)
        else:
            self.history.clear()
            self.save_state()
