"""快照式撤销/重做历史.

历史是有界的线性快照列表加一个游标，新的变更会丢弃游标之后的所有状态。
"""

from __future__ import annotations

from typing import Optional

from print_constructor.utils.constants import DEFAULT_HISTORY_MAX_STATES
from print_constructor.utils.exceptions import InvalidConfigValueError
from print_constructor.utils.logger import setup_logger

logger = setup_logger(__name__)


class HistoryManager:
    """历史快照管理器.

    快照以序列化字符串保存，恢复时总是得到独立副本。

    Attributes:
        max_states: 保留的最大快照数

    Example:
        >>> history = HistoryManager(max_states=3)
        >>> history.push("a"); history.push("b")
        >>> history.undo()
        'a'
    """

    DEFAULT_MAX_STATES = DEFAULT_HISTORY_MAX_STATES

    def __init__(self, max_states: int = DEFAULT_MAX_STATES) -> None:
        """初始化历史管理器.

        Args:
            max_states: 保留的最大快照数

        Raises:
            InvalidConfigValueError: max_states 小于 1
        """
        if max_states < 1:
            raise InvalidConfigValueError("max_states", str(max_states), "至少为 1")

        self._states: list[str] = []
        self._index = -1
        self._max_states = max_states

    @property
    def max_states(self) -> int:
        """最大快照数."""
        return self._max_states

    @property
    def current_index(self) -> int:
        """当前游标位置（空历史为 -1）."""
        return self._index

    @property
    def states(self) -> list[str]:
        """快照列表副本."""
        return list(self._states)

    @property
    def can_undo(self) -> bool:
        """是否可以撤销."""
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        """是否可以重做."""
        return self._index < len(self._states) - 1

    def __len__(self) -> int:
        return len(self._states)

    def push(self, snapshot: str) -> None:
        """追加快照.

        截断游标之后的重做状态，超出上限时淘汰最旧快照并同步回退游标。

        Args:
            snapshot: 序列化后的文档状态
        """
        del self._states[self._index + 1:]
        self._states.append(snapshot)
        self._index += 1

        while len(self._states) > self._max_states:
            self._states.pop(0)
            self._index -= 1

        logger.debug(f"保存历史快照: {self._index + 1}/{len(self._states)}")

    def undo(self) -> Optional[str]:
        """游标后退一步.

        Returns:
            目标快照，已到最早状态时返回 None
        """
        if not self.can_undo:
            return None
        self._index -= 1
        return self._states[self._index]

    def redo(self) -> Optional[str]:
        """游标前进一步.

        Returns:
            目标快照，已到最新状态时返回 None
        """
        if not self.can_redo:
            return None
        self._index += 1
        return self._states[self._index]

    def current(self) -> Optional[str]:
        """当前快照."""
        if self._index < 0:
            return None
        return self._states[self._index]

    def restore(self, states: list[str], current_index: int) -> None:
        """从序列化数据恢复历史.

        超出上限的旧快照会被淘汰，游标被限制在有效范围内。

        Args:
            states: 快照列表
            current_index: 游标位置
        """
        overflow = max(0, len(states) - self._max_states)
        self._states = list(states[overflow:])
        if not self._states:
            self._index = -1
            return
        self._index = min(max(current_index - overflow, 0), len(self._states) - 1)

    def clear(self) -> None:
        """清空历史."""
        self._states.clear()
        self._index = -1
