"""项目存储服务单元测试."""

from __future__ import annotations

from pathlib import Path

import pytest

from print_constructor.services.project_store import ProjectStore
from print_constructor.utils.exceptions import StorageError


class TestProjectStore:
    """测试键值存储."""

    def test_set_and_get(self, store: ProjectStore) -> None:
        store.set("project_a", '{"id": "a"}', product_type="stickers")
        assert store.get("project_a") == '{"id": "a"}'

    def test_get_missing(self, store: ProjectStore) -> None:
        assert store.get("missing") is None

    def test_overwrite(self, store: ProjectStore) -> None:
        """同一键再次写入覆盖旧值."""
        store.set("project_a", "v1", product_type="stickers")
        store.set("project_a", "v2", product_type="flyers")
        assert store.get("project_a") == "v2"
        assert store.keys("stickers") == []
        assert store.keys("flyers") == ["project_a"]

    def test_keys_sorted_and_filtered(self, store: ProjectStore) -> None:
        store.set("project_b", "b", product_type="canvas")
        store.set("project_a", "a", product_type="acrylic")
        assert store.keys() == ["project_a", "project_b"]
        assert store.keys("canvas") == ["project_b"]

    def test_delete(self, store: ProjectStore) -> None:
        store.set("project_a", "a")
        assert store.delete("project_a")
        assert not store.delete("project_a")
        assert store.get("project_a") is None

    def test_persists_across_instances(self, tmp_path: Path) -> None:
        """数据写入磁盘，新实例可读取."""
        db_path = tmp_path / "nested" / "projects.db"
        first = ProjectStore(db_path)
        first.set("project_a", "a")
        first.close()

        second = ProjectStore(db_path)
        try:
            assert second.get("project_a") == "a"
        finally:
            second.close()

    def test_unusable_path(self, tmp_path: Path) -> None:
        """数据库目录无法创建时抛出 StorageError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        with pytest.raises(StorageError):
            ProjectStore(blocker / "projects.db")
