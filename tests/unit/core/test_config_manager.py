"""配置管理器单元测试."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from print_constructor.core.config_manager import DOCUMENT_SETTINGS_KEY, ConfigManager
from print_constructor.models.app_settings import Settings
from print_constructor.models.project_state import DocumentSettings
from print_constructor.services.project_store import ProjectStore
from print_constructor.services.template_catalog import FileTemplateSource, RemoteTemplateSource
from print_constructor.utils.exceptions import ConfigError
from print_constructor.utils.logger import get_log_level, get_log_level_name, set_log_level


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    return tmp_path / "config" / "config.json"


@pytest.fixture
def manager(config_file: Path, settings: Settings) -> ConfigManager:
    return ConfigManager(config_file, settings=settings)


class TestUserConfig:
    """测试用户配置文件读写."""

    def test_missing_file_returns_default(self, manager: ConfigManager) -> None:
        assert manager.get_user_config("theme", "light") == "light"

    def test_set_and_get(self, manager: ConfigManager, config_file: Path) -> None:
        """写入的配置项合并保存到文件."""
        manager.set_user_config("theme", "dark")
        manager.set_user_config("language", "uk")

        assert manager.get_user_config("theme") == "dark"
        data = json.loads(config_file.read_text(encoding="utf-8"))
        assert data == {"theme": "dark", "language": "uk"}

    def test_corrupt_file_ignored(self, manager: ConfigManager, config_file: Path) -> None:
        config_file.parent.mkdir(parents=True)
        config_file.write_text("{not json", encoding="utf-8")
        assert manager.get_user_config("theme") is None

    def test_reset_to_defaults(self, manager: ConfigManager, config_file: Path) -> None:
        manager.set_user_config("theme", "dark")
        manager.reset_to_defaults()
        assert not config_file.exists()

    def test_write_failure_raises_config_error(self, tmp_path: Path, settings: Settings) -> None:
        """配置路径不可写时抛出 ConfigError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        manager = ConfigManager(blocker / "config.json", settings=settings)
        with pytest.raises(ConfigError):
            manager.set_user_config("theme", "dark")


class TestDocumentDefaults:
    """测试新文档默认显示设置."""

    def test_defaults_without_file(self, manager: ConfigManager) -> None:
        assert manager.document_defaults == DocumentSettings()

    def test_save_partial_defaults(self, manager: ConfigManager, config_file: Path, settings: Settings) -> None:
        """部分字段与现有默认值合并后持久化."""
        saved = manager.save_document_defaults({"grid_size": 5, "show_rulers": False})
        assert saved.grid_size == 5
        assert saved.snap_to_grid

        reloaded = ConfigManager(config_file, settings=settings)
        assert reloaded.document_defaults.grid_size == 5
        assert not reloaded.document_defaults.show_rulers

    def test_invalid_stored_defaults(self, manager: ConfigManager) -> None:
        manager.set_user_config(DOCUMENT_SETTINGS_KEY, {"grid_size": -1})
        manager.reload()
        assert manager.document_defaults == DocumentSettings()


class TestSettingsLoading:
    """测试引擎设置加载."""

    def test_settings_from_environment(self, monkeypatch: pytest.MonkeyPatch, config_file: Path) -> None:
        monkeypatch.setenv("PRINT_CONSTRUCTOR_CURRENCY", "EUR")
        manager = ConfigManager(config_file)
        assert manager.settings.currency == "EUR"

    def test_log_level_applied(self, monkeypatch: pytest.MonkeyPatch, config_file: Path) -> None:
        """加载设置时应用日志级别."""
        monkeypatch.setenv("PRINT_CONSTRUCTOR_LOG_LEVEL", "debug")
        try:
            _ = ConfigManager(config_file).settings
            assert get_log_level_name() == "DEBUG"
            assert get_log_level() == logging.DEBUG
        finally:
            set_log_level("INFO")

    def test_invalid_environment(self, monkeypatch: pytest.MonkeyPatch, config_file: Path) -> None:
        monkeypatch.setenv("PRINT_CONSTRUCTOR_LOG_LEVEL", "VERBOSE")
        manager = ConfigManager(config_file)
        with pytest.raises(ConfigError):
            _ = manager.settings


class TestDependencies:
    """测试依赖构建."""

    def test_create_store(self, manager: ConfigManager, settings: Settings) -> None:
        store = manager.create_store()
        try:
            assert isinstance(store, ProjectStore)
            assert store.db_path == settings.db_path
        finally:
            store.close()

    def test_file_template_source_by_default(self, manager: ConfigManager, settings: Settings) -> None:
        source = manager.create_template_source()
        assert isinstance(source, FileTemplateSource)
        assert source.directory == settings.templates_path

    def test_remote_template_source_when_url_set(self, config_file: Path, tmp_path: Path) -> None:
        settings = Settings(template_source_url="https://templates.example.com/", database_path=tmp_path / "db")
        source = ConfigManager(config_file, settings=settings).create_template_source()
        assert isinstance(source, RemoteTemplateSource)
        assert source.base_url == "https://templates.example.com"
