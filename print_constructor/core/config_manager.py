"""配置管理器模块."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from print_constructor.models.app_settings import Settings
from print_constructor.models.project_state import DocumentSettings
from print_constructor.services.project_store import ProjectStore
from print_constructor.services.template_catalog import FileTemplateSource, RemoteTemplateSource, TemplateSource
from print_constructor.utils.constants import USER_CONFIG_FILE
from print_constructor.utils.exceptions import ConfigError
from print_constructor.utils.logger import set_log_level, setup_logger

logger = setup_logger(__name__)

DOCUMENT_SETTINGS_KEY = "document_settings"


class ConfigManager:
    """配置管理器.

    负责引擎设置的加载和用户配置文件的读写。需要时显式创建并注入，
    不提供全局实例。

    Attributes:
        config_file: 用户配置文件路径
        settings: 引擎设置（首次访问时加载）
        document_defaults: 新文档的默认显示设置

    Example:
        >>> manager = ConfigManager(tmp_path / "config.json")
        >>> manager.save_document_defaults(DocumentSettings(grid_size=5))
        >>> manager.document_defaults.grid_size
        5.0
    """

    def __init__(
        self,
        config_file: Optional[Path] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        """初始化配置管理器.

        Args:
            config_file: 用户配置文件路径，默认使用应用数据目录
            settings: 预先构建的设置（测试或嵌入时使用）
        """
        self.config_file = Path(config_file or USER_CONFIG_FILE)
        self._settings = settings
        self._document_defaults: Optional[DocumentSettings] = None
        logger.debug(f"配置管理器初始化完成: {self.config_file}")

    @property
    def settings(self) -> Settings:
        """获取引擎设置."""
        if self._settings is None:
            self._settings = self._load_settings()
        return self._settings

    @property
    def document_defaults(self) -> DocumentSettings:
        """获取新文档的默认显示设置."""
        if self._document_defaults is None:
            self._document_defaults = self._load_document_defaults()
        return self._document_defaults

    def _load_settings(self) -> Settings:
        """加载引擎设置（环境变量与 .env）.

        Raises:
            ConfigError: 设置值无效
        """
        try:
            settings = Settings()
        except ValidationError as e:
            logger.error(f"加载引擎设置失败: {e}")
            raise ConfigError(f"加载引擎设置失败: {e}") from e
        set_log_level(settings.log_level)
        logger.debug(f"引擎设置加载完成: log_level={settings.log_level}")
        return settings

    def _load_document_defaults(self) -> DocumentSettings:
        """从用户配置加载默认显示设置，文件缺失或内容无效时使用默认值."""
        stored = self.get_user_config(DOCUMENT_SETTINGS_KEY)
        if not stored:
            return DocumentSettings()
        try:
            return DocumentSettings.model_validate(stored)
        except ValidationError as e:
            logger.warning(f"默认显示设置无效，使用默认值: {e.error_count()} 个字段错误")
            return DocumentSettings()

    def save_document_defaults(self, settings: Union[DocumentSettings, Mapping[str, Any]]) -> DocumentSettings:
        """保存新文档的默认显示设置.

        Args:
            settings: 显示设置（模型或部分字段）

        Returns:
            保存后的设置
        """
        if not isinstance(settings, DocumentSettings):
            settings = self.document_defaults.model_copy(update=dict(settings))
            settings = DocumentSettings.model_validate(settings.model_dump())
        self.save_user_config({DOCUMENT_SETTINGS_KEY: settings.model_dump(mode="json")})
        self._document_defaults = settings
        logger.info("默认显示设置已保存")
        return settings

    # ===================
    # 用户配置文件
    # ===================

    def _load_user_config(self) -> dict[str, Any]:
        """加载用户配置文件."""
        if not self.config_file.exists():
            return {}
        try:
            return json.loads(self.config_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"加载用户配置文件失败: {e}")
            return {}

    def save_user_config(self, config: Mapping[str, Any]) -> None:
        """合并保存用户配置.

        Raises:
            ConfigError: 写入失败
        """
        existing = self._load_user_config()
        existing.update(config)
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            self.config_file.write_text(json.dumps(existing, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as e:
            logger.error(f"保存用户配置失败: {e}")
            raise ConfigError(f"保存用户配置失败: {e}") from e
        logger.debug("用户配置已保存")

    def get_user_config(self, key: str, default: Any = None) -> Any:
        """获取用户配置项."""
        return self._load_user_config().get(key, default)

    def set_user_config(self, key: str, value: Any) -> None:
        """设置用户配置项."""
        self.save_user_config({key: value})

    def reload(self) -> None:
        """重新加载所有配置."""
        self._settings = None
        self._document_defaults = None
        logger.info("配置已重新加载")

    def reset_to_defaults(self) -> None:
        """删除用户配置文件并重新加载."""
        if self.config_file.exists():
            self.config_file.unlink()
        self.reload()
        logger.info("配置已重置为默认值")

    # ===================
    # 依赖构建
    # ===================

    def create_store(self) -> ProjectStore:
        """按设置创建项目存储."""
        return ProjectStore(self.settings.db_path)

    def create_template_source(self) -> TemplateSource:
        """按设置创建模板源：配置了远程地址时使用远程源，否则使用本地目录."""
        settings = self.settings
        if settings.template_source_url:
            return RemoteTemplateSource(settings.template_source_url, timeout=settings.template_source_timeout)
        return FileTemplateSource(settings.templates_path)
