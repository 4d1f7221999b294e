"""引擎设置模型."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from print_constructor.utils.constants import (
    DATABASE_PATH,
    DEFAULT_CURRENCY,
    DEFAULT_EXPORT_FORMAT,
    DEFAULT_HISTORY_MAX_STATES,
    MAX_EXPORT_PIXELS,
    TEMPLATE_SOURCE_TIMEOUT,
    TEMPLATES_DIR,
)


class Settings(BaseSettings):
    """引擎设置.

    支持从环境变量（前缀 PRINT_CONSTRUCTOR_）和 .env 文件加载配置。

    Attributes:
        log_level: 日志级别
        history_max_states: 历史快照上限
        database_path: 项目存储数据库路径
        templates_dir: 本地模板目录
        template_source_url: 远程模板目录地址
        template_source_timeout: 远程模板请求超时（秒）
        currency: 报价货币
        export_default_format: 默认导出格式
        max_export_pixels: 单次导出最大像素数
    """

    model_config = SettingsConfigDict(
        env_prefix="PRINT_CONSTRUCTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="日志级别")

    history_max_states: int = Field(
        default=DEFAULT_HISTORY_MAX_STATES,
        ge=2,
        le=1000,
        description="历史快照上限",
    )

    database_path: Optional[Path] = Field(default=None, description="项目存储数据库路径")
    templates_dir: Optional[Path] = Field(default=None, description="本地模板目录")

    template_source_url: Optional[str] = Field(default=None, description="远程模板目录地址")
    template_source_timeout: float = Field(
        default=TEMPLATE_SOURCE_TIMEOUT,
        gt=0,
        description="远程模板请求超时",
    )

    currency: str = Field(default=DEFAULT_CURRENCY, min_length=3, max_length=3)
    export_default_format: str = Field(default=DEFAULT_EXPORT_FORMAT)
    max_export_pixels: int = Field(default=MAX_EXPORT_PIXELS, ge=10_000)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """验证日志级别."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"无效的日志级别: {v}，有效值: {valid_levels}")
        return upper_v

    @field_validator("export_default_format")
    @classmethod
    def validate_export_format(cls, v: str) -> str:
        """验证默认导出格式."""
        lower_v = v.lower()
        if lower_v not in {"png", "jpg", "jpeg", "pdf", "svg"}:
            raise ValueError(f"不支持的默认导出格式: {v}")
        return lower_v

    @property
    def db_path(self) -> Path:
        """获取数据库路径."""
        return self.database_path or DATABASE_PATH

    @property
    def templates_path(self) -> Path:
        """获取本地模板目录."""
        return self.templates_dir or TEMPLATES_DIR
