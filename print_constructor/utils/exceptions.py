"""自定义异常类."""

from __future__ import annotations


class AppException(Exception):
    """应用基础异常类.

    所有自定义异常都应继承此类。

    Attributes:
        message: 错误消息
        code: 错误代码
    """

    def __init__(self, message: str, code: str = "UNKNOWN") -> None:
        """初始化异常.

        Args:
            message: 错误消息
            code: 错误代码
        """
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        """返回异常字符串表示."""
        return f"[{self.code}] {self.message}"


# ===================
# 配置相关异常
# ===================
class ConfigError(AppException):
    """配置错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "CONFIG_ERROR")


class InvalidConfigValueError(ConfigError):
    """配置值无效异常."""

    def __init__(self, key: str, value: str, reason: str = "") -> None:
        msg = f"配置项 '{key}' 的值 '{value}' 无效"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


# ===================
# 构造器相关异常
# ===================
class ConstructorError(AppException):
    """构造器错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "CONSTRUCTOR_ERROR")


class UnknownProductTypeError(ConstructorError):
    """未知产品类型异常."""

    def __init__(self, product_type: str) -> None:
        self.product_type = product_type
        super().__init__(f"Unknown product type: {product_type}")


class ProjectFormatError(AppException):
    """项目数据格式错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "PROJECT_FORMAT_ERROR")


# ===================
# 导出相关异常
# ===================
class ExportError(AppException):
    """导出错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "EXPORT_ERROR")


class UnsupportedExportFormatError(ExportError):
    """不支持的导出格式异常."""

    def __init__(self, format: str) -> None:
        self.format = format
        super().__init__(f"不支持的导出格式: {format}")


class ImageSourceError(AppException):
    """图片源加载失败异常."""

    def __init__(self, source: str, reason: str = "") -> None:
        msg = f"无法加载图片源: {source[:80]}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg, "IMAGE_SOURCE_ERROR")


# ===================
# 模板与存储相关异常
# ===================
class TemplateSourceError(AppException):
    """模板源错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "TEMPLATE_SOURCE_ERROR")


class StorageError(AppException):
    """项目存储错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "STORAGE_ERROR")
