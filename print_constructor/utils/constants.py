"""应用常量定义."""

from pathlib import Path

# ===================
# 应用信息
# ===================
APP_NAME = "印刷品设计构造器引擎"
APP_VERSION = "1.0.0"
PROJECT_SCHEMA_VERSION = "1.0.0"

# ===================
# 路径常量
# ===================
# 应用数据目录
APP_DATA_DIR = Path.home() / ".print-constructor"

# 项目存储数据库路径
DATABASE_PATH = APP_DATA_DIR / "projects.db"

# 日志目录
LOG_DIR = APP_DATA_DIR / "logs"

# 模板目录
TEMPLATES_DIR = APP_DATA_DIR / "templates"

# 用户配置文件
USER_CONFIG_FILE = APP_DATA_DIR / "config.json"

# ===================
# 历史记录
# ===================
DEFAULT_HISTORY_MAX_STATES = 50

# 自动保存键前缀
AUTOSAVE_KEY_PREFIX = "project_"

# ===================
# 文档设置默认值
# ===================
DEFAULT_GRID_SIZE = 10
DEFAULT_ZOOM = 1.0

# ===================
# 导出设置
# ===================
# 单位到英寸的换算（px 为 1:1 像素）
UNITS_PER_INCH = {
    "mm": 25.4,
    "cm": 2.54,
    "in": 1.0,
}

# 导出格式与 MIME 类型
EXPORT_MIME_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "pdf": "application/pdf",
    "svg": "image/svg+xml",
}

DEFAULT_EXPORT_FORMAT = "png"
DEFAULT_JPEG_QUALITY = 95

# 单次导出最大像素数（超出则自动降低 DPI）
MAX_EXPORT_PIXELS = 80_000_000

# ===================
# 价格设置
# ===================
DEFAULT_CURRENCY = "UAH"
PRICE_PRECISION = 2

# ===================
# 模板源设置
# ===================
TEMPLATE_EXTENSION = ".template.json"
TEMPLATE_SOURCE_TIMEOUT = 15  # 秒

# 二维码图片服务
QR_SERVICE_URL = "https://api.qrserver.com/v1/create-qr-code/"
