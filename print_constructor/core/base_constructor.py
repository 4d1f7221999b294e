"""产品构造器基类.

定义所有产品构造器共享的能力接口：模板目录、设计校验、报价和导出。
元素变更、层级、撤销/重做与分面切换都委托给组合的 DesignDocument，
产品子类只负责产品配置、规则和渲染效果。
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Mapping, Optional, Type, Union

from pydantic import BaseModel, ValidationError
from pydantic.alias_generators import to_camel

from print_constructor.core.document import BACK, FRONT, DesignDocument, ElementInput
from print_constructor.core.events import ConstructorEvent, EventBus, EventHandler, EventName
from print_constructor.models.app_settings import Settings
from print_constructor.models.design_element import DesignElement, TextData
from print_constructor.models.product_config import ProductConfig, config_to_dict
from print_constructor.models.project_state import DocumentSettings, SerializedProject
from print_constructor.models.results import DesignValidationResult, ExportResult, PriceQuote
from print_constructor.models.template import DesignTemplate
from print_constructor.services.exporter import ExportPipeline, RenderJob
from print_constructor.services.project_store import ProjectStore
from print_constructor.services.template_catalog import TemplateSource, merge_templates
from print_constructor.utils.constants import AUTOSAVE_KEY_PREFIX
from print_constructor.utils.exceptions import ProjectFormatError, StorageError, TemplateSourceError
from print_constructor.utils.helpers import generate_short_id, utc_now
from print_constructor.utils.logger import setup_logger

logger = setup_logger(__name__)

ConfigInput = Union[ProductConfig, Mapping[str, Any], None]

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")


def substitute_placeholders(text: str, fields: Mapping[str, Any]) -> str:
    """替换 ``{{name}}`` 占位符.

    没有对应字段（或字段为空）的占位符原样保留。

    Args:
        text: 含占位符的文本
        fields: 字段值

    Returns:
        替换后的文本
    """

    def replace(match: re.Match[str]) -> str:
        value = fields.get(match.group(1))
        if value is None or value == "":
            return match.group(0)
        return str(value)

    return _PLACEHOLDER.sub(replace, text)


def resolve_field(model: type[BaseModel], field: str) -> Optional[str]:
    """把驼峰或下划线字段名解析为模型字段名，不存在时返回 None."""
    for name, info in model.model_fields.items():
        if field in (name, info.alias, to_camel(name)):
            return name
    return None


class BaseConstructor(ABC):
    """产品构造器基类.

    Attributes:
        product_type: 产品类型标识（工厂注册名）
        config_class: 产品配置模型
        config: 合并默认值后的产品配置
        project_id: 项目 ID
        name: 项目名称
        events: 事件总线
        document: 文档状态与历史

    Example:
        >>> constructor = BusinessCardConstructor({"base_price": 50})
        >>> constructor.add_element(DesignElement.text_element("{{personName}}"))
        >>> constructor.calculate_price(1000).total
    """

    product_type: ClassVar[str] = ""
    config_class: ClassVar[Type[ProductConfig]] = ProductConfig

    def __init__(
        self,
        config: ConfigInput = None,
        template_id: Optional[str] = None,
        *,
        settings: Optional[Settings] = None,
        store: Optional[ProjectStore] = None,
        pipeline: Optional[ExportPipeline] = None,
        name: str = "",
    ) -> None:
        """初始化构造器.

        Args:
            config: 产品配置（模型或字典），缺失字段用产品默认值补齐
            template_id: 初始模板 ID
            settings: 引擎设置
            store: 自动保存使用的项目存储
            pipeline: 导出流水线
            name: 项目名称
        """
        supplied = config_to_dict(config)
        self.settings = settings or Settings()
        self.config = self.config_class.with_defaults(supplied, self.default_config(supplied))
        self.store = store
        self.pipeline = pipeline or ExportPipeline(max_pixels=self.settings.max_export_pixels)

        self.project_id = generate_short_id(12)
        self.name = name or self.config.name or self.product_type
        self.events = EventBus()
        self.document = DesignDocument(
            sides_count=self.config.sides,
            events=self.events,
            max_states=self.settings.history_max_states,
        )
        self._extra_templates: list[DesignTemplate] = []

        logger.info(f"创建构造器: {self.product_type} ({self.project_id})")

        if template_id:
            self.load_template(template_id)

    # ===================
    # 产品能力（子类实现）
    # ===================

    @abstractmethod
    def default_config(self, supplied: Mapping[str, Any]) -> dict[str, Any]:
        """产品默认配置.

        Args:
            supplied: 调用方提供的配置字典（可用于推导依赖默认值）
        """

    @abstractmethod
    def seed_templates(self) -> list[DesignTemplate]:
        """产品自带的模板目录."""

    @abstractmethod
    def validate_design(self) -> DesignValidationResult:
        """校验当前设计（纯函数，不修改状态）."""

    @abstractmethod
    def calculate_price(self, quantity: int) -> PriceQuote:
        """计算指定数量的报价."""

    def get_available_templates(self) -> list[DesignTemplate]:
        """获取可用模板（种子模板 + 已刷新的外部模板）的副本."""
        templates = merge_templates(self.seed_templates(), self._extra_templates)
        return [template.model_copy(deep=True) for template in templates]

    # ===================
    # 事件
    # ===================

    def on(self, event: EventName, handler: EventHandler) -> None:
        """订阅事件."""
        self.events.on(event, handler)

    def off(self, event: EventName, handler: EventHandler) -> bool:
        """取消订阅."""
        return self.events.off(event, handler)

    def _emit(self, event: EventName, payload: Any = None) -> None:
        self.events.emit(event, payload)

    # ===================
    # 元素与层级（委托给文档）
    # ===================

    def add_element(self, element: ElementInput, side: Optional[int] = None) -> Optional[DesignElement]:
        """添加元素，返回加入文档的元素副本."""
        return self.document.add_element(element, side)

    def remove_element(self, element_id: str, side: Optional[int] = None) -> bool:
        """删除元素."""
        return self.document.remove_element(element_id, side)

    def update_element(self, element_id: str, fields: Mapping[str, Any], side: Optional[int] = None) -> bool:
        """更新元素字段."""
        return self.document.update_element(element_id, fields, side)

    def get_element(self, element_id: str, side: Optional[int] = None) -> Optional[DesignElement]:
        """获取元素副本."""
        return self.document.get_element(element_id, side)

    def get_all_elements(self, side: Optional[int] = None) -> list[DesignElement]:
        """获取某一面的全部元素副本."""
        return self.document.get_all_elements(side)

    def move_to_layer(self, element_id: str, layer: int, side: Optional[int] = None) -> bool:
        return self.document.move_to_layer(element_id, layer, side)

    def move_up(self, element_id: str, side: Optional[int] = None) -> bool:
        return self.document.move_up(element_id, side)

    def move_down(self, element_id: str, side: Optional[int] = None) -> bool:
        return self.document.move_down(element_id, side)

    def move_to_top(self, element_id: str, side: Optional[int] = None) -> bool:
        return self.document.move_to_top(element_id, side)

    def move_to_bottom(self, element_id: str, side: Optional[int] = None) -> bool:
        return self.document.move_to_bottom(element_id, side)

    # ===================
    # 历史、分面与设置
    # ===================

    def undo(self) -> bool:
        """撤销."""
        return self.document.undo()

    def redo(self) -> bool:
        """重做."""
        return self.document.redo()

    def can_undo(self) -> bool:
        return self.document.can_undo()

    def can_redo(self) -> bool:
        return self.document.can_redo()

    def switch_side(self, side: int) -> bool:
        """切换当前面."""
        return self.document.switch_side(side)

    def get_current_side(self) -> int:
        """当前面索引."""
        return self.document.current_side

    def get_project_id(self) -> str:
        """项目 ID."""
        return self.project_id

    def update_settings(self, changes: Mapping[str, Any]) -> DocumentSettings:
        """更新显示设置."""
        return self.document.update_settings(changes)

    def get_settings(self) -> DocumentSettings:
        """显示设置副本."""
        return self.document.get_settings()

    # ===================
    # 模板
    # ===================

    def find_template(self, template_id: str) -> Optional[DesignTemplate]:
        """按 ID 查找可用模板."""
        for template in self.get_available_templates():
            if template.id == template_id:
                return template
        return None

    def load_template(self, template_id: str) -> bool:
        """加载模板.

        清空所有面后逐个把模板元素添加到当前面（每个元素单独产生一次历史快照和
        elementAdded 事件）。模板元素获得新 ID。

        Args:
            template_id: 模板 ID

        Returns:
            模板是否存在；不存在时文档保持不变
        """
        template = self.find_template(template_id)
        if template is None:
            logger.warning(f"模板不存在: {template_id}")
            return False

        self.document.clear_sides()
        self._apply_template(template)

        elements = template.instantiate_elements()
        if not elements:
            self.document.save_state()
        for element in elements:
            self.document.add_element(element)

        self._emit(ConstructorEvent.TEMPLATE_LOADED, template)
        logger.info(f"加载模板: {template_id} ({len(elements)} 个元素)")
        return True

    def _apply_template(self, template: DesignTemplate) -> None:
        """模板附带的产品属性（子类按需覆盖）."""

    async def refresh_templates(self, source: TemplateSource) -> int:
        """从外部模板源补充模板.

        Args:
            source: 模板源

        Returns:
            新增的模板数量；模板源失败时返回 0 并保留已有模板
        """
        try:
            fetched = await source.fetch(self.product_type)
        except TemplateSourceError as e:
            logger.warning(f"刷新模板失败: {e}")
            return 0

        before = len(self.get_available_templates())
        self._extra_templates = merge_templates(self._extra_templates, fetched)
        added = len(self.get_available_templates()) - before
        self._emit(ConstructorEvent.TEMPLATES_REFRESHED, added)
        logger.info(f"模板刷新完成: 新增 {added} 个")
        return added

    # ===================
    # 导出
    # ===================

    def resolve_text(self, text: str) -> str:
        """替换文本中的占位符（子类提供字段来源）."""
        return text

    def build_render_job(self, format: str, dpi: Optional[float]) -> RenderJob:
        """构建导出任务（元素为当前面的快照）."""
        return RenderJob(
            elements=self.get_all_elements(),
            dimensions=self.config.dimensions.model_copy(),
            format=format,
            dpi=dpi,
            resolve_text=self.resolve_text,
        )

    async def export_design(self, format: Optional[str] = None, *, dpi: Optional[float] = None) -> ExportResult:
        """导出当前面.

        Args:
            format: png / jpg / jpeg / pdf / svg，省略时使用设置中的默认格式
            dpi: 覆盖配置分辨率（预览时使用低分辨率）

        Returns:
            ExportResult

        Raises:
            UnsupportedExportFormatError: 格式不受支持
        """
        job = self.build_render_job(format or self.settings.export_default_format, dpi)
        return await self.pipeline.export(job)

    # ===================
    # 序列化
    # ===================

    def to_project(self) -> SerializedProject:
        """生成项目序列化模型."""
        return SerializedProject(
            id=self.project_id,
            name=self.name,
            product_type=self.product_type,
            product_config=self.config.model_dump(mode="json"),
            current_side=self.document.current_side,
            sides=self.document.sides_model(),
            history=self.document.history_state(),
            metadata=self.document.metadata.model_copy(),
            settings=self.document.get_settings(),
        )

    def serialize_project(self) -> str:
        """序列化完整项目为 JSON 字符串."""
        return self.to_project().model_dump_json()

    @staticmethod
    def load_project(text: str) -> SerializedProject:
        """解析序列化项目.

        Raises:
            ProjectFormatError: 文本不是有效的项目数据
        """
        try:
            return SerializedProject.model_validate_json(text)
        except ValidationError as e:
            raise ProjectFormatError(f"无效的项目数据: {e.error_count()} 个字段错误") from e

    def restore_project(self, project: SerializedProject) -> None:
        """用序列化项目替换当前状态（项目 ID 与产品配置一并恢复）."""
        self.project_id = project.id
        self.name = project.name or self.name
        self.config = self.config_class.model_validate(project.product_config)
        self.document.restore(project)
        logger.info(f"恢复项目: {project.id}")

    # ===================
    # 自动保存
    # ===================

    @property
    def autosave_key(self) -> str:
        return f"{AUTOSAVE_KEY_PREFIX}{self.project_id}"

    def auto_save(self) -> bool:
        """保存项目到存储.

        Returns:
            是否成功；未配置存储或存储失败时返回 False，不抛出异常
        """
        if self.store is None:
            logger.debug("未配置项目存储，跳过自动保存")
            return False

        try:
            self.store.set(self.autosave_key, self.serialize_project(), self.product_type)
        except StorageError as e:
            logger.error(f"自动保存失败: {e}")
            return False

        self.document.metadata.auto_save_at = utc_now()
        self._emit(ConstructorEvent.AUTO_SAVED, self.autosave_key)
        logger.info(f"自动保存完成: {self.autosave_key}")
        return True

    # ===================
    # 配置导入导出
    # ===================

    def export_config(self) -> dict[str, Any]:
        """导出产品配置（JSON 兼容字典）."""
        return self.config.model_dump(mode="json")

    def import_config(self, config: ConfigInput) -> None:
        """导入产品配置.

        缺失字段用产品默认值补齐。文档面数在构造时确定，导入的 sides 与之不同时保留原值。
        """
        supplied = config_to_dict(config)
        imported = self.config_class.with_defaults(supplied, self.default_config(supplied))
        if imported.sides != self.document.sides_count:
            logger.warning(f"导入配置的面数 {imported.sides} 与文档不一致，保留 {self.document.sides_count}")
            imported = imported.model_copy(update={"sides": self.document.sides_count})
        self.config = imported
        self._emit(ConstructorEvent.CONFIG_IMPORTED, self.export_config())

    # ===================
    # 子类辅助
    # ===================

    def _update_config(self, **changes: Any) -> None:
        """合并产品配置字段并重新校验."""
        data = self.config.model_dump()
        for key, value in changes.items():
            if isinstance(value, Mapping) and isinstance(data.get(key), Mapping):
                data[key] = {**data[key], **value}
            else:
                data[key] = value
        self.config = self.config_class.model_validate(data)

    def _merge_section(self, section: str, values: Mapping[str, Any]) -> None:
        """按字段合并一个配置分组（嵌套分组同样按字段合并）."""
        current = getattr(self.config, section).model_dump()
        for key, value in values.items():
            if isinstance(value, Mapping) and isinstance(current.get(key), dict):
                current[key] = {**current[key], **value}
            else:
                current[key] = value
        self._update_config(**{section: current})

    def _notify_dynamic_text(self) -> None:
        """含占位符的文本元素需要重新渲染."""
        for element in self.get_all_elements():
            if isinstance(element.data, TextData) and "{{" in element.data.text:
                self._emit(ConstructorEvent.ELEMENT_UPDATED, element)

    def _replace_element(self, element: DesignElement, side: Optional[int] = None) -> Optional[DesignElement]:
        """按 ID 替换元素（存在则先删除），用于固定 ID 的二维码等元素."""
        if self.get_element(element.id, side) is not None:
            self.remove_element(element.id, side)
        return self.add_element(element, side)


__all__ = ["BaseConstructor", "resolve_field", "substitute_placeholders", "FRONT", "BACK"]
