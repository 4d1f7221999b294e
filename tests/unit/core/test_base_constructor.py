"""构造器基类单元测试.

通过名片构造器验证各产品共享的模板、序列化、自动保存和配置导入行为。
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from print_constructor.constructors.business_card import BusinessCardConstructor
from print_constructor.constructors.flyer import ContentSections
from print_constructor.core.base_constructor import BACK, FRONT, resolve_field, substitute_placeholders
from print_constructor.core.events import ConstructorEvent
from print_constructor.models.app_settings import Settings
from print_constructor.models.design_element import DesignElement
from print_constructor.models.template import DesignTemplate
from print_constructor.services.project_store import ProjectStore
from print_constructor.utils.exceptions import ProjectFormatError, StorageError, TemplateSourceError


# ===================
# Fixtures
# ===================
@pytest.fixture
def constructor(settings: Settings) -> BusinessCardConstructor:
    return BusinessCardConstructor(settings=settings)


class StaticTemplateSource:
    """返回固定模板的模板源."""

    def __init__(self, templates: list[DesignTemplate]) -> None:
        self.templates = templates

    async def fetch(self, product_type: str) -> list[DesignTemplate]:
        return [t for t in self.templates if t.product_type == product_type]


class FailingTemplateSource:
    async def fetch(self, product_type: str) -> list[DesignTemplate]:
        raise TemplateSourceError("offline")


# ===================
# 辅助函数测试
# ===================
class TestHelpers:
    """测试占位符替换和字段解析."""

    def test_substitute_placeholders(self) -> None:
        """有值的占位符被替换，缺失或空值保持原样."""
        text = "{{companyName}} / {{ phone }} / {{email}}"
        result = substitute_placeholders(text, {"companyName": "Poliprint", "phone": "123", "email": ""})
        assert result == "Poliprint / 123 / {{email}}"

    def test_resolve_field(self) -> None:
        """驼峰、别名和下划线字段名都能解析."""
        assert resolve_field(ContentSections, "callToAction") == "call_to_action"
        assert resolve_field(ContentSections, "call_to_action") == "call_to_action"
        assert resolve_field(ContentSections, "unknown") is None


# ===================
# 构造测试
# ===================
class TestConstruction:
    """测试构造与默认配置."""

    def test_defaults_fill_missing(self, settings: Settings) -> None:
        """调用方提供的字段优先，缺失字段使用默认值."""
        constructor = BusinessCardConstructor({"base_price": 80}, settings=settings)
        assert constructor.config.base_price == 80
        assert constructor.config.price_per_unit == 0.5
        assert constructor.config.dimensions.width == 85

    def test_baseline_snapshot(self, constructor: BusinessCardConstructor) -> None:
        """新构造器不能撤销."""
        assert not constructor.can_undo()
        assert not constructor.can_redo()

    def test_double_sided_has_back(self, settings: Settings, text_element: DesignElement) -> None:
        constructor = BusinessCardConstructor({"sides": 2}, settings=settings)
        assert constructor.add_element(text_element, BACK) is not None
        assert constructor.switch_side(BACK)
        assert len(constructor.get_all_elements()) == 1

    def test_project_id_unique(self, settings: Settings) -> None:
        first = BusinessCardConstructor(settings=settings)
        second = BusinessCardConstructor(settings=settings)
        assert first.get_project_id() != second.get_project_id()


# ===================
# 模板测试
# ===================
class TestTemplates:
    """测试模板加载."""

    def test_load_template_replaces_elements(self, constructor: BusinessCardConstructor) -> None:
        """加载模板清空已有元素，模板元素获得新 ID."""
        constructor.add_element(DesignElement.text_element("old"))
        template = constructor.find_template("bc_corporate_001")

        assert constructor.load_template("bc_corporate_001")

        elements = constructor.get_all_elements()
        assert len(elements) == len(template.elements)
        assert "old" not in [getattr(e.data, "text", None) for e in elements]
        template_ids = {e.id for e in template.elements}
        assert not template_ids & {e.id for e in elements}

    def test_load_template_snapshot_per_element(self, constructor: BusinessCardConstructor) -> None:
        """每个模板元素产生一次快照和 elementAdded 事件."""
        added = []
        constructor.on(ConstructorEvent.ELEMENT_ADDED, added.append)
        states = len(constructor.document.history)

        constructor.load_template("bc_corporate_001")

        assert len(added) == 6
        assert len(constructor.document.history) == states + 6

    def test_load_template_onto_back(self, settings: Settings) -> None:
        """切换到背面后加载，模板元素落在背面，正面被清空."""
        constructor = BusinessCardConstructor({"sides": 2}, settings=settings)
        constructor.add_element(DesignElement.text_element("front"), FRONT)
        assert constructor.switch_side(BACK)
        for index in range(5):
            constructor.add_element(DesignElement.text_element(f"back {index}"))
        template = constructor.find_template("bc_corporate_001")

        assert constructor.load_template("bc_corporate_001")

        back = constructor.get_all_elements(BACK)
        assert len(back) == len(template.elements)
        assert not {e.id for e in template.elements} & {e.id for e in back}
        assert constructor.get_all_elements(FRONT) == []

    def test_load_empty_template(self, constructor: BusinessCardConstructor) -> None:
        """空模板也保存一次快照."""
        constructor.add_element(DesignElement.text_element("old"))
        states = len(constructor.document.history)

        assert constructor.load_template("bc_minimal_001")
        assert constructor.get_all_elements() == []
        assert len(constructor.document.history) == states + 1

    def test_missing_template(self, constructor: BusinessCardConstructor) -> None:
        """模板不存在时返回 False，文档不变."""
        constructor.add_element(DesignElement.text_element("keep"))
        assert not constructor.load_template("missing")
        assert len(constructor.get_all_elements()) == 1

    def test_template_loaded_twice_gets_fresh_ids(self, constructor: BusinessCardConstructor) -> None:
        constructor.load_template("bc_corporate_001")
        first = {e.id for e in constructor.get_all_elements()}
        constructor.load_template("bc_corporate_001")
        second = {e.id for e in constructor.get_all_elements()}
        assert not first & second

    def test_available_templates_are_copies(self, constructor: BusinessCardConstructor) -> None:
        """修改返回的模板不影响目录."""
        templates = constructor.get_available_templates()
        templates[0].elements.clear()
        assert constructor.get_available_templates()[0].elements

    def test_template_id_in_constructor(self, settings: Settings) -> None:
        constructor = BusinessCardConstructor(template_id="bc_corporate_001", settings=settings)
        assert len(constructor.get_all_elements()) == 6
        assert constructor.can_undo()

    @pytest.mark.asyncio
    async def test_refresh_templates(self, constructor: BusinessCardConstructor) -> None:
        """外部模板合并到目录，与种子模板同 ID 的被忽略."""
        source = StaticTemplateSource(
            [
                DesignTemplate(id="bc_remote_001", name="Remote", product_type="business-cards"),
                DesignTemplate(id="bc_corporate_001", name="Shadow", product_type="business-cards"),
                DesignTemplate(id="fl_other", name="Other", product_type="flyers"),
            ]
        )
        added = await constructor.refresh_templates(source)

        assert added == 1
        assert constructor.find_template("bc_remote_001") is not None
        assert constructor.find_template("bc_corporate_001").name != "Shadow"

    @pytest.mark.asyncio
    async def test_refresh_templates_failure(self, constructor: BusinessCardConstructor) -> None:
        """模板源失败时返回 0，保留已有模板."""
        before = len(constructor.get_available_templates())
        assert await constructor.refresh_templates(FailingTemplateSource()) == 0
        assert len(constructor.get_available_templates()) == before


# ===================
# 序列化测试
# ===================
class TestSerialization:
    """测试项目序列化."""

    def test_round_trip(self, constructor: BusinessCardConstructor, settings: Settings) -> None:
        """序列化后恢复的项目元素、ID 和历史一致."""
        constructor.load_template("bc_corporate_001")
        constructor.update_corporate_field("companyName", "Poliprint")
        text = constructor.serialize_project()

        restored = BusinessCardConstructor(settings=settings)
        restored.restore_project(BusinessCardConstructor.load_project(text))

        assert restored.get_project_id() == constructor.get_project_id()
        assert [e.id for e in restored.get_all_elements()] == [e.id for e in constructor.get_all_elements()]
        assert restored.config.corporate_fields.company_name == "Poliprint"
        assert restored.can_undo()
        assert restored.undo()

    def test_invalid_project_text(self) -> None:
        with pytest.raises(ProjectFormatError):
            BusinessCardConstructor.load_project('{"id": "x"}')

    def test_project_contains_product_type(self, constructor: BusinessCardConstructor) -> None:
        project = constructor.to_project()
        assert project.product_type == "business-cards"
        assert project.sides.back is None


# ===================
# 自动保存测试
# ===================
class TestAutoSave:
    """测试自动保存."""

    def test_auto_save_writes_store(self, settings: Settings, store: ProjectStore) -> None:
        constructor = BusinessCardConstructor(settings=settings, store=store)
        saved = []
        constructor.on(ConstructorEvent.AUTO_SAVED, saved.append)

        assert constructor.auto_save()
        assert store.get(constructor.autosave_key) is not None
        assert saved == [f"project_{constructor.get_project_id()}"]
        assert constructor.document.metadata.auto_save_at is not None

    def test_auto_save_without_store(self, constructor: BusinessCardConstructor) -> None:
        assert not constructor.auto_save()

    def test_auto_save_failure_returns_false(self, settings: Settings) -> None:
        """存储失败时返回 False 而不抛出异常."""
        failing = MagicMock(spec=ProjectStore)
        failing.set.side_effect = StorageError("disk full")
        constructor = BusinessCardConstructor(settings=settings, store=failing)
        assert not constructor.auto_save()


# ===================
# 配置导入导出测试
# ===================
class TestConfigImport:
    """测试配置导入导出."""

    def test_export_config_is_json_compatible(self, constructor: BusinessCardConstructor) -> None:
        exported = constructor.export_config()
        assert exported["dimensions"]["unit"] == "mm"

    def test_import_keeps_side_count(self, constructor: BusinessCardConstructor) -> None:
        """导入配置的面数与文档不同时保留文档面数."""
        events = []
        constructor.on(ConstructorEvent.CONFIG_IMPORTED, events.append)
        constructor.import_config({"sides": 2, "base_price": 75})

        assert constructor.config.sides == 1
        assert constructor.config.base_price == 75
        assert len(events) == 1

    def test_settings_update(self, constructor: BusinessCardConstructor) -> None:
        constructor.update_settings({"grid_size": 5})
        assert constructor.get_settings().grid_size == 5
        assert constructor.get_current_side() == FRONT


# ===================
# 导出测试
# ===================
class TestExportDefaults:
    """测试导出默认值."""

    @pytest.mark.asyncio
    async def test_default_format_from_settings(self, tmp_path) -> None:
        settings = Settings(database_path=tmp_path / "projects.db", export_default_format="pdf")
        constructor = BusinessCardConstructor(settings=settings)

        result = await constructor.export_design(dpi=30)

        assert result.format == "pdf"
        assert result.data.startswith(b"%PDF")
