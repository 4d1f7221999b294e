"""Pytest 配置和共享 fixtures."""

from __future__ import annotations

import base64
import io
from pathlib import Path

import pytest
from PIL import Image

from print_constructor.models.app_settings import Settings
from print_constructor.models.design_element import DesignElement
from print_constructor.services.project_store import ProjectStore


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """返回指向临时目录的引擎设置."""
    return Settings(
        database_path=tmp_path / "projects.db",
        templates_dir=tmp_path / "templates",
        history_max_states=50,
    )


@pytest.fixture
def store(tmp_path: Path) -> ProjectStore:
    """创建临时项目存储."""
    project_store = ProjectStore(tmp_path / "store.db")
    yield project_store
    project_store.close()


@pytest.fixture
def png_data_url() -> str:
    """返回 8x8 红色 PNG 的 data URL."""
    image = Image.new("RGB", (8, 8), (255, 0, 0))
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


@pytest.fixture
def text_element() -> DesignElement:
    """返回位于印刷区域内的文字元素."""
    return DesignElement.text_element("Hello", x=10, y=10, width=30, height=8, font_size=10)
