"""设计元素模型单元测试."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from print_constructor.models.design_element import (
    DesignElement,
    ElementType,
    GradientFill,
    ShapeData,
    ShapeKind,
    TextData,
)


class TestDesignElement:
    """测试元素通用属性."""

    def test_rotation_normalized(self) -> None:
        """旋转角度规范化到 [0, 360)."""
        element = DesignElement.text_element("a")
        assert DesignElement.model_validate({**element.model_dump(), "rotation": 450}).rotation == 90
        assert DesignElement.model_validate({**element.model_dump(), "rotation": -90}).rotation == 270

    def test_non_positive_size_rejected(self) -> None:
        with pytest.raises(ValidationError):
            DesignElement.text_element("a", width=0)

    def test_opacity_range(self) -> None:
        with pytest.raises(ValidationError):
            DesignElement.model_validate(
                {"type": "text", "width": 10, "height": 10, "opacity": 1.5, "data": {"text": "a"}}
            )

    def test_payload_kind_inferred(self) -> None:
        """字典载荷缺少 kind 时按元素类型推断."""
        logo = DesignElement.model_validate(
            {"type": "logo", "width": 10, "height": 10, "data": {"src": "logo.png"}}
        )
        background = DesignElement.model_validate(
            {"type": "background", "width": 10, "height": 10, "data": {"fill": "#ffffff"}}
        )
        assert logo.data.kind == "image"
        assert background.data.kind == "shape"

    def test_payload_mismatch_rejected(self) -> None:
        """元素类型与载荷种类不符时报错."""
        with pytest.raises(ValidationError):
            DesignElement(type=ElementType.TEXT, width=10, height=10, data=ShapeData())

    def test_with_new_id_is_deep_copy(self) -> None:
        element = DesignElement.text_element("a")
        copy = element.with_new_id()
        copy.data.text = "b"
        assert copy.id != element.id
        assert element.data.text == "a"

    def test_bounds(self) -> None:
        element = DesignElement.shape_element(x=5, y=10, width=20, height=30)
        assert element.bounds == (5, 10, 25, 40)
        assert element.area == 600


class TestPayloads:
    """测试载荷解析."""

    def test_linear_gradient_from_css(self) -> None:
        """CSS 线性渐变解析为角度和均匀分布的色标."""
        fill = GradientFill.from_css("linear-gradient(135deg, #6366f1, #8b5cf6, #ffffff)")
        assert fill.gradient == "linear"
        assert fill.angle == 135
        assert [stop.offset for stop in fill.stops] == [0, 0.5, 1]

    def test_radial_gradient_with_rgba(self) -> None:
        """括号内的逗号不会切分色标."""
        fill = GradientFill.from_css("radial-gradient(circle, rgba(0, 255, 255, 0.1) 20%, transparent)")
        assert fill.gradient == "radial"
        assert fill.stops[0].color == "rgba(0, 255, 255, 0.1)"
        assert fill.stops[0].offset == 0.2

    def test_invalid_gradient(self) -> None:
        with pytest.raises(ValueError):
            GradientFill.from_css("conic-gradient(red, blue)")

    def test_shape_fill_gradient_string(self) -> None:
        shape = ShapeData(fill="linear-gradient(90deg, #000000, #ffffff)")
        assert isinstance(shape.fill, GradientFill)

    def test_shape_points_from_dicts(self) -> None:
        shape = ShapeData(shape=ShapeKind.POLYGON, points=[{"x": 0, "y": 0}, {"x": 5, "y": 5}])
        assert shape.points == [(0, 0), (5, 5)]

    def test_has_stroke(self) -> None:
        assert not ShapeData(stroke="#000000").has_stroke
        assert ShapeData(stroke="#000000", stroke_width=1).has_stroke

    def test_text_shadow_from_css(self) -> None:
        """CSS 阴影字符串解析为结构化阴影."""
        data = TextData(text="a", text_shadow="2px 3px 4px rgba(0,0,0,0.3)")
        assert data.text_shadow.offset_x == 2
        assert data.text_shadow.offset_y == 3
        assert data.text_shadow.blur == 4
        assert data.text_shadow.color == "rgba(0,0,0,0.3)"
        assert TextData(text_shadow="none").text_shadow is None

    def test_is_bold(self) -> None:
        assert TextData(font_weight="bold").is_bold
        assert TextData(font_weight="700").is_bold
        assert not TextData(font_weight="400").is_bold
