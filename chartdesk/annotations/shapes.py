from __future__ import annotations
from enum import Enum
from typing import Annotated, List, Literal, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

Point = Tuple[float, float]  # surface px, origin top-left


class ToolMode(str, Enum):
    NONE = "none"
    LINE = "line"
    HORIZONTAL = "horizontal"
    RECTANGLE = "rectangle"
    FIBONACCI = "fibonacci"
    TEXT = "text"

    @property
    def draws_by_drag(self) -> bool:
        return self not in (ToolMode.NONE, ToolMode.TEXT)


class _Shape(BaseModel):
    model_config = ConfigDict(frozen=True)


class LineShape(_Shape):
    kind: Literal["line"] = "line"
    start: Point
    end: Point


class HorizontalLine(_Shape):
    kind: Literal["horizontal"] = "horizontal"
    start: Point
    end: Point


class Rectangle(_Shape):
    kind: Literal["rectangle"] = "rectangle"
    start: Point
    end: Point


class FibonacciRetracement(_Shape):
    kind: Literal["fibonacci"] = "fibonacci"
    start: Point
    end: Point


class TextAnnotation(_Shape):
    kind: Literal["text"] = "text"
    anchor: Point
    text: str

    @field_validator("text")
    @classmethod
    def non_empty(cls, v):
        if not v.strip():
            raise ValueError("Annotation text cannot be empty.")
        return v


Shape = Annotated[
    Union[LineShape, HorizontalLine, Rectangle, FibonacciRetracement, TextAnnotation],
    Field(discriminator="kind"),
]
shape_list = TypeAdapter(List[Shape])


def build_shape(tool: ToolMode, start: Point, end: Point, surface_width: float):
    """Shape for a finished (or previewed) drag gesture with ``tool``."""
    if tool is ToolMode.LINE:
        return LineShape(start=start, end=end)
    if tool is ToolMode.HORIZONTAL:
        # spans the whole surface at the start y
        return HorizontalLine(start=(0.0, start[1]), end=(surface_width, start[1]))
    if tool is ToolMode.RECTANGLE:
        return Rectangle(start=start, end=end)
    if tool is ToolMode.FIBONACCI:
        return FibonacciRetracement(start=start, end=end)
    raise ValueError(f"{tool.value!r} is not a drag tool")
