from chartdesk.charts.surface import Surface
from .shapes import TextAnnotation

STROKE = "#ffffffcc"
FIB_LEVELS = (0, 0.236, 0.382, 0.5, 0.618, 0.786, 1.0)
FIB_KEY_LEVEL = 0.5
FONT_SIZE = 12
TEXT_HEIGHT = 16
TEXT_PADDING = 4


def draw_fibonacci(surface: Surface, start, end):
    (sx, sy), (ex, ey) = start, end
    top = min(sy, ey)
    span = max(sy, ey) - top
    for level in FIB_LEVELS:
        y = top + span * level
        key = level == FIB_KEY_LEVEL
        surface.line(sx, y, ex, y,
                     "#ffffffe6" if key else "#ffffff99",
                     width=2 if key else 1,
                     dash=None if key else (5, 5))
        surface.text(f"{level * 100:.1f}%", ex + 5, y + 4, STROKE, size=FONT_SIZE)


def draw_text(surface: Surface, shape: TextAnnotation):
    x, y = shape.anchor
    text_w = surface.measure_text(shape.text, FONT_SIZE)
    box = (x - TEXT_PADDING, y - TEXT_PADDING, text_w + TEXT_PADDING * 2, TEXT_HEIGHT + TEXT_PADDING * 2)
    surface.rect(*box, fill="#0a0a0ad9")
    surface.rect(*box, stroke="#ffffff4d", width=1)
    surface.text(shape.text, x, y, "#fffffff2", size=FONT_SIZE, baseline="top")


def draw_shape(surface: Surface, shape) -> None:
    k = shape.kind
    if k == "text":
        draw_text(surface, shape)
        return
    (sx, sy), (ex, ey) = shape.start, shape.end
    if k == "rectangle":
        surface.rect(sx, sy, ex - sx, ey - sy, stroke=STROKE, width=1.5)
    elif k == "fibonacci":
        draw_fibonacci(surface, shape.start, shape.end)
    else:
        # line and horizontal
        surface.line(sx, sy, ex, ey, STROKE, width=1.5)
