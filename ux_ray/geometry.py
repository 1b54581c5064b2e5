"""
Annotation Geometry

Annotations are stored as percentages of the image (origin top-left), so
they never need recomputing when the displayed image is resized or zoomed.
A renderer projects them with the displayed width/height and zoom scale:

    left   = x / 100 * W * s        top    = y / 100 * H * s
    width  = w / 100 * W * s        height = h / 100 * H * s

Overlapping boxes are allowed; stacking order is list order.
"""

from typing import Iterable, Protocol

from pydantic import BaseModel


class Box(Protocol):
    x: float
    y: float
    width: float
    height: float


class PixelBox(BaseModel):
    """An annotation projected onto a displayed image, in pixels."""

    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return min(high, max(low, value))


def clip_box(x: float, y: float, width: float, height: float) -> tuple[float, float, float, float]:
    """
    Clip a percentage box to the image.

    Both edges are clamped to 0-100 and the size recomputed from them, so
    x + width <= 100 and y + height <= 100 hold afterwards. A box that lies
    entirely outside the image collapses to zero size on the nearest edge.

    Example:
        clip_box(90, 90, 20, 20) == (90, 90, 10, 10)
    """
    left, right = _clamp(x), _clamp(x + width)
    top, bottom = _clamp(y), _clamp(y + height)
    return left, top, max(0.0, right - left), max(0.0, bottom - top)


def is_within_bounds(box: Box) -> bool:
    """True when every edge of the box lies inside the image."""
    return (
        0 <= box.x <= 100
        and 0 <= box.y <= 100
        and box.width >= 0
        and box.height >= 0
        and box.x + box.width <= 100
        and box.y + box.height <= 100
    )


def project(
    box: Box,
    display_width: float,
    display_height: float,
    scale: float = 1.0,
) -> PixelBox:
    """
    Project a percentage box onto a displayed image.

    Args:
        box: Anything with x/y/width/height in percent (e.g. an Annotation)
        display_width: Width in pixels of the image as laid out
        display_height: Height in pixels of the image as laid out
        scale: Zoom factor applied on top of the layout size

    Returns:
        PixelBox in display pixels, origin at the image's top-left corner
    """
    if display_width < 0 or display_height < 0:
        raise ValueError("display size must not be negative")
    if scale <= 0:
        raise ValueError("scale must be positive")

    return PixelBox(
        left=box.x / 100 * display_width * scale,
        top=box.y / 100 * display_height * scale,
        width=box.width / 100 * display_width * scale,
        height=box.height / 100 * display_height * scale,
    )


def project_all(
    boxes: Iterable[Box],
    display_width: float,
    display_height: float,
    scale: float = 1.0,
) -> list[PixelBox]:
    """Project every box, preserving order (the stacking order)."""
    return [project(box, display_width, display_height, scale) for box in boxes]
