"""
Detection data model.

Defines Box (an axis-aligned rectangle in pixel space) and Detection
(a box with a class id and a confidence). Both are frozen: a Detection
is created once by the postprocessor and lives only for the frame
that produced it.

Non-goals:
    - No rendering logic.
    - No file I/O.
    - No clamping to frame bounds (boxes may extend past the edges).
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Box:
    """Axis-aligned bounding box, top-left origin, integer pixels.

    Attributes:
        x: Left edge. May be negative.
        y: Top edge. May be negative.
        width: Box width in pixels.
        height: Box height in pixels.
    """

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height


@dataclass(frozen=True, slots=True)
class Detection:
    """A single detected object.

    Attributes:
        box: Bounding box in original frame coordinates.
        class_id: Index into the class name table.
        confidence: Class score in (0.0, 1.0].
    """

    box: Box
    class_id: int
    confidence: float

    def to_dict(self) -> dict:
        """Return a plain dict suitable for JSON serialization."""
        return {
            "class_id": self.class_id,
            "x": self.box.x,
            "y": self.box.y,
            "width": self.box.width,
            "height": self.box.height,
            "confidence": round(self.confidence, 4),
        }
