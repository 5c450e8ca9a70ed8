from typing import Iterable, Optional, Sequence, Tuple

from models.zone import RectShape, Zone


def point_inside_polygon(
    px: float, py: float, poly: Iterable[Tuple[float, float]]
) -> bool:
    # Ray casting; inclusive on edges
    inside = False
    pts = list(poly)
    n = len(pts)
    for i in range(n):
        x1, y1 = pts[i]
        x2, y2 = pts[(i + 1) % n]
        if (y1 > py) != (y2 > py):
            xin = (x2 - x1) * (py - y1) / (y2 - y1 + 1e-12) + x1
            if px <= xin:
                inside = not inside
    return inside


def point_inside_rect(px: float, py: float, rect: RectShape) -> bool:
    return rect.x <= px <= rect.x + rect.width and rect.y <= py <= rect.y + rect.height


def zone_contains(zone: Zone, px: float, py: float) -> bool:
    """``px``/``py`` are percentages of the rendered image, like zone coordinates."""
    shape = zone.shape
    if isinstance(shape, RectShape):
        return point_inside_rect(px, py, shape)
    return point_inside_polygon(px, py, [(p.x, p.y) for p in shape.points])


def find_zone_at(zones: Sequence[Zone], px: float, py: float) -> Optional[int]:
    # later zones are drawn on top, so they take the click
    for index in range(len(zones) - 1, -1, -1):
        if zone_contains(zones[index], px, py):
            return index
    return None
