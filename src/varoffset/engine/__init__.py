"""
どこで: `engine` パッケージ。
何を: 可変オフセットの中核（辺オフセット + 角の繋ぎ直し）と自己交差の解消、辺オフセット設定。
なぜ: 幾何計算を状態を持たない純関数に閉じ込め、effects 層の編成処理から分離するため。
"""

from .core.geometry import Geometry
from .edge_map import EdgeOffsetMap
from .offset import LineIntersection, intersect_lines, offset_polygon
from .resolve import SelfIntersection, find_self_intersections, resolve_self_intersections

__all__ = [
    "Geometry",
    "EdgeOffsetMap",
    "LineIntersection",
    "intersect_lines",
    "offset_polygon",
    "SelfIntersection",
    "find_self_intersections",
    "resolve_self_intersections",
]
