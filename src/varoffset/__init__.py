"""
varoffset — 閉多角形の辺ごとの可変オフセット。

各辺を個別の距離だけ外向き法線方向へ平行移動し、隣接するオフセット線の交点で角を繋ぎ直す。
自己交差した結果は面積最大の単純閉ループへ縮約する。

使用例:
    from varoffset import Geometry, variable_offset
    g = Geometry.from_lines([[(0, 0), (10, 0), (10, 10), (0, 10)]])
    out = variable_offset(g, edge_offsets=[1.0, 2.0, 1.0, 0.5])
"""

from .common.errors import (
    DegenerateEdgeError,
    DegenerateIntersectionError,
    InvalidInputError,
    NoSimpleLoopFoundError,
    VariableOffsetError,
)
from .effects import get_effect, list_effects
from .effects.variable_offset import PathOutcome, offset_paths, variable_offset
from .engine import (
    EdgeOffsetMap,
    Geometry,
    find_self_intersections,
    offset_polygon,
    resolve_self_intersections,
)

__version__ = "0.1.0"

__all__ = [
    "Geometry",
    "EdgeOffsetMap",
    "offset_polygon",
    "find_self_intersections",
    "resolve_self_intersections",
    "variable_offset",
    "offset_paths",
    "PathOutcome",
    "get_effect",
    "list_effects",
    "VariableOffsetError",
    "InvalidInputError",
    "DegenerateEdgeError",
    "DegenerateIntersectionError",
    "NoSimpleLoopFoundError",
]
