"""
variable_offset エフェクト（辺ごとの可変オフセット）

- 各閉ポリラインの辺を、辺ごとに指定した距離だけ外向き法線方向へ平行移動し、隣接辺の交点で
  繋ぎ直す。自己交差した結果は面積最大の単純閉ループへ縮約する。
- 3D 入力は作業平面（XY）へ整列して処理後、元の姿勢に戻す。

主なパラメータ:
- edge_offsets: 辺順のオフセット量の一覧（全パス共通）。足りない辺は default_offset。
- edge_offset_map: `(path_index, edge_index) -> 距離` の個別指定（一覧より優先）。
- default_offset: 未指定辺の距離。正で膨張、負で収縮。
- resolve: 自己交差の解消を行うか。

仕様/注意:
- 行番号が path_index。閉じ点（末尾 == 先頭）は頂点として数えない（edge_mode="closed"）。
- 時計回りのリングは内部で反時計回りに反転して処理し、辺番号/頂点順は入力のまま保つ。
  反転は "closed" モードのみ。"legacy" モードは入力順をそのまま使う。
- 失敗したパスは strict=False なら WARNING を出して入力リングを素通しし、他のパスは継続する。
- 出力リングは閉じ点付き。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Sequence

import numpy as np

from ..common import settings as _settings
from ..common.errors import (
    DegenerateEdgeError,
    DegenerateIntersectionError,
    InvalidInputError,
    VariableOffsetError,
)
from ..common.types import EdgeKey
from ..engine.core.geometry import Geometry
from ..engine.edge_map import EdgeOffsetMap
from ..engine.offset import CLOSING_POINT_EPS, edge_count_for, offset_polygon
from ..engine.resolve import resolve_self_intersections
from ..util.fixed_point import snap_to_grid
from ..util.plane import from_working_plane, to_working_plane
from ..util.rings import (
    close_ring,
    ensure_ccw,
    remap_offsets_for_reversal,
    reversed_edge_index,
    strip_closing_point,
)
from .registry import effect

logger = logging.getLogger(__name__)

MIN_RING_VERTICES = 3


@dataclass(frozen=True)
class OffsetOptions:
    """1 回の呼び出しで全パスに共通の解決済みオプション。"""

    default_offset: float
    edge_mode: str
    parallel_policy: str
    parallel_eps: float
    resolve: bool
    tolerance: float
    planarity_eps: float
    fixed_scale: int | None
    use_numba: bool

    @classmethod
    def from_settings(
        cls,
        *,
        default_offset: float | None = None,
        edge_mode: str | None = None,
        parallel_policy: str | None = None,
        resolve: bool = True,
        tolerance: float | None = None,
        fixed_scale: int | None = None,
    ) -> "OffsetOptions":
        """明示引数を優先し、未指定の項目を設定スナップショットで補う。"""
        s = _settings.get()
        if fixed_scale is not None and int(fixed_scale) <= 0:
            raise InvalidInputError(f"fixed_scale は正の整数である必要があります: {fixed_scale}")
        mode = s.EDGE_MODE if edge_mode is None else str(edge_mode)
        if mode not in _settings.EDGE_MODES:
            raise InvalidInputError(f"未知の edge_mode: {mode!r}")
        policy = s.PARALLEL_POLICY if parallel_policy is None else str(parallel_policy)
        if policy not in _settings.PARALLEL_POLICIES:
            raise InvalidInputError(f"未知の parallel_policy: {policy!r}")
        return cls(
            default_offset=float(s.DEFAULT_OFFSET if default_offset is None else default_offset),
            edge_mode=mode,
            parallel_policy=policy,
            parallel_eps=float(s.PARALLEL_EPS),
            resolve=bool(resolve),
            tolerance=float(s.RESOLVE_TOLERANCE if tolerance is None else tolerance),
            planarity_eps=float(s.PLANARITY_EPS),
            fixed_scale=None if fixed_scale is None else int(fixed_scale),
            use_numba=bool(s.USE_NUMBA),
        )


@dataclass(frozen=True)
class PathOutcome:
    """1 パス分の結果。`error` が None なら `vertices`（閉じ点付き `(k, 3)`）が有効。"""

    path_index: int
    vertices: np.ndarray
    error: VariableOffsetError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def build_offset_map(
    n_paths: int,
    edge_offsets: Sequence[float] = (),
    edge_offset_map: EdgeOffsetMap | Mapping[EdgeKey, float] | None = None,
) -> EdgeOffsetMap:
    """全パス共通の辺順一覧と、個別指定の複合キー辞書を 1 つの map にまとめる。"""
    per_path = list(EdgeOffsetMap.coerce(edge_offsets).for_path(0).items())
    merged = EdgeOffsetMap()
    for p in range(n_paths):
        for e, d in per_path:
            merged.set(p, e, d)
    if edge_offset_map is not None:
        for (p, e), d in EdgeOffsetMap.coerce(edge_offset_map).items():
            merged.set(p, e, d)
    return merged


def offset_ring(
    ring: np.ndarray,
    offsets: EdgeOffsetMap,
    options: OffsetOptions,
    *,
    path_index: int = 0,
) -> np.ndarray:
    """1 本の閉リング `(n, 3)` をオフセットし、閉じ点付き `(k, 3)` を返す。

    Raises
    ------
    VariableOffsetError
        入力不正・退化辺・平行角（policy="raise"）・単純閉ループなし。
    """
    pts = np.asarray(ring, dtype=np.float64)
    if options.fixed_scale is not None:
        pts = snap_to_grid(pts, options.fixed_scale)

    xy, R, z = to_working_plane(pts, eps_abs=options.planarity_eps)
    if options.edge_mode == "closed":
        xy = strip_closing_point(xy, eps=CLOSING_POINT_EPS)
    if xy.shape[0] < MIN_RING_VERTICES:
        raise InvalidInputError(
            f"閉多角形には {MIN_RING_VERTICES} 頂点以上が必要です: path={path_index}, n={xy.shape[0]}"
        )

    n = xy.shape[0]
    distances = offsets.resolve(path_index, edge_count_for(n, options.edge_mode), options.default_offset)
    flipped = False
    if options.edge_mode == "closed":
        xy, flipped = ensure_ccw(xy)
        if flipped:
            distances = remap_offsets_for_reversal(distances)
            logger.debug("path=%d is clockwise; reversed for offsetting", path_index)

    try:
        out = offset_polygon(
            xy,
            distances,
            options.default_offset,
            path_index=path_index,
            edge_mode=options.edge_mode,
            parallel_policy=options.parallel_policy,
            parallel_eps=options.parallel_eps,
            strip_closing=False,
        )
    except DegenerateEdgeError as exc:
        if not flipped:
            raise
        raise DegenerateEdgeError(path_index, reversed_edge_index(exc.edge_index, n)) from exc
    except DegenerateIntersectionError as exc:
        if not flipped:
            raise
        raise DegenerateIntersectionError(path_index, n - 1 - exc.corner_index) from exc

    if options.resolve:
        out = resolve_self_intersections(out, options.tolerance, use_numba=options.use_numba)
    if flipped:
        out = out[::-1]
    world = from_working_plane(out, R, z)
    if options.fixed_scale is not None:
        # 出力の量子化は元の姿勢（ワールド座標）で行う
        world = snap_to_grid(world, options.fixed_scale)
    return close_ring(world)


def offset_paths(
    g: Geometry,
    offsets: EdgeOffsetMap,
    options: OffsetOptions,
) -> list[PathOutcome]:
    """全パスを独立にオフセットし、パスごとの結果（失敗を含む）を返す。"""
    outcomes: list[PathOutcome] = []
    for path_index, ring in enumerate(g.iter_lines()):
        try:
            vertices = offset_ring(ring, offsets, options, path_index=path_index)
        except VariableOffsetError as exc:
            outcomes.append(PathOutcome(path_index, np.array(ring, dtype=np.float64), exc))
            continue
        outcomes.append(PathOutcome(path_index, vertices))
    return outcomes


@effect()
def variable_offset(
    g: Geometry,
    *,
    edge_offsets: Sequence[float] = (),
    default_offset: float | None = None,
    edge_offset_map: EdgeOffsetMap | Mapping[EdgeKey, float] | None = None,
    resolve: bool = True,
    edge_mode: str | None = None,
    parallel_policy: str | None = None,
    tolerance: float | None = None,
    fixed_scale: int | None = None,
    strict: bool = False,
) -> Geometry:
    """閉ポリラインを辺ごとの距離でオフセットする。

    Parameters
    ----------
    g : Geometry
        入力ジオメトリ。各行が 1 本の閉ポリライン（行番号 = path_index）。
    edge_offsets : Sequence[float], default ()
        辺順のオフセット量（全パス共通）。
    default_offset : float, optional
        未指定辺の距離。省略時は設定 `VO_DEFAULT_OFFSET`。
    edge_offset_map : EdgeOffsetMap | Mapping[(int, int), float], optional
        パス/辺ごとの個別指定。`edge_offsets` より優先。
    resolve : bool, default True
        自己交差を面積最大の単純閉ループへ縮約する。
    edge_mode : {"closed", "legacy"}, optional
        処理する辺の本数。省略時は設定 `VO_EDGE_MODE`。
    parallel_policy : {"fallback", "warn", "raise"}, optional
        隣接オフセット線が平行な角の扱い。省略時は設定 `VO_PARALLEL_POLICY`。
    tolerance : float, optional
        自己交差の判定/閉路化の許容距離。省略時は設定 `VO_RESOLVE_TOLERANCE`。
    fixed_scale : int, optional
        指定時は入出力を 1/fixed_scale 単位の固定小数グリッドへ量子化する。
    strict : bool, default False
        True なら最初に失敗したパスの例外を送出する。
    """
    options = OffsetOptions.from_settings(
        default_offset=default_offset,
        edge_mode=edge_mode,
        parallel_policy=parallel_policy,
        resolve=resolve,
        tolerance=tolerance,
        fixed_scale=fixed_scale,
    )
    if g.is_empty:
        return Geometry(g.coords.copy(), g.offsets.copy())

    offset_map = build_offset_map(len(g), edge_offsets, edge_offset_map)
    lines: list[np.ndarray] = []
    for outcome in offset_paths(g, offset_map, options):
        if outcome.error is not None:
            if strict:
                raise outcome.error
            logger.warning(
                "variable_offset: path %d skipped (%s: %s)",
                outcome.path_index,
                type(outcome.error).__name__,
                outcome.error,
            )
        lines.append(outcome.vertices)
    return Geometry.from_lines(lines)


# UI 表示のためのメタ情報
variable_offset.__param_meta__ = {
    "edge_offsets": {"type": "number", "min": -25.0, "max": 25.0, "list": True},
    "default_offset": {"type": "number", "min": -25.0, "max": 25.0},
    "resolve": {"type": "bool"},
    "edge_mode": {"type": "string", "choices": ["closed", "legacy"]},
    "parallel_policy": {"type": "string", "choices": ["fallback", "warn", "raise"]},
    "tolerance": {"type": "number", "min": 0.0, "max": 1.0},
    "fixed_scale": {"type": "integer", "min": 1, "max": 10000},
    "strict": {"type": "bool"},
}


__all__ = [
    "OffsetOptions",
    "PathOutcome",
    "build_offset_map",
    "offset_ring",
    "offset_paths",
    "variable_offset",
]
