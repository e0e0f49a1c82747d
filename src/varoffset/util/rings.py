"""
どこで: `util.rings`（閉ループの境界アダプタ）
何を: 閉じ点の除去/付加、符号付き面積、巻き方向の正規化と、反転時の辺番号の対応付け。
なぜ: エンジンは「閉じ点なし・CCW」の頂点列を前提とするため、入出力の境界で揃える。

辺番号の対応:
- n 頂点のリング P を反転した Q = P[::-1] の辺 k（Q[k] -> Q[k+1]）は、元の辺
  `(n - 2 - k) mod n`（P[n-2-k] -> P[n-1-k]）を逆向きに辿ったもの。
"""

from __future__ import annotations

import numpy as np


def strip_closing_point(ring: np.ndarray, eps: float = 0.0) -> np.ndarray:
    """末尾が先頭と `eps` 以内で一致する場合、末尾の閉じ点を取り除く。"""
    if ring.shape[0] < 2:
        return ring
    if float(np.linalg.norm(ring[-1] - ring[0])) <= eps:
        return ring[:-1]
    return ring


def close_ring(ring: np.ndarray) -> np.ndarray:
    """先頭頂点のコピーを末尾に付加する（出力側で閉じ点を明示する表現向け）。"""
    if ring.shape[0] == 0:
        return ring
    return np.vstack([ring, ring[:1]])


def signed_area(ring: np.ndarray) -> float:
    """Shoelace 公式による符号付き面積（CCW で正）。閉じ点の有無は問わない。"""
    if ring.shape[0] < 3:
        return 0.0
    x = ring[:, 0].astype(np.float64, copy=False)
    y = ring[:, 1].astype(np.float64, copy=False)
    return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y))


def is_ccw(ring: np.ndarray) -> bool:
    return signed_area(ring) > 0.0


def ensure_ccw(ring: np.ndarray) -> tuple[np.ndarray, bool]:
    """CCW に揃えたリングと、反転したかどうかを返す。面積 0 のリングはそのまま。"""
    if signed_area(ring) < 0.0:
        return ring[::-1].copy(), True
    return ring, False


def reversed_edge_index(edge_index: int, vertex_count: int) -> int:
    """反転リングの辺 `edge_index` に対応する元リングの辺番号。"""
    return (vertex_count - 2 - edge_index) % vertex_count


def remap_offsets_for_reversal(distances: np.ndarray) -> np.ndarray:
    """元リングの辺順オフセット量を、反転リングの辺順に並べ替える。"""
    n = distances.shape[0]
    idx = np.array([reversed_edge_index(k, n) for k in range(n)], dtype=np.int64)
    return distances[idx]


__all__ = [
    "strip_closing_point",
    "close_ring",
    "signed_area",
    "is_ccw",
    "ensure_ccw",
    "reversed_edge_index",
    "remap_offsets_for_reversal",
]
