"""
どこで: `engine.core.geometry`
何を: 複数の閉ポリラインを 1 本の座標配列と区切り配列で保持するバッチ容器 `Geometry`。
なぜ: 行番号をそのまま `path_index`（辺オフセット設定の第 1 キー）として扱い、
      パスごとの結果を同じ順序で組み直せるようにするため。

データモデル:
- `coords: float64 (N, 3)` 全頂点（2D 入力は Z=0 を補う）。
- `offsets: int32 (M+1,)` パス i は `coords[offsets[i]:offsets[i+1]]`。先頭は 0、末尾は N。

例（正方形 5 点 + 三角形 3 点）:

    offsets = [0, 5, 8]
    path 0 -> coords[0:5]   # 末尾は閉じ点
    path 1 -> coords[5:8]

精度: オフセット角は近平行な 2 直線の交点になるため float64 で保持する。
"""

from __future__ import annotations

from typing import Iterable, Iterator, Sequence

import numpy as np

LineLike = np.ndarray | Sequence[Sequence[float]] | Sequence[float]


def _validated(coords: np.ndarray, offsets: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    c = np.ascontiguousarray(coords, dtype=np.float64)
    if c.ndim != 2 or c.shape[1] != 3:
        raise ValueError(f"coords は形状 (N, 3) である必要があります: {c.shape}")
    o = np.ascontiguousarray(offsets, dtype=np.int32)
    if o.ndim != 1 or o.size == 0:
        raise ValueError("offsets は 1 要素以上の 1 次元配列である必要があります")
    if o[0] != 0 or o[-1] != c.shape[0]:
        raise ValueError(f"offsets は 0 で始まり N={c.shape[0]} で終わる必要があります: {o.tolist()}")
    if np.any(np.diff(o) < 0):
        raise ValueError("offsets は単調非減少である必要があります")
    return c, o


def _as_xyz(line: LineLike) -> np.ndarray:
    arr = np.asarray(line, dtype=np.float64)
    if arr.ndim == 1:
        if arr.size % 3 != 0:
            raise ValueError("1 次元入力は (x, y, z) の並びで長さが 3 の倍数である必要があります")
        return arr.reshape(-1, 3)
    if arr.ndim == 2 and arr.shape[1] == 2:
        return np.column_stack([arr, np.zeros(arr.shape[0], dtype=np.float64)])
    if arr.ndim == 2 and arr.shape[1] == 3:
        return arr
    raise ValueError(f"座標配列の形状が不正です: {arr.shape}")


class Geometry:
    """閉ポリラインのバッチ（行番号 = path_index）。"""

    __slots__ = ("coords", "offsets")

    coords: np.ndarray
    offsets: np.ndarray

    def __init__(self, coords: np.ndarray, offsets: np.ndarray) -> None:
        self.coords, self.offsets = _validated(coords, offsets)

    @classmethod
    def from_lines(cls, lines: Iterable[LineLike]) -> "Geometry":
        """`(K, 2)` / `(K, 3)` / `(3K,)` の頂点列の並びから生成する。

        Raises
        ------
        ValueError
            いずれの形状にも当てはまらない要素がある場合。
        """
        arrays = [_as_xyz(line) for line in lines]
        counts = [a.shape[0] for a in arrays]
        offsets = np.concatenate([[0], np.cumsum(counts, dtype=np.int64)]).astype(np.int32)
        coords = np.concatenate(arrays, axis=0) if arrays else np.empty((0, 3), dtype=np.float64)
        return cls(coords, offsets)

    def line(self, index: int) -> np.ndarray:
        """`index` 本目の頂点列（読み取り専用ビュー）。負の index は末尾から。"""
        m = len(self)
        if index < 0:
            index += m
        if not 0 <= index < m:
            raise IndexError(f"path index が範囲外です: {index} (M={m})")
        view = self.coords[self.offsets[index] : self.offsets[index + 1]].view()
        view.setflags(write=False)
        return view

    def iter_lines(self) -> Iterator[np.ndarray]:
        for i in range(len(self)):
            yield self.line(i)

    @property
    def is_empty(self) -> bool:
        return self.coords.shape[0] == 0

    @property
    def n_vertices(self) -> int:
        return int(self.coords.shape[0])

    def __len__(self) -> int:
        return int(self.offsets.shape[0]) - 1

    def __repr__(self) -> str:  # pragma: no cover - 表示用
        return f"Geometry(N={self.n_vertices}, M={len(self)})"
