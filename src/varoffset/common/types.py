"""
どこで: `common` の型定義。
何を: 頂点列/オフセット設定の軽量エイリアス（組込みジェネリックで記述）。
なぜ: 依存の少ない場所に配置して循環と分散定義を避けるため。
"""

from __future__ import annotations

from typing import Mapping, Sequence, Union

import numpy as np

# `(path_index, edge_index)` の複合キー
EdgeKey = tuple[int, int]

# 頂点列として受け付ける形（(K,2)/(K,3) の配列、または点のシーケンス）
PointsLike = Union[np.ndarray, Sequence[Sequence[float]]]

# 辺オフセットとして受け付ける形（辺順の一覧、または複合キーの辞書）
EdgeOffsetsLike = Union[Sequence[float], Mapping[EdgeKey, float]]


__all__ = ["EdgeKey", "PointsLike", "EdgeOffsetsLike"]
