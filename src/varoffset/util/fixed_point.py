"""
どこで: `util.fixed_point`
何を: 実数座標と固定小数（整数グリッド）座標の相互変換。
なぜ: クリッピング系ライブラリと同じ座標規約（実座標 × scale を int64 で保持）に合わせる場合の
      境界処理。エンジン内部は常に浮動小数で計算し、スケールはここでのみ扱う。

規約:
- 入力: `to_fixed(points, scale)` は `points * scale` を 0 方向へ切り捨てて int64 化する。
- 出力: `from_fixed(points, scale)` は `points / scale` を float64 で返す。
- `snap_to_grid` は両者の合成（実座標のまま 1/scale 単位へ量子化）。
"""

from __future__ import annotations

import numpy as np

from ..common.errors import InvalidInputError

DEFAULT_SCALE = 100


def _check_scale(scale: int) -> int:
    s = int(scale)
    if s <= 0:
        raise InvalidInputError(f"scale は正の整数である必要があります: {scale}")
    return s


def to_fixed(points: np.ndarray, scale: int = DEFAULT_SCALE) -> np.ndarray:
    s = _check_scale(scale)
    return np.trunc(np.asarray(points, dtype=np.float64) * s).astype(np.int64)


def from_fixed(points: np.ndarray, scale: int = DEFAULT_SCALE) -> np.ndarray:
    s = _check_scale(scale)
    return np.asarray(points, dtype=np.int64).astype(np.float64) / s


def snap_to_grid(points: np.ndarray, scale: int = DEFAULT_SCALE) -> np.ndarray:
    """固定小数グリッドへ往復させた実座標（量子化誤差は 1/scale 未満）。"""
    return from_fixed(to_fixed(points, scale), scale)


__all__ = ["DEFAULT_SCALE", "to_fixed", "from_fixed", "snap_to_grid"]
