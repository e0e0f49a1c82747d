"""
どこで: `engine.edge_map`
何を: 辺ごとのオフセット量を `(path_index, edge_index)` で引く 2 段の参照構造 `EdgeOffsetMap`。
なぜ: 呼び出し側が 1 度だけ組み立て、エンジン実行中は読み取り専用で参照するため。

要点:
- 未設定のキーは呼び出し側が渡す既定値にフォールバックする（既定値は map に保持しない）。
- 単一多角形の呼び出しでは path_index は常に 0。辺順のリスト 1 本から作るのが基本形。
- バッチ（複数パス）で同じ設定を共有する場合のみ複合キーを使う。
"""

from __future__ import annotations

import math
from types import MappingProxyType
from typing import Iterator, Mapping, Sequence

import numpy as np

from ..common.errors import InvalidInputError
from ..common.types import EdgeKey, EdgeOffsetsLike


def _as_index(value: object, what: str) -> int:
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, (int, np.integer)):
        raise InvalidInputError(f"{what} は整数である必要があります: {value!r}")
    idx = int(value)
    if idx < 0:
        raise InvalidInputError(f"{what} は 0 以上である必要があります: {idx}")
    return idx


def _as_offset(value: object) -> float:
    try:
        d = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"オフセット量は数値である必要があります: {value!r}") from exc
    if not math.isfinite(d):
        raise InvalidInputError(f"オフセット量は有限値である必要があります: {d}")
    return d


class EdgeOffsetMap:
    """`path_index -> {edge_index -> offset}` の 2 段マップ。"""

    __slots__ = ("_paths",)

    def __init__(self, entries: Mapping[EdgeKey, float] | None = None) -> None:
        self._paths: dict[int, dict[int, float]] = {}
        if entries:
            for key, value in entries.items():
                try:
                    path_index, edge_index = key
                except (TypeError, ValueError) as exc:
                    raise InvalidInputError(
                        f"キーは (path_index, edge_index) である必要があります: {key!r}"
                    ) from exc
                self.set(path_index, edge_index, value)

    # ── ファクトリ ───────────────────
    @classmethod
    def from_sequence(cls, values: Sequence[float], *, path_index: int = 0) -> "EdgeOffsetMap":
        """辺順のオフセット一覧から生成する（i 番目の値が辺 i）。"""
        m = cls()
        for edge_index, value in enumerate(values):
            m.set(path_index, edge_index, value)
        return m

    @classmethod
    def from_paths(cls, per_path: Sequence[Sequence[float]]) -> "EdgeOffsetMap":
        """パスごとの一覧の一覧から生成する（外側の index が path_index）。"""
        m = cls()
        for path_index, values in enumerate(per_path):
            for edge_index, value in enumerate(values):
                m.set(path_index, edge_index, value)
        return m

    @classmethod
    def coerce(
        cls, obj: "EdgeOffsetMap | EdgeOffsetsLike | None", *, path_index: int = 0
    ) -> "EdgeOffsetMap":
        """受け付ける入力形（map/辞書/一覧/None）を `EdgeOffsetMap` に揃える。

        - `EdgeOffsetMap` はそのまま返す（コピーしない）。
        - `Mapping` は複合キー `(path_index, edge_index)` の辞書として扱う。
        - それ以外のシーケンスは `path_index` の辺順一覧として扱う。
        """
        if obj is None:
            return cls()
        if isinstance(obj, EdgeOffsetMap):
            return obj
        if isinstance(obj, Mapping):
            return cls(obj)
        if isinstance(obj, (str, bytes)):
            raise InvalidInputError("辺オフセットに文字列は指定できません")
        if isinstance(obj, np.ndarray):
            if obj.ndim != 1:
                raise InvalidInputError(f"辺オフセット配列は 1 次元である必要があります: {obj.shape}")
            return cls.from_sequence(obj.tolist(), path_index=path_index)
        try:
            values = list(obj)
        except TypeError as exc:
            raise InvalidInputError(f"辺オフセットの形式が不正です: {obj!r}") from exc
        return cls.from_sequence(values, path_index=path_index)

    # ── 構築（呼び出し側） ───────────
    def set(self, path_index: int, edge_index: int, offset: float) -> None:
        p = _as_index(path_index, "path_index")
        e = _as_index(edge_index, "edge_index")
        self._paths.setdefault(p, {})[e] = _as_offset(offset)

    # ── 参照（エンジン側） ───────────
    def get(self, path_index: int, edge_index: int, default: float) -> float:
        """`(path_index, edge_index)` の値。未設定なら `default`。"""
        edges = self._paths.get(int(path_index))
        if edges is None:
            return float(default)
        return edges.get(int(edge_index), float(default))

    def for_path(self, path_index: int) -> Mapping[int, float]:
        """1 パス分の読み取り専用ビュー。"""
        return MappingProxyType(self._paths.get(int(path_index), {}))

    def resolve(self, path_index: int, edge_count: int, default: float) -> np.ndarray:
        """辺 0..edge_count-1 のオフセット量を既定値込みで配列化する。"""
        out = np.full(int(edge_count), float(default), dtype=np.float64)
        for e, d in self._paths.get(int(path_index), {}).items():
            if e < edge_count:
                out[e] = d
        return out

    def paths(self) -> list[int]:
        """値を持つ path_index の昇順一覧。"""
        return sorted(self._paths)

    def items(self) -> Iterator[tuple[EdgeKey, float]]:
        for p in sorted(self._paths):
            for e in sorted(self._paths[p]):
                yield (p, e), self._paths[p][e]

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        p, e = key
        return e in self._paths.get(p, {})

    def __len__(self) -> int:
        return sum(len(edges) for edges in self._paths.values())

    def __repr__(self) -> str:  # pragma: no cover - 表示用
        return f"EdgeOffsetMap(paths={len(self._paths)}, entries={len(self)})"


__all__ = ["EdgeOffsetMap"]
