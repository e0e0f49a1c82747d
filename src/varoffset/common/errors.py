"""
どこで: `common.errors`
何を: 可変オフセット処理の例外階層を定義する。
なぜ: エンジン/リゾルバが失敗を名前付きで通知し、バッチ側がパス単位で切り分けられるようにするため。

階層:
- `VariableOffsetError`（基底）
    - `InvalidInputError`            入力多角形の頂点数不足・非平面・設定不正
    - `DegenerateEdgeError`          連続頂点の一致（辺法線が未定義）
    - `DegenerateIntersectionError`  隣接オフセット線が平行（policy="raise" のときのみ）
    - `NoSimpleLoopFoundError`       自己交差解消後に単純閉ループが残らない
"""

from __future__ import annotations


class VariableOffsetError(Exception):
    """可変オフセット処理で発生する例外の基底クラス。"""


class InvalidInputError(VariableOffsetError, ValueError):
    """入力が前提（頂点数・平面性・設定形式）を満たさない。"""


class DegenerateEdgeError(VariableOffsetError, ValueError):
    """長さ 0 の辺を検出した。"""

    def __init__(self, path_index: int, edge_index: int) -> None:
        self.path_index = int(path_index)
        self.edge_index = int(edge_index)
        super().__init__(
            f"辺の長さが 0 のため法線を定義できません: path={self.path_index}, edge={self.edge_index}"
        )


class DegenerateIntersectionError(VariableOffsetError, ArithmeticError):
    """隣接するオフセット線が平行で交点が定まらない。"""

    def __init__(self, path_index: int, corner_index: int) -> None:
        self.path_index = int(path_index)
        self.corner_index = int(corner_index)
        super().__init__(
            f"隣接オフセット線が平行です: path={self.path_index}, corner={self.corner_index}"
        )


class NoSimpleLoopFoundError(VariableOffsetError, RuntimeError):
    """自己交差の分割結果に単純閉ループが 1 つも無い。"""


__all__ = [
    "VariableOffsetError",
    "InvalidInputError",
    "DegenerateEdgeError",
    "DegenerateIntersectionError",
    "NoSimpleLoopFoundError",
]
