"""
どこで: `effects` パッケージ（関数ベース）。
何を: Geometry→Geometry の純関数エフェクトを登録し、名前で解決できるようにする。
なぜ: エンジン（純粋な幾何計算）とバッチ編成（パス分割・失敗の切り分け）を分離するため。
"""

from . import variable_offset  # noqa: F401
from .registry import effect, get_effect, list_effects

__all__ = [
    "effect",
    "get_effect",
    "list_effects",
]
