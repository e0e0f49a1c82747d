"""
どこで: `common` パッケージ。
何を: 例外階層・設定・環境変数パース・ロギング・レジストリ基底などの共通基盤。
なぜ: engine/effects/util から再利用する基盤を分離し、依存の向きを単純化するため。
"""

from .base_registry import BaseRegistry
from .errors import (
    DegenerateEdgeError,
    DegenerateIntersectionError,
    InvalidInputError,
    NoSimpleLoopFoundError,
    VariableOffsetError,
)

__all__ = [
    "BaseRegistry",
    "VariableOffsetError",
    "InvalidInputError",
    "DegenerateEdgeError",
    "DegenerateIntersectionError",
    "NoSimpleLoopFoundError",
]
