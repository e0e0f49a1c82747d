"""
どこで: `engine.core` サブパッケージ。
何を: バッチ入出力の共通表現 `Geometry` を提供。
"""

from .geometry import Geometry

__all__ = ["Geometry"]
