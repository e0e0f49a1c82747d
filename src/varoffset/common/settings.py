"""
どこで: `common.settings`
何を: 可変オフセットの既定値/許容誤差/互換モードを環境変数から型付きで一元管理する。
なぜ: `os.getenv` の散在を解消し、既定値/型の一貫性とテスト容易性を高めるため。

注意:
- エンジン/リゾルバはこのモジュールを直接参照しない。エフェクト境界で 1 度だけ
  スナップショットを読み、明示引数として下位へ渡す（呼び出しごとに状態を持たない）。
"""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_bool, env_choice, env_float

EDGE_MODES = ("closed", "legacy")
PARALLEL_POLICIES = ("fallback", "warn", "raise")


@dataclass
class _Settings:
    # オフセット
    DEFAULT_OFFSET: float = 0.0
    EDGE_MODE: str = "closed"

    # 交点計算
    PARALLEL_EPS: float = 1e-10
    PARALLEL_POLICY: str = "fallback"

    # 自己交差解消 / 入力検証
    RESOLVE_TOLERANCE: float = 1e-6
    PLANARITY_EPS: float = 1e-5

    # Misc
    USE_NUMBA: bool = True


_settings = _Settings()


def reload_from_env() -> None:
    """環境変数から設定を再読込。

    - float は `env_float`（許容誤差は負値を 0 に丸める）。
    - 列挙値は `env_choice`（候補外は既定値）。
    """
    _settings.DEFAULT_OFFSET = env_float("VO_DEFAULT_OFFSET", 0.0)
    _settings.EDGE_MODE = env_choice("VO_EDGE_MODE", "closed", EDGE_MODES)

    _settings.PARALLEL_EPS = env_float("VO_PARALLEL_EPS", 1e-10, min_value=0.0)
    _settings.PARALLEL_POLICY = env_choice("VO_PARALLEL_POLICY", "fallback", PARALLEL_POLICIES)

    _settings.RESOLVE_TOLERANCE = env_float("VO_RESOLVE_TOLERANCE", 1e-6, min_value=0.0)
    _settings.PLANARITY_EPS = env_float("VO_PLANARITY_EPS", 1e-5, min_value=0.0)

    _settings.USE_NUMBA = env_bool("VO_USE_NUMBA", True)


def get() -> _Settings:
    """現在の設定スナップショットを返す。"""
    return _settings


# 初期ロード
reload_from_env()


__all__ = ["get", "reload_from_env", "_Settings", "EDGE_MODES", "PARALLEL_POLICIES"]
