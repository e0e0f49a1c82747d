"""
プロジェクト向けの軽量ロギングユーティリティ。

要点:
- 各モジュールは `logging.getLogger(__name__)` でロガーを取得する（ライブラリ側はハンドラを付けない）。
- 利用側で設定が無い場合に、最小構成を 1 度だけ適用するヘルパーを提供する。
- `varoffset` 配下のロガーだけ詳細度を変えたい場合は `set_package_level` を使う。
"""

from __future__ import annotations

import logging

PACKAGE_LOGGER = "varoffset"


def _resolve_level(level: int | str) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return int(level)


def setup_default_logging(level: int | str = "INFO") -> None:
    """最小限のロギング設定を 1 度だけ適用する。

    - ルートロガーにハンドラが既にあれば何もしない（no-op）
    - スクリプト/対話環境から呼び出す想定（ライブラリ内部からは呼ばない）
    """
    root = logging.getLogger()
    if root.handlers:
        return
    logging.basicConfig(
        level=_resolve_level(level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def set_package_level(level: int | str) -> int:
    """`varoffset` パッケージロガーのレベルを設定し、適用後の数値レベルを返す。"""
    lvl = _resolve_level(level)
    logging.getLogger(PACKAGE_LOGGER).setLevel(lvl)
    return lvl


__all__ = ["PACKAGE_LOGGER", "setup_default_logging", "set_package_level"]
