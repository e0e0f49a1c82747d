"""
どこで: `common.env`
何を: 環境変数の軽量パースヘルパを提供。
なぜ: 各所に散在する `os.getenv` + 例外/境界ガードを簡素化するため。
"""

from __future__ import annotations

import os
from typing import Iterable, Optional


def env_float(name: str, default: float, *, min_value: Optional[float] = None) -> float:
    """浮動小数環境変数を取得（存在しない/不正値/非有限値は既定値）。"""
    raw = os.getenv(name)
    if raw is None:
        return float(default)
    try:
        val = float(raw)
    except ValueError:
        return float(default)
    if val != val or val in (float("inf"), float("-inf")):
        return float(default)
    if min_value is not None and val < min_value:
        val = float(min_value)
    return val


def env_bool(name: str, default: bool = False) -> bool:
    """真偽環境変数を取得（0/1, true/false を許容）。"""
    raw = os.getenv(name)
    if raw is None:
        return bool(default)
    try:
        # 数値優先
        return int(raw) != 0
    except ValueError:
        s = raw.strip().lower()
        if s in {"true", "t", "yes", "y", "on"}:
            return True
        if s in {"false", "f", "no", "n", "off"}:
            return False
        return bool(default)


def env_choice(name: str, default: str, choices: Iterable[str]) -> str:
    """列挙値の環境変数を取得（小文字化して照合、候補外は既定値）。"""
    raw = os.getenv(name)
    if raw is None:
        return default
    s = raw.strip().lower()
    return s if s in set(choices) else default
