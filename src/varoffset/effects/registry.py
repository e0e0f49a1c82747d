"""
どこで: `effects.registry`
何を: `@effect` で Geometry→Geometry 関数を名前付きで登録し、`get_effect` / `list_effects` で引く。
なぜ: 呼び出し側が関数を import せず名前（設定ファイル等の文字列）から解決できるようにするため。
"""

from __future__ import annotations

import inspect
from typing import Any, Callable

from ..common.base_registry import BaseRegistry

EffectFn = Callable[..., Any]

_effects = BaseRegistry()


def effect(arg: Any = None, /):
    """エフェクト関数を登録するデコレータ。

    - `@effect` / `@effect()`: 関数名で登録。
    - `@effect("name")`: 明示名で登録。
    """

    def _add(fn: Any, name: str | None) -> EffectFn:
        if not inspect.isfunction(fn):
            raise TypeError(f"@effect は関数のみ登録可能です: got {fn!r}")
        _effects.add(name or fn.__name__, fn)
        return fn

    if inspect.isfunction(arg):
        return _add(arg, None)
    return lambda fn: _add(fn, arg)


def get_effect(name: str) -> EffectFn:
    """登録済みのエフェクト関数（未登録は KeyError）。"""
    return _effects.get(name)


def list_effects() -> list[str]:
    return _effects.names()


__all__ = ["effect", "get_effect", "list_effects"]
