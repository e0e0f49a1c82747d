"""
どこで: `common.base_registry`
何を: 正規化した名前 → 関数の対応表。
なぜ: "VariableOffset" / "variable-offset" / "variable_offset" のどの表記でも同じ関数を引けるようにするため。
"""

from __future__ import annotations

import re
from typing import Any, Callable

_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


class BaseRegistry:
    """正規化キーで関数を保持する対応表。"""

    def __init__(self) -> None:
        self._entries: dict[str, Callable[..., Any]] = {}

    @staticmethod
    def normalize_key(name: str) -> str:
        """ハイフンを `_` に、キャメルケースをスネークケースにして小文字化する。"""
        if not isinstance(name, str):
            raise TypeError(f"レジストリキーは str である必要があります: {name!r}")
        if not name:
            raise ValueError("レジストリキーは空であってはなりません")
        key = name.replace("-", "_")
        if not key.isupper():
            key = _WORD_BOUNDARY.sub("_", key)
        return key.lower()

    def add(self, name: str, fn: Callable[..., Any]) -> None:
        """`fn` を `name` で登録する。同名で別の関数があれば `ValueError`。"""
        key = self.normalize_key(name)
        current = self._entries.get(key)
        if current is not None and current is not fn:
            raise ValueError(f"'{key}' は既に別の関数で登録されています")
        self._entries[key] = fn

    def get(self, name: str) -> Callable[..., Any]:
        try:
            return self._entries[self.normalize_key(name)]
        except KeyError:
            raise KeyError(f"'{name}' は登録されていません") from None

    def names(self) -> list[str]:
        return sorted(self._entries)
