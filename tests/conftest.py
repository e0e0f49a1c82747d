"""共通フィクスチャ。

- 乱数シード固定
- 代表的な閉多角形（CCW/CW 正方形、非対称な蝶ネクタイ）
- 設定（環境変数）の退避と再読込
"""

from __future__ import annotations

from typing import Iterator

import numpy as np
import pytest

from varoffset.common import settings
from varoffset.engine.core.geometry import Geometry

_VO_ENV = (
    "VO_DEFAULT_OFFSET",
    "VO_EDGE_MODE",
    "VO_PARALLEL_EPS",
    "VO_PARALLEL_POLICY",
    "VO_RESOLVE_TOLERANCE",
    "VO_PLANARITY_EPS",
    "VO_USE_NUMBA",
)


@pytest.fixture(scope="session", autouse=True)
def np_seed() -> None:
    """NumPy の乱数を固定。"""
    np.random.seed(12345)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """VO_* 環境変数を外した既定設定でテストし、終了後も既定へ戻す。"""
    for name in _VO_ENV:
        monkeypatch.delenv(name, raising=False)
    settings.reload_from_env()
    yield
    for name in _VO_ENV:
        monkeypatch.delenv(name, raising=False)
    settings.reload_from_env()


@pytest.fixture()
def square_ccw() -> np.ndarray:
    return np.array([[0.0, 0.0], [10.0, 0.0], [10.0, 10.0], [0.0, 10.0]], dtype=np.float64)


@pytest.fixture()
def square_cw(square_ccw: np.ndarray) -> np.ndarray:
    return square_ccw[::-1].copy()


@pytest.fixture()
def bowtie() -> np.ndarray:
    """辺 0 と辺 2 が (4/3, 4/3) で交差する非対称な 8 の字。

    右側ループの面積は 16/3、左側ループは 4/3。
    """
    return np.array([[0.0, 0.0], [4.0, 4.0], [4.0, 0.0], [0.0, 2.0]], dtype=np.float64)


@pytest.fixture()
def geom_square(square_ccw: np.ndarray) -> Geometry:
    return Geometry.from_lines([square_ccw])
