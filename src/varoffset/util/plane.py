from __future__ import annotations

"""
どこで: `util.plane`（作業平面への射影ヘルパ）
何を: 共平面な 3D リングを XY 平面へ整列し、オフセット後に元の姿勢へ戻すための変換を返す。
なぜ: エンジンは 2D で計算するため、任意の共平面入力に対して一貫した処理を行う境界が必要。

アルゴリズム:
- Z 幅が閾値以内ならそのまま XY を使う（恒等変換、Z は先頭頂点の値を保持）。
- それ以外は PCA(SVD) で法線を推定し、Rodrigues の回転で法線を +Z に合わせる。
- 整列後も Z 幅が閾値を超える場合は非平面として `InvalidInputError`。
"""

import numpy as np

from ..common.errors import InvalidInputError


def _planarity_threshold(diag: float, eps_abs: float, eps_rel: float) -> float:
    return max(float(eps_abs), float(eps_rel) * float(diag))


def _rotation_to_z(normal: np.ndarray) -> np.ndarray:
    """単位法線 `normal` を +Z に写す回転行列（法線が ±Z なら単位行列）。"""
    z_axis = np.array([0.0, 0.0, 1.0], dtype=np.float64)
    rot_axis = np.cross(normal, z_axis)
    na = float(np.linalg.norm(rot_axis))
    if na == 0.0:
        return np.eye(3)
    rot_axis = rot_axis / na
    cos_t = float(np.clip(np.dot(normal, z_axis), -1.0, 1.0))
    ang = float(np.arccos(cos_t))
    K = np.zeros((3, 3), dtype=np.float64)
    K[0, 1] = -rot_axis[2]
    K[0, 2] = rot_axis[1]
    K[1, 0] = rot_axis[2]
    K[1, 2] = -rot_axis[0]
    K[2, 0] = -rot_axis[1]
    K[2, 1] = rot_axis[0]
    return np.eye(3) + np.sin(ang) * K + (1.0 - np.cos(ang)) * (K @ K)


def to_working_plane(
    ring: np.ndarray, *, eps_abs: float = 1e-5, eps_rel: float = 1e-4
) -> tuple[np.ndarray, np.ndarray, float]:
    """リング `(n, 3)` を作業平面（XY）へ整列する。

    Returns
    -------
    tuple
        `(xy, R, z)`。`xy` は `(n, 2)`、`R` は回転行列、`z` は整列後の平面高さ。
        逆変換は `from_working_plane(xy, R, z)`。
    """
    P = np.asarray(ring, dtype=np.float64)
    if P.ndim != 2 or P.shape[1] != 3:
        raise InvalidInputError(f"リングは形状 (n, 3) である必要があります: {P.shape}")
    if P.shape[0] == 0:
        return np.empty((0, 2), dtype=np.float64), np.eye(3), 0.0

    diag = float(np.linalg.norm(np.max(P, axis=0) - np.min(P, axis=0)))
    thr = _planarity_threshold(diag, eps_abs, eps_rel)

    z_span = float(np.max(P[:, 2]) - np.min(P[:, 2]))
    if z_span <= thr:
        return P[:, :2].copy(), np.eye(3), float(P[0, 2])

    C = P - np.mean(P, axis=0)
    _u, _s, Vt = np.linalg.svd(C, full_matrices=False)
    normal = Vt[-1, :]
    R = _rotation_to_z(normal / float(np.linalg.norm(normal)))

    aligned = P @ R.T
    z_rot = aligned[:, 2]
    if float(np.max(z_rot) - np.min(z_rot)) > thr:
        raise InvalidInputError("リングが平面上にありません（非平面入力はオフセットできません）")
    return aligned[:, :2].copy(), R, float(z_rot[0])


def from_working_plane(xy: np.ndarray, R: np.ndarray, z: float) -> np.ndarray:
    """`to_working_plane` の逆変換。`(n, 2)` → `(n, 3)`。"""
    pts = np.column_stack([xy, np.full(xy.shape[0], float(z), dtype=np.float64)])
    return pts @ R


__all__ = ["to_working_plane", "from_working_plane"]
