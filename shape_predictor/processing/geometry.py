"""점 집합 간 affine / similarity 변환 추정"""

from typing import Sequence

import numpy as np

from ..models import AffineTransform, Rectangle
from ..utils.exceptions import AlignmentError

# 단위 삼각형 (0,0), (1,0), (1,1)
UNIT_TRIANGLE = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0]])


def _as_points(points: Sequence[Sequence[float]]) -> np.ndarray:
    return np.asarray(points, dtype=np.float64).reshape(-1, 2)


class AlignmentEstimator:
    """최소자승 기반 변환 추정"""

    @staticmethod
    def find_affine(from_points, to_points) -> AffineTransform:
        """
        from_points -> to_points 최소자승 affine 변환

        Args:
            from_points: (N, 2) 원본 좌표, N >= 3
            to_points: (N, 2) 대상 좌표

        Returns:
            AffineTransform (M = Q · pinv(P))
        """
        src = _as_points(from_points)
        dst = _as_points(to_points)
        if src.shape != dst.shape:
            raise AlignmentError(f"Point sets differ in size: {len(src)} vs {len(dst)}")
        if len(src) < 3:
            raise AlignmentError(f"find_affine needs at least 3 points, got {len(src)}")

        # P: 동차 좌표 (3, N), Q: 대상 좌표 (2, N)
        p = np.vstack([src.T, np.ones(len(src))])
        q = dst.T

        m = q @ np.linalg.pinv(p)
        return AffineTransform(m[:, :2], m[:, 2])

    @staticmethod
    def find_similarity(from_points, to_points) -> AffineTransform:
        """
        회전 + 균일 스케일 + 평행 이동 (반사 없음) 최소자승 변환

        Args:
            from_points: (N, 2) 원본 좌표
            to_points: (N, 2) 대상 좌표

        Returns:
            AffineTransform (선형 부분 c·R, 평행 이동 t).
            좌표에 inf/nan이 섞여 있으면 항등 변환.

        Raises:
            AlignmentError: 점 개수가 다르거나 비어 있는 경우
        """
        src = _as_points(from_points)
        dst = _as_points(to_points)
        if src.shape != dst.shape:
            raise AlignmentError(f"Point sets differ in size: {len(src)} vs {len(dst)}")
        if len(src) == 0:
            raise AlignmentError("find_similarity needs at least one point")

        with np.errstate(invalid='ignore', over='ignore'):
            mean_from = src.mean(axis=0)
            mean_to = dst.mean(axis=0)

            centered_from = src - mean_from
            centered_to = dst - mean_to

            sigma_from = float(np.mean(np.sum(centered_from ** 2, axis=1)))
            cov = centered_to.T @ centered_from / len(src)

        # inf/nan 좌표 (dlib 특수 float) -> SVD 불가, 정렬 없음으로 처리
        if not (np.all(np.isfinite(cov)) and np.isfinite(sigma_from)):
            return AffineTransform.identity()

        u, d, vt = np.linalg.svd(cov)

        # 반사 보정: 고유 회전만 허용
        s = np.eye(2)
        det_cov = np.linalg.det(cov)
        if det_cov < 0 or (det_cov == 0 and np.linalg.det(u) * np.linalg.det(vt) < 0):
            if d[1] < d[0]:
                s[0, 0] = -1.0
            else:
                s[1, 1] = -1.0

        r = u @ s @ vt

        if sigma_from == 0:
            c = 1.0
        else:
            c = float(np.trace(np.diag(d) @ s)) / sigma_from

        t = mean_to - c * r @ mean_from
        return AffineTransform(c * r, t)

    @staticmethod
    def unnormalizing(region: Rectangle) -> AffineTransform:
        """단위 정사각형 좌표 -> 이미지 영역 좌표 변환"""
        corners = [region.tl_corner(), region.tr_corner(), region.br_corner()]
        return AlignmentEstimator.find_affine(UNIT_TRIANGLE, corners)
