"""Predictor가 사용하는 이미지 조회 인터페이스와 numpy 어댑터"""

from pathlib import Path
from typing import Protocol, Union

import cv2
import numpy as np

from ..utils.exceptions import InvalidImageError, IoFailure
from ..utils.validators import validate_image


class ImageQuery(Protocol):
    """단일 채널 밝기값 조회 인터페이스"""

    def width(self) -> int:
        ...

    def height(self) -> int:
        ...

    def luma_intensity(self, x: int, y: int) -> float:
        ...


class GrayImage:
    """
    numpy 이미지를 ImageQuery로 감싸는 어댑터

    컬러 이미지(BGR/BGRA)는 OpenCV로 grayscale 변환 후 보관.
    """

    def __init__(self, image: np.ndarray):
        """
        Args:
            image: grayscale (H, W) 또는 BGR/BGRA (H, W, C) 이미지

        Raises:
            InvalidImageError: 이미지가 유효하지 않은 경우
        """
        validate_image(image)

        if image.ndim == 3:
            channels = image.shape[2]
            if channels == 1:
                image = image[:, :, 0]
            elif channels == 3:
                image = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
            else:
                image = cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)

        self._gray = np.array(image, order="C")
        self._gray.flags.writeable = False

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "GrayImage":
        """이미지 파일 로드 (cv2.imread)"""
        path = Path(path)
        if not path.exists():
            raise IoFailure(FileNotFoundError(f"Image not found: {path}"))

        image = cv2.imread(str(path), cv2.IMREAD_GRAYSCALE)
        if image is None:
            raise InvalidImageError(f"Failed to decode image: {path}")
        return cls(image)

    @property
    def array(self) -> np.ndarray:
        return self._gray

    def width(self) -> int:
        return int(self._gray.shape[1])

    def height(self) -> int:
        return int(self._gray.shape[0])

    def luma_intensity(self, x: int, y: int) -> float:
        return float(self._gray[y, x])
