"""
Basic usage example for the shape predictor
Haar 얼굴 검출 -> 68점 랜드마크 예측 -> 결과 그리기

Run:
    python examples/basic_usage.py path/to/face.jpg
"""

import sys

import cv2
import numpy as np

from shape_predictor import GrayImage, Rectangle, load_shape_predictor
from shape_predictor.config.constants import CLOSED_REGIONS, FACIAL_REGIONS_68


def detect_faces(gray: np.ndarray):
    """OpenCV Haar cascade 얼굴 검출 -> Rectangle 리스트"""
    cascade_path = cv2.data.haarcascades + "haarcascade_frontalface_default.xml"
    detector = cv2.CascadeClassifier(cascade_path)
    if detector.empty():
        raise RuntimeError(f"Failed to load cascade: {cascade_path}")

    faces = detector.detectMultiScale(gray, scaleFactor=1.1, minNeighbors=5, minSize=(60, 60))
    return [Rectangle(float(x), float(y), float(w), float(h)) for (x, y, w, h) in faces]


def draw_landmarks(image: np.ndarray, points) -> None:
    """68점 영역별 윤곽선 + 점 그리기"""
    pts = np.array([[p.x, p.y] for p in points], dtype=np.int32)

    if len(pts) == 68:
        for name, indices in FACIAL_REGIONS_68.items():
            cv2.polylines(image, [pts[indices]], name in CLOSED_REGIONS, (0, 0, 255), 1, cv2.LINE_AA)

    for (x, y) in pts:
        cv2.circle(image, (int(x), int(y)), 2, (0, 255, 0), -1)


def main():
    if len(sys.argv) < 2:
        print("Usage: python examples/basic_usage.py <image>")
        return 1

    frame = cv2.imread(sys.argv[1])
    if frame is None:
        print(f"⚠️  Image not found: {sys.argv[1]}")
        return 1

    predictor = load_shape_predictor()
    image = GrayImage(frame)

    faces = detect_faces(image.array)
    print(f"📦 Faces: {len(faces)}")

    for region in faces:
        points = predictor.run(image, region)
        draw_landmarks(frame, points)
        print(f"📊 {len(points)} landmarks in {region}")

    cv2.imwrite("out.png", frame)
    print("✅ Saved out.png")
    return 0


if __name__ == "__main__":
    sys.exit(main())
