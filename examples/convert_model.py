"""
dlib shape_predictor (.dat) -> 내부 캐시 (.bin) 변환 예제

Run:
    python examples/convert_model.py --dlib models/shape_predictor_68_face_landmarks.dat \
        --output models/face_landmarks.bin
"""

import sys
import time

from shape_predictor import ShapePredictor, ShapePredictorError
from shape_predictor.utils import get_config


def main():
    """메인 함수"""
    import argparse

    config = get_config()

    parser = argparse.ArgumentParser(description='dlib 모델을 캐시 포맷으로 변환')
    parser.add_argument(
        '--dlib',
        default=config.get('models.dlib_predictor'),
        help='dlib shape_predictor .dat 경로'
    )
    parser.add_argument(
        '--output',
        default=config.get('models.cache'),
        help='캐시 파일 저장 경로'
    )
    args = parser.parse_args()

    try:
        start = time.time()
        predictor = ShapePredictor.read_from_dlib(args.dlib)
        print(f"✅ Imported {predictor} in {time.time() - start:.1f}s")

        predictor.write(args.output)

        start = time.time()
        ShapePredictor.read(args.output)
        print(f"✅ Cache reload takes {time.time() - start:.2f}s: {args.output}")
    except ShapePredictorError as e:
        print(f"❌ Conversion failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
