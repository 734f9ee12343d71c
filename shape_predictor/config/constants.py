"""dlib 모델 포맷 및 캐시 포맷 상수 정의"""

from typing import Dict, List

# dlib 정수 인코딩: control byte 하위 4비트 = 바이트 수, 최상위 비트 = 부호
INT_SIZE_MASK = 0x0F
INT_SIGN_BIT = 0x80
MAX_INT_BYTES = 8

# dlib float_details 특수 지수 (mantissa는 0)
FLOAT_EXPONENT_INF = 32000
FLOAT_EXPONENT_NINF = 32001
FLOAT_EXPONENT_NAN = 32002

# shape_predictor 직렬화 버전 (dlib은 1만 사용)
DLIB_SHAPE_PREDICTOR_VERSION = 1

# 내부 캐시 포맷
CACHE_MAGIC = b"SPRD"
CACHE_VERSION = 1

# dlib 68점 랜드마크 영역별 인덱스 (iBUG 300-W 순서)
FACIAL_REGIONS_68: Dict[str, List[int]] = {
    'jaw': list(range(0, 17)),
    'right_eyebrow': list(range(17, 22)),
    'left_eyebrow': list(range(22, 27)),
    'nose_bridge': list(range(27, 31)),
    'nose_bottom': list(range(31, 36)),
    'right_eye': list(range(36, 42)),
    'left_eye': list(range(42, 48)),
    'lips_outer': list(range(48, 60)),
    'lips_inner': list(range(60, 68)),
}

# 닫힌 윤곽선으로 그리는 영역
CLOSED_REGIONS = ('right_eye', 'left_eye', 'lips_outer', 'lips_inner')
