"""dlib 모델 변환 + 캐시 재로딩"""

from ..config.settings import LoaderSettings
from ..utils.exceptions import SerializationFailure, UnsupportedVersion
from ..utils.logging_config import get_logger
from .predictor import ShapePredictor

logger = get_logger(__name__)


def load_shape_predictor(settings: LoaderSettings = None) -> ShapePredictor:
    """
    설정에 따라 ShapePredictor 로드

    1. 캐시가 있으면 캐시에서 로드
    2. 캐시가 없거나 읽을 수 없으면 dlib .dat 파일을 변환하고 캐시 저장

    Args:
        settings: 로딩 설정 (None이면 config.yaml 사용)

    Returns:
        ShapePredictor

    Raises:
        IoFailure: 필요한 파일을 읽거나 쓸 수 없는 경우
        DecodeError: dlib 파일이 손상된 경우
    """
    settings = settings or LoaderSettings.from_config()

    cache_path = settings.cache_path if settings.use_cache else None
    dlib_path = settings.dlib_model_path

    if cache_path is not None and cache_path.exists() and not settings.refresh_cache:
        try:
            return ShapePredictor.read(cache_path)
        except (SerializationFailure, UnsupportedVersion) as e:
            if dlib_path is None:
                raise
            logger.warning(f"Discarding unusable cache {cache_path}: {e}")

    if dlib_path is None:
        # 캐시 전용 설정인데 캐시가 없는 경우 -> IoFailure
        return ShapePredictor.read(cache_path)

    predictor = ShapePredictor.read_from_dlib(dlib_path)

    if cache_path is not None:
        predictor.write(cache_path)

    return predictor
