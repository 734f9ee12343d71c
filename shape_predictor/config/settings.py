"""시스템 설정 클래스 정의"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..utils.config_loader import Config, get_config
from ..utils.exceptions import ConfigurationError


@dataclass
class LoaderSettings:
    """모델 로딩 설정"""

    # dlib 원본 모델 경로 (.dat)
    dlib_model_path: Optional[Union[str, Path]] = None
    # 내부 캐시 경로 (.bin)
    cache_path: Optional[Union[str, Path]] = None

    use_cache: bool = True
    refresh_cache: bool = False  # True: 캐시가 있어도 dlib 파일에서 다시 변환

    def __post_init__(self):
        """설정 값 검증"""
        if self.dlib_model_path is not None:
            self.dlib_model_path = Path(self.dlib_model_path)
        if self.cache_path is not None:
            self.cache_path = Path(self.cache_path)

        if self.dlib_model_path is None and self.cache_path is None:
            raise ConfigurationError("Either dlib_model_path or cache_path must be set")
        if self.use_cache and self.cache_path is None:
            raise ConfigurationError("use_cache requires cache_path")
        if not self.use_cache and self.dlib_model_path is None:
            raise ConfigurationError("dlib_model_path is required when the cache is disabled")
        if self.refresh_cache and self.dlib_model_path is None:
            raise ConfigurationError("refresh_cache requires dlib_model_path")

    @classmethod
    def from_config(cls, config: Config = None) -> "LoaderSettings":
        """config.yaml의 models / cache 섹션에서 설정 생성"""
        config = config or get_config()
        return cls(
            dlib_model_path=config.get('models.dlib_predictor'),
            cache_path=config.get('models.cache'),
            use_cache=bool(config.get('cache.enabled', True)),
            refresh_cache=bool(config.get('cache.refresh', False)),
        )
