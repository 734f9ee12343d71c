"""커스텀 예외 클래스 정의"""


class ShapePredictorError(Exception):
    """기본 예외 클래스"""
    pass


class DecodeError(ShapePredictorError):
    """모델 바이트 디코딩 실패 예외"""
    pass


class TruncatedInput(DecodeError):
    """입력 버퍼가 선언된 길이보다 짧은 경우"""

    def __init__(self, bytes_needed: int):
        self.bytes_needed = bytes_needed
        super().__init__(f"Truncated input: {bytes_needed} more byte(s) needed")


class MalformedEncoding(DecodeError):
    """구조적으로 일관되지 않은 인코딩"""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Malformed encoding: {detail}")


class UnsupportedVersion(DecodeError):
    """지원하지 않는 포맷 버전"""

    def __init__(self, found: int):
        self.found = found
        super().__init__(f"Unsupported version: {found}")


class IoFailure(ShapePredictorError):
    """파일 읽기/쓰기 실패 예외"""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"I/O failure: {cause}")


class SerializationFailure(ShapePredictorError):
    """캐시 포맷 직렬화/역직렬화 실패 예외"""

    def __init__(self, cause):
        self.cause = cause
        super().__init__(f"Serialization failure: {cause}")


class InvalidImageError(ShapePredictorError):
    """잘못된 이미지 입력 예외"""
    pass


class ConfigurationError(ShapePredictorError):
    """설정 오류 예외"""
    pass


class AlignmentError(ShapePredictorError):
    """변환 추정 입력(점 집합)이 잘못된 경우"""
    pass
