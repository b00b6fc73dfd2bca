class ErutcurtsError(Exception):
    """Erutcurts 에서 발생하는 모든 예외의 기본 클래스"""


class MissingEnvironmentError(ErutcurtsError):
    """필수 환경 변수가 설정되지 않았을 때 발생합니다."""

    def __init__(self, key: str):
        super().__init__(f"환경 변수 {key} 가 설정되지 않았습니다.")
        self.key = key


class StructureFormatError(ErutcurtsError, ValueError):
    """mcstructure 또는 level.dat 의 NBT 구조가 올바르지 않을 때 발생합니다."""


class InvalidIdentifierError(ErutcurtsError, ValueError):
    """스트럭처 식별자 형식이 올바르지 않을 때 발생합니다."""


class ManifestError(ErutcurtsError, ValueError):
    """manifest.json 의 제약 조건을 위반했을 때 발생합니다."""


class LevelVersionsUnavailableError(ErutcurtsError):
    """월드 생성에 필요한 LevelVersions 데이터가 없을 때 발생합니다."""


class UnsupportedLocaleError(ErutcurtsError):
    """번역기가 지원하지 않는 로케일일 때 발생합니다."""

    def __init__(self, locale: str):
        super().__init__(f"지원하지 않는 로케일입니다: {locale}")
        self.locale = locale


class TranslationError(ErutcurtsError):
    """번역 API 호출이 실패했을 때 발생합니다."""
