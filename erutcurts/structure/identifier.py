import posixpath
import re
from typing import Optional, Sequence, Tuple

from pydantic import BaseModel

from ..errors import InvalidIdentifierError
from .extensions import MCExtension

# 명시적인 mystructure 디렉토리는 마인크래프트가 경고를 출력하므로 사용할 수 없음
DEFAULT_NAMESPACE = "mystructure"
NAMESPACE_DELIMITER = ":"
PATH_DELIMITER = "/"

IDENTIFIER_PATTERN = re.compile(r"^(?:[^:/]+:)?(?:[^:/]+/)*[^:/]+$")


class Identifier(BaseModel):
    """
    스트럭처 식별자 (`namespace:path/to/name`)

    네임스페이스를 생략하면 mystructure 가 사용됩니다.
    """

    namespace: str = DEFAULT_NAMESPACE
    path: Tuple[str, ...]

    model_config = {"frozen": True}

    def __init__(self, path: Sequence[str], namespace: Optional[str] = None):
        namespace = DEFAULT_NAMESPACE if namespace is None else namespace
        if not namespace.strip():
            raise InvalidIdentifierError("네임스페이스가 비어 있습니다.")
        if not path:
            raise InvalidIdentifierError("경로가 비어 있습니다.")
        if namespace == DEFAULT_NAMESPACE and len(path) != 1:
            raise InvalidIdentifierError(
                'Use of an explicit "mystructure" directory is restricted.'
            )
        super().__init__(namespace=namespace, path=tuple(path))

    @classmethod
    def from_string(cls, identifier: str) -> "Identifier":
        """
        문자열에서 식별자를 생성합니다.

        Args:
            identifier: `name`, `namespace:name`, `namespace:dir/name` 형식의 문자열

        Returns:
            Identifier 인스턴스
        """
        if not IDENTIFIER_PATTERN.match(identifier):
            raise InvalidIdentifierError(f"올바르지 않은 식별자입니다: {identifier}")

        if NAMESPACE_DELIMITER in identifier:
            namespace, path = identifier.split(NAMESPACE_DELIMITER, 1)
            return cls(path.split(PATH_DELIMITER), namespace)
        return cls(identifier.split(PATH_DELIMITER))

    def is_default_namespace(self) -> bool:
        return self.namespace == DEFAULT_NAMESPACE

    def to_path(self, extension: str = MCExtension.MCSTRUCTURE.value) -> str:
        """식별자에 대응하는 상대 경로 (`/` 구분)를 반환합니다."""
        return f"{self.function_path()}.{extension}"

    def function_path(self) -> str:
        """확장자 없는 상대 경로. 함수 이름으로도 사용됩니다."""
        if self.is_default_namespace():
            return self.path[0]
        return posixpath.join(self.namespace, *self.path)

    def display_name(self) -> str:
        """기본 네임스페이스일 경우 네임스페이스를 생략한 문자열"""
        if not self.is_default_namespace():
            return str(self)
        return PATH_DELIMITER.join(self.path)

    def __str__(self) -> str:
        return self.namespace + NAMESPACE_DELIMITER + PATH_DELIMITER.join(self.path)
