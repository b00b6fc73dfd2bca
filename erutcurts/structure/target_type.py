import logging
import os
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from ..archive import delete_quietly, filename_without_extension
from .behavior import Behavior
from .identifier import Identifier
from .level import LevelVersionsData
from .world import World

logger = logging.getLogger(__name__)


class TargetType(str, Enum):
    """스트럭처 파일의 변환 대상"""

    BEHAVIOR = "behavior"
    SINGLE_BEHAVIOR = "single-behavior"
    WORLD = "world"

    @classmethod
    def from_value(cls, value: str) -> "TargetType":
        for target_type in cls:
            if target_type.value == value:
                return target_type
        raise ValueError(f"알 수 없는 변환 대상입니다: {value}")

    @property
    def is_multiple(self) -> bool:
        """여러 파일을 하나의 결과물로 묶는지 여부"""
        return self != TargetType.SINGLE_BEHAVIOR

    @property
    def needs_level_versions(self) -> bool:
        return self == TargetType.WORLD

    def convert(
        self,
        structures: Dict[Identifier, str],
        level_versions: Optional[LevelVersionsData] = None,
    ) -> List[str]:
        """
        스트럭처 파일을 변환합니다.

        Args:
            structures: 식별자 -> .mcstructure 파일 경로
            level_versions: WORLD 변환에 필요한 버전 정보

        Returns:
            생성된 파일 경로 목록
        """
        if not structures:
            raise ValueError("structures must not be empty")
        logger.info(f"변환 시작: {self.value} ({len(structures)}개)")

        if self == TargetType.BEHAVIOR:
            return [Behavior.generate(structures)]
        if self == TargetType.SINGLE_BEHAVIOR:
            outputs = []
            try:
                for identifier, path in structures.items():
                    outputs.append(Behavior.generate({identifier: path}))
            except Exception:
                # 이미 생성된 팩의 임시 디렉토리도 삭제
                for output in outputs:
                    delete_quietly(os.path.dirname(output))
                raise
            return outputs
        if level_versions is None:
            raise ValueError("월드 변환에는 LevelVersions 데이터가 필요합니다.")
        return [World.generate(structures, level_versions)]


def structures_from_files(files: Iterable[Tuple[str, str]]) -> Dict[Identifier, str]:
    """
    원래 파일 이름(확장자 제외)을 식별자로 사용하는 매핑을 만듭니다.

    Args:
        files: (첨부 파일 이름, 다운로드된 경로) 목록

    Returns:
        식별자 -> 다운로드된 경로
    """
    structures: Dict[Identifier, str] = {}
    for filename, path in files:
        identifier = Identifier.from_string(filename_without_extension(filename))
        if identifier in structures:
            logger.warning(f"중복된 식별자는 건너뜁니다: {identifier}")
            continue
        structures[identifier] = path
    return structures
