"""
level.dat 생성 및 버전 정보 관리

새 버전의 마인크래프트가 출시되면 level.dat 의 버전 값이 바뀌므로,
관리자가 내보낸 평지 월드에서 값을 읽어 데이터베이스에 보관합니다.
"""

import json
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

from nbtlib import parse_nbt
from nbtlib.tag import Compound, Int, List as ListTag, Long, String
from pydantic import BaseModel, Field, field_validator

from ..config import TEMPLATE_LEVEL
from ..errors import LevelVersionsUnavailableError, StructureFormatError
from .versions import VersionString, parse_version

logger = logging.getLogger(__name__)

DATABASE_NAME = "LevelVersions"
FLAT_WORLD_LAYERS_KEY = "FlatWorldLayers"
DEFAULT_BIOME_ID = 1


class BlockLayer(BaseModel):
    block_name: str
    count: int = Field(gt=0)


class FlatWorldLayers(BaseModel):
    """level.dat 의 FlatWorldLayers (JSON 문자열로 저장됨)"""

    block_layers: List[BlockLayer] = Field(default_factory=list)
    biome_id: int = DEFAULT_BIOME_ID
    structure_options: Optional[Any] = None
    encoding_version: int = Field(gt=0)
    world_version: str

    @classmethod
    def new_void(cls, versions: "LevelVersionsData") -> "FlatWorldLayers":
        """블록 레이어가 없는 빈 평지"""
        return cls(
            encoding_version=versions.flat_world_layers.encoding_version,
            world_version=versions.flat_world_layers.world_version,
        )

    @classmethod
    def from_json(cls, text: str) -> "FlatWorldLayers":
        return cls.model_validate_json(text)

    def to_json(self) -> str:
        # null 값도 그대로 기록
        return json.dumps(self.model_dump(mode="json"), separators=(",", ":"))


class FlatWorldLayersVersions(BaseModel):
    encoding_version: int = Field(gt=0)
    world_version: str = Field(min_length=1)


class LevelVersionsData(BaseModel):
    """마인크래프트 버전에 따라 바뀌는 level.dat 의 값"""

    generator: int = Field(gt=0)
    # 숫자가 3개보다 많을 수 있으므로 semver 대신 리스트 사용
    minimum_compatible_client_version: List[int]
    world_version: int = Field(gt=0)
    inventory_version: VersionString
    storage_version: int = Field(gt=0)
    network_version: int = Field(gt=0)
    flat_world_layers: FlatWorldLayersVersions

    model_config = {"arbitrary_types_allowed": True}

    @field_validator("minimum_compatible_client_version")
    @classmethod
    def _check_client_version(cls, value: List[int]) -> List[int]:
        if len(value) != 5 or any(v < 0 for v in value):
            raise ValueError(
                f"MinimumCompatibleClientVersion 은 0 이상의 정수 5개여야 합니다: {value}"
            )
        return value

    @classmethod
    def from_level(cls, level: Dict[str, Any]) -> "LevelVersionsData":
        """
        내보낸 월드의 level.dat 에서 버전 정보를 읽습니다.

        Args:
            level: 헤더를 제외한 level.dat 의 루트 Compound

        Returns:
            LevelVersionsData 인스턴스
        """
        try:
            flat_world_layers = FlatWorldLayers.from_json(
                level[FLAT_WORLD_LAYERS_KEY].unpack()
            )
            return cls(
                generator=int(level["Generator"]),
                minimum_compatible_client_version=[
                    int(v) for v in level["MinimumCompatibleClientVersion"]
                ],
                world_version=int(level["WorldVersion"]),
                inventory_version=parse_version(level["InventoryVersion"].unpack()),
                storage_version=int(level["StorageVersion"]),
                network_version=int(level["NetworkVersion"]),
                flat_world_layers=FlatWorldLayersVersions(
                    encoding_version=flat_world_layers.encoding_version,
                    world_version=flat_world_layers.world_version,
                ),
            )
        except KeyError as e:
            raise StructureFormatError(f"level.dat 에 {e} 태그가 없습니다.") from e


def load_template_level() -> Compound:
    """내장 템플릿(크리에이티브 평지 월드)의 level.dat 루트 Compound 를 읽습니다."""
    with open(TEMPLATE_LEVEL, encoding="utf-8") as f:
        return parse_nbt(f.read())


def generate_level_dat(
    level_name: str,
    flat_world_layers: FlatWorldLayers,
    versions: LevelVersionsData,
) -> Compound:
    """
    스트럭처 배치용 크리에이티브 평지 월드의 level.dat 을 생성합니다.

    템플릿을 읽은 뒤 이름, 평지 레이어, 마지막 플레이 시각과 버전 태그만 덮어씁니다.

    Args:
        level_name: 월드 이름
        flat_world_layers: 평지 레이어 설정
        versions: 데이터베이스에 저장된 버전 정보

    Returns:
        level.dat 루트 Compound (헤더 제외)
    """
    level = load_template_level()
    client_version = ListTag[Int](
        [Int(v) for v in versions.minimum_compatible_client_version]
    )
    level.update(
        {
            "LevelName": String(level_name),
            FLAT_WORLD_LAYERS_KEY: String(flat_world_layers.to_json()),
            "LastPlayed": Long(int(time.time())),
            "Generator": Int(versions.generator),
            "MinimumCompatibleClientVersion": client_version,
            "lastOpenedWithVersion": ListTag[Int](list(client_version)),
            "WorldVersion": Int(versions.world_version),
            "InventoryVersion": String(str(versions.inventory_version)),
            "StorageVersion": Int(versions.storage_version),
            "NetworkVersion": Int(versions.network_version),
        }
    )
    return level


class LevelVersions:
    """
    데이터베이스에 저장된 LevelVersionsData 에 접근합니다.

    Args:
        db: DiscordDB 인스턴스
        on_missing: 데이터가 없을 때 호출되는 코루틴 함수 (데이터 요청 전송)
    """

    def __init__(
        self, db, on_missing: Optional[Callable[[], Awaitable[None]]] = None
    ):
        self.db = db
        self.on_missing = on_missing

    async def get(self) -> LevelVersionsData:
        data = await self.db.find(DATABASE_NAME, LevelVersionsData)
        if data is None:
            logger.warning("LevelVersions 데이터가 없어 데이터 요청을 보냅니다.")
            if self.on_missing is not None:
                await self.on_missing()
            raise LevelVersionsUnavailableError("LevelVersionsData is not present")
        return data

    async def update_from_level(self, level: Dict[str, Any]) -> LevelVersionsData:
        data = LevelVersionsData.from_level(level)
        self.db.put(DATABASE_NAME, data)
        await self.db.save(DATABASE_NAME)
        logger.info(f"LevelVersions 갱신: {data.model_dump(mode='json')}")
        return data
