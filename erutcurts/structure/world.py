import json
import logging
import math
import os
import shutil
from typing import Dict, List, Optional

from semver import Version

from ..archive import create_temp_dir, delete_quietly, safe_filename, zip_directory
from ..config import FIRST_LOAD_FUNCTION
from .behavior import Behavior, StructureMetadata
from .extensions import MCExtension
from .identifier import Identifier
from .level import FlatWorldLayers, LevelVersionsData, generate_level_dat
from .nbt_io import write_nbt
from .structure import Coordinate
from .versions import version_to_array

logger = logging.getLogger(__name__)

LEVEL_FILENAME = MCExtension.DAT.filename("level")
WORLD_ICON_FILENAME = "world_icon.jpeg"
WORLD_BEHAVIOR_PACKS_FILENAME = "world_behavior_packs.json"
BEHAVIOR_PACKS_DIR_NAME = "behavior_packs"
FUNCTIONS_DIR_NAME = "functions"
TICK_FILENAME = "tick.json"
FIRST_LOAD_FUNCTION_NAME = "internal/first_load"
RELOAD_ALL_FUNCTION_NAME = "reload_all_structures"
RELOAD_DIR_NAME = "reload"

# 새 execute 문법을 사용하는 함수가 포함되므로 이 버전 이상이 필요
NEW_EXECUTE_MIN_ENGINE_VERSION = Version.parse("1.19.50")
STRUCTURES_GAP = 3
STRUCTURES_Y_COORDINATE = 0


def arrange_structures(metadata: List[StructureMetadata]) -> List[StructureMetadata]:
    """
    스트럭처를 원점 주변의 정사각형 격자에 배치합니다.

    식별자 문자열 순으로 x 방향을 먼저, 그 안에서 z 방향으로 채웁니다.

    Args:
        metadata: 좌표가 없는 스트럭처 메타데이터 목록

    Returns:
        coordinate 가 채워진 메타데이터 목록
    """
    spacing = max(max(m.size.x, m.size.z) for m in metadata) + STRUCTURES_GAP
    per_row = math.ceil(math.sqrt(len(metadata)))
    edge = (per_row // 2) * -spacing

    ordered = sorted(metadata, key=lambda m: str(m.identifier))
    arranged = []
    for i, item in enumerate(ordered):
        x = edge + (i // per_row) * spacing
        z = edge + (i % per_row) * spacing
        coordinate = Coordinate(x=x, y=STRUCTURES_Y_COORDINATE, z=z)
        arranged.append(item.model_copy(update={"coordinate": coordinate}))
    return arranged


def load_command(metadata: StructureMetadata) -> str:
    coordinate = metadata.coordinate
    return (
        f"structure load {metadata.identifier} "
        f"{coordinate.x} {coordinate.y} {coordinate.z}"
    )


class World:
    """
    스트럭처가 배치된 평지 월드

    월드를 처음 열면 tick 함수가 reload_all_structures 를 한 번 실행하여
    모든 스트럭처를 격자 좌표에 불러옵니다.

    Args:
        structures: 식별자 -> .mcstructure 파일 경로
        level_versions: level.dat 생성에 사용할 버전 정보
        world_name: 월드 이름 (기본값: 첫 번째 식별자)
        world_icon: 월드 아이콘 (.jpeg, 기본값: 없음)
    """

    def __init__(
        self,
        structures: Dict[Identifier, str],
        level_versions: LevelVersionsData,
        world_name: Optional[str] = None,
        world_icon: Optional[str] = None,
    ):
        if not structures:
            raise ValueError("structures must not be empty")

        self.world_name = (
            world_name
            if world_name is not None
            else next(iter(structures)).display_name()
        )
        self.world_icon = world_icon

        self.behavior = Behavior(structures)
        min_engine_version = self.behavior.manifest.header.min_engine_version
        if min_engine_version < NEW_EXECUTE_MIN_ENGINE_VERSION:
            self.behavior.manifest = self.behavior.manifest.with_min_engine_version(
                NEW_EXECUTE_MIN_ENGINE_VERSION
            )
        self.behavior.structure_metadata = arrange_structures(
            self.behavior.structure_metadata
        )

        self.level = generate_level_dat(
            f"Structures: {self.world_name}",
            FlatWorldLayers.new_void(level_versions),
            level_versions,
        )
        self.storage_version = level_versions.storage_version
        logger.info(
            f"월드 생성: {self.world_name} (스트럭처 {len(structures)}개)"
        )

        self.structure_functions = {
            m.identifier: load_command(m) for m in self.behavior.structure_metadata
        }
        self.reload_structures_function = "\n".join(
            f"function {RELOAD_DIR_NAME}/{m.identifier.function_path()}"
            for m in self.behavior.structure_metadata
        )

    def world_behavior_packs(self) -> List[dict]:
        header = self.behavior.manifest.header
        return [{"pack_id": str(header.uuid), "version": version_to_array(header.version)}]

    def make_dir(self, parent: str) -> str:
        """
        월드 디렉토리를 parent 아래에 생성합니다.

        Returns:
            생성된 월드 디렉토리 경로
        """
        world_dir = os.path.join(parent, safe_filename(self.world_name))
        os.makedirs(world_dir)

        with open(os.path.join(world_dir, LEVEL_FILENAME), "wb") as f:
            f.write(write_nbt(self.level, header_version=self.storage_version))
        if self.world_icon is not None:
            shutil.copy(self.world_icon, os.path.join(world_dir, WORLD_ICON_FILENAME))
        with open(
            os.path.join(world_dir, WORLD_BEHAVIOR_PACKS_FILENAME), "w", encoding="utf-8"
        ) as f:
            json.dump(self.world_behavior_packs(), f, indent=2)

        behavior_packs_dir = os.path.join(world_dir, BEHAVIOR_PACKS_DIR_NAME)
        os.makedirs(behavior_packs_dir)
        behavior_dir = self.behavior.make_dir(behavior_packs_dir)

        functions_dir = os.path.join(behavior_dir, FUNCTIONS_DIR_NAME)
        os.makedirs(functions_dir)
        with open(os.path.join(functions_dir, TICK_FILENAME), "w", encoding="utf-8") as f:
            json.dump({"values": [FIRST_LOAD_FUNCTION_NAME]}, f, indent=2)

        first_load = os.path.join(
            functions_dir, *MCExtension.MCFUNCTION.filename(FIRST_LOAD_FUNCTION_NAME).split("/")
        )
        os.makedirs(os.path.dirname(first_load), exist_ok=True)
        shutil.copy(FIRST_LOAD_FUNCTION, first_load)

        with open(
            os.path.join(functions_dir, MCExtension.MCFUNCTION.filename(RELOAD_ALL_FUNCTION_NAME)),
            "w",
            encoding="utf-8",
        ) as f:
            f.write(self.reload_structures_function)

        reload_dir = os.path.join(functions_dir, RELOAD_DIR_NAME)
        for identifier, command in self.structure_functions.items():
            target = os.path.join(
                reload_dir, *identifier.to_path(MCExtension.MCFUNCTION.value).split("/")
            )
            os.makedirs(os.path.dirname(target), exist_ok=True)
            with open(target, "w", encoding="utf-8") as f:
                f.write(command)

        return world_dir

    @classmethod
    def generate(
        cls,
        structures: Dict[Identifier, str],
        level_versions: LevelVersionsData,
        world_name: Optional[str] = None,
        world_icon: Optional[str] = None,
    ) -> str:
        """
        .mcworld 파일을 생성합니다.

        Returns:
            새 임시 디렉토리 안에 생성된 .mcworld 파일 경로
        """
        temp_dir = create_temp_dir()
        try:
            world_dir = cls(structures, level_versions, world_name, world_icon).make_dir(
                temp_dir
            )
            world_path = zip_directory(
                os.path.join(
                    temp_dir, MCExtension.MCWORLD.filename(os.path.basename(world_dir))
                ),
                world_dir,
            )
        except Exception:
            delete_quietly(temp_dir)
            raise
        delete_quietly(world_dir)
        return world_path
