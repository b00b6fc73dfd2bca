import json
import logging
import os
import shutil
from typing import Dict, List, Optional

from pydantic import BaseModel
from semver import Version

from ..archive import create_temp_dir, delete_quietly, safe_filename, zip_directory
from ..config import BOT_NAME, BOT_VERSION, DEFAULT_PACK_ICON
from .extensions import MCExtension
from .identifier import Identifier
from .manifest import (
    GeneratedWith,
    Manifest,
    ManifestHeader,
    ManifestMetadata,
    ManifestModule,
    ManifestModuleType,
)
from .structure import Coordinate, Size, Structure
from .versions import LOWEST_GAME_VERSION, VersionString

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "manifest.json"
PACK_ICON_FILENAME = "pack_icon.png"
METADATA_FILENAME = "metadata.json"
STRUCTURES_DIR_NAME = "structures"


class StructureMetadata(BaseModel):
    """metadata.json 에 기록되는 스트럭처 정보"""

    identifier: Identifier
    min_engine_version: VersionString
    size: Size
    coordinate: Optional[Coordinate] = None

    model_config = {"arbitrary_types_allowed": True}

    @classmethod
    def from_structure(
        cls, identifier: Identifier, structure: Structure
    ) -> "StructureMetadata":
        return cls(
            identifier=identifier,
            # 모든 위치가 빈 공간이면 가장 낮은 버전을 사용
            min_engine_version=structure.min_engine_version() or LOWEST_GAME_VERSION,
            size=structure.size,
        )

    def to_dict(self) -> dict:
        data = {
            "identifier": str(self.identifier),
            "min_engine_version": str(self.min_engine_version),
            "size": self.size.model_dump(),
        }
        if self.coordinate is not None:
            data["coordinate"] = self.coordinate.model_dump()
        return data


def metadata_to_json(metadata: List[StructureMetadata]) -> str:
    return json.dumps(
        [item.to_dict() for item in metadata], ensure_ascii=False, indent=2
    )


class Behavior:
    """
    스트럭처 파일을 담은 비헤이비어 팩

    Args:
        structures: 식별자 -> .mcstructure 파일 경로
        pack_name: 팩 이름 (기본값: 첫 번째 식별자)
        pack_icon: 팩 아이콘 경로 (기본값: 내장 아이콘)
    """

    def __init__(
        self,
        structures: Dict[Identifier, str],
        pack_name: Optional[str] = None,
        pack_icon: Optional[str] = None,
    ):
        if not structures:
            raise ValueError("structures must not be empty")

        self.structures = dict(structures)
        self.pack_name = (
            pack_name if pack_name is not None else next(iter(structures)).display_name()
        )
        self.pack_icon = pack_icon if pack_icon is not None else DEFAULT_PACK_ICON

        self.structure_metadata = [
            StructureMetadata.from_structure(identifier, Structure.from_file(path))
            for identifier, path in self.structures.items()
        ]

        description = "Structures: {}\n*Generated with {}".format(
            ", ".join(str(m.identifier) for m in self.structure_metadata), BOT_NAME
        )
        min_engine_version = max(
            [m.min_engine_version for m in self.structure_metadata]
            + [LOWEST_GAME_VERSION]
        )

        self.manifest = Manifest(
            header=ManifestHeader(
                type=ManifestModuleType.DATA,
                name=f"Structures: {self.pack_name}",
                description=description,
                min_engine_version=min_engine_version,
            ),
            modules=[ManifestModule(type=ManifestModuleType.DATA)],
            metadata=ManifestMetadata(
                generated_with=[
                    GeneratedWith(name=BOT_NAME, versions=[Version.parse(BOT_VERSION)])
                ]
            ),
        )
        logger.info(
            f"비헤이비어 팩 생성: {self.pack_name} (스트럭처 {len(self.structures)}개, "
            f"min_engine_version={min_engine_version})"
        )

    def make_dir(self, parent: str) -> str:
        """
        팩 디렉토리를 parent 아래에 생성합니다.

        Returns:
            생성된 팩 디렉토리 경로
        """
        pack_dir = os.path.join(parent, safe_filename(self.pack_name))
        os.makedirs(pack_dir)

        with open(os.path.join(pack_dir, MANIFEST_FILENAME), "w", encoding="utf-8") as f:
            f.write(self.manifest.to_json())
        shutil.copy(self.pack_icon, os.path.join(pack_dir, PACK_ICON_FILENAME))
        with open(os.path.join(pack_dir, METADATA_FILENAME), "w", encoding="utf-8") as f:
            f.write(metadata_to_json(self.structure_metadata))

        structures_dir = os.path.join(pack_dir, STRUCTURES_DIR_NAME)
        for identifier, path in self.structures.items():
            target = os.path.join(structures_dir, *identifier.to_path().split("/"))
            os.makedirs(os.path.dirname(target), exist_ok=True)
            shutil.copy(path, target)

        return pack_dir

    @classmethod
    def generate(
        cls,
        structures: Dict[Identifier, str],
        pack_name: Optional[str] = None,
        pack_icon: Optional[str] = None,
    ) -> str:
        """
        .mcpack 파일을 생성합니다.

        Returns:
            새 임시 디렉토리 안에 생성된 .mcpack 파일 경로
        """
        temp_dir = create_temp_dir()
        try:
            pack_dir = cls(structures, pack_name, pack_icon).make_dir(temp_dir)
            pack_path = zip_directory(
                os.path.join(
                    temp_dir, MCExtension.MCPACK.filename(os.path.basename(pack_dir))
                ),
                pack_dir,
            )
        except Exception:
            delete_quietly(temp_dir)
            raise
        delete_quietly(pack_dir)
        return pack_path
