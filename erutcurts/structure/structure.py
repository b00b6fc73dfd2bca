"""
.mcstructure (베드락 에디션 스트럭처 파일) 모델

NBT 레이아웃:
    format_version: Int
    size: List[Int] (x, y, z)
    structure:
        block_indices: List[List[Int]] (레이어 2개, -1 은 빈 공간)
        entities: List[Compound]
        palette.default.block_palette: List[Compound] (name, states, version)
        palette.default.block_position_data: Compound ("<flat index>" -> 블록 데이터)
    structure_world_origin: List[Int]
"""

import logging
import re
import struct
from typing import Any, Dict, Iterator, List, Optional, Sequence, Set, Tuple

from pydantic import BaseModel
from semver import Version

from ..errors import StructureFormatError
from .nbt_io import read_nbt_file

logger = logging.getLogger(__name__)

VOID_INDEX = -1
BLOCK_VERSION_PATTERN = re.compile(r"^(?:\d+\.){3}\d+$")


class Coordinate(BaseModel):
    x: int
    y: int
    z: int

    model_config = {"frozen": True}

    @classmethod
    def from_list(cls, values: Sequence[int]) -> "Coordinate":
        if len(values) != 3:
            raise StructureFormatError(f"좌표는 3개의 값이어야 합니다: {list(values)}")
        return cls(x=int(values[0]), y=int(values[1]), z=int(values[2]))

    def as_tuple(self) -> Tuple[int, int, int]:
        return self.x, self.y, self.z

    def __lt__(self, other: "Coordinate") -> bool:
        return self.as_tuple() < other.as_tuple()


class Size(BaseModel):
    x: int
    y: int
    z: int

    model_config = {"frozen": True}

    def model_post_init(self, __context) -> None:
        if self.x <= 0 or self.y <= 0 or self.z <= 0:
            raise ValueError(f"크기는 모두 양수여야 합니다: {self.as_tuple()}")

    @classmethod
    def from_list(cls, values: Sequence[int]) -> "Size":
        if len(values) != 3 or any(int(value) <= 0 for value in values):
            raise StructureFormatError(f"올바르지 않은 크기입니다: {list(values)}")
        return cls(x=int(values[0]), y=int(values[1]), z=int(values[2]))

    def as_tuple(self) -> Tuple[int, int, int]:
        return self.x, self.y, self.z

    def volume(self) -> int:
        return self.x * self.y * self.z

    def coordinates(self) -> Iterator[Coordinate]:
        """x, y, z 순서로 모든 좌표를 나열합니다."""
        for x in range(self.x):
            for y in range(self.y):
                for z in range(self.z):
                    yield Coordinate(x=x, y=y, z=z)

    def flat_index(self, coordinate: Coordinate) -> int:
        return coordinate.x * self.y * self.z + coordinate.y * self.z + coordinate.z


def decode_block_version(version: int) -> str:
    """
    팔레트의 Int 버전 값을 `a.b.c.d` 문자열로 변환합니다.

    빅 엔디언 4바이트를 각각 부호 없는 정수로 해석합니다. (17959425 -> "1.18.10.1")
    """
    return ".".join(str(b) for b in struct.pack(">i", version))


class Block(BaseModel):
    name: str
    states: Any
    # 1.19.60.24 처럼 4개의 정수이므로 semver 로 다룰 수 없음
    version: str
    block_entity_data: Optional[Any] = None
    tick_delays: Tuple[int, ...] = ()

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    def model_post_init(self, __context) -> None:
        if not self.name.strip():
            raise ValueError("블록 이름이 비어 있습니다.")
        if self.block_entity_data is not None and len(self.block_entity_data) == 0:
            raise ValueError("block_entity_data 가 비어 있습니다.")
        if any(delay < 0 for delay in self.tick_delays):
            raise ValueError(f"tick_delay 는 음수일 수 없습니다: {self.tick_delays}")
        if not BLOCK_VERSION_PATTERN.match(self.version):
            raise ValueError(f"올바르지 않은 블록 버전입니다: {self.version}")

    @classmethod
    def from_palette(cls, tag: Dict[str, Any]) -> "Block":
        try:
            return cls(
                name=tag["name"].unpack(),
                states=tag["states"],
                version=decode_block_version(int(tag["version"])),
            )
        except KeyError as e:
            raise StructureFormatError(f"블록 팔레트에 {e} 가 없습니다.") from e

    def with_position_data(self, position_data: Dict[str, Any]) -> "Block":
        """block_position_data 를 반영한 블록을 반환합니다."""
        block_entity_data = position_data.get("block_entity_data")
        tick_delays = tuple(
            int(tick["tick_delay"])
            for tick in position_data.get("tick_queue_data", [])
            if "tick_delay" in tick
        )
        return self.model_copy(
            update={
                "block_entity_data": block_entity_data or None,
                "tick_delays": tick_delays,
            }
        )

    def engine_version(self) -> Version:
        """블록 버전에서 마지막 숫자를 제외한 semver"""
        return Version.parse(self.version.rsplit(".", 1)[0])


class Layers(BaseModel):
    primary: Optional[Block] = None
    secondary: Optional[Block] = None

    model_config = {"frozen": True}

    def is_void(self) -> bool:
        return self.primary is None and self.secondary is None


class Structure:
    """
    .mcstructure 파일 하나를 나타냅니다.

    블록은 위치마다 객체를 만들지 않고 팔레트 인덱스로 보관합니다.
    """

    def __init__(
        self,
        format_version: int,
        size: Size,
        palette: List[Block],
        primary_indices: List[int],
        secondary_indices: List[int],
        position_blocks: Dict[int, Block],
        entities: List[Any],
        structure_world_origin: Coordinate,
    ):
        if format_version <= 0:
            raise StructureFormatError(f"올바르지 않은 format_version: {format_version}")
        volume = size.volume()
        if len(primary_indices) != volume or len(secondary_indices) != volume:
            raise StructureFormatError(
                f"block_indices 길이가 크기와 맞지 않습니다: "
                f"{len(primary_indices)}+{len(secondary_indices)} != {volume * 2}"
            )
        for index in set(primary_indices) | set(secondary_indices):
            if index != VOID_INDEX and not 0 <= index < len(palette):
                raise StructureFormatError(f"팔레트 범위를 벗어난 인덱스: {index}")

        self.format_version = format_version
        self.size = size
        self.palette = palette
        self.primary_indices = primary_indices
        self.secondary_indices = secondary_indices
        self.position_blocks = position_blocks
        self.entities = entities
        self.structure_world_origin = structure_world_origin

    @classmethod
    def from_nbt(cls, root: Dict[str, Any]) -> "Structure":
        """
        루트 Compound 에서 스트럭처를 생성합니다.

        Args:
            root: read_nbt 로 읽은 루트 태그

        Returns:
            Structure 인스턴스
        """
        try:
            structure = root["structure"]
            default_palette = structure["palette"]["default"]
            palette = [
                Block.from_palette(tag) for tag in default_palette["block_palette"]
            ]
            layers = [[int(i) for i in layer] for layer in structure["block_indices"]]
            size = Size.from_list(root["size"])
            format_version = int(root["format_version"])
            origin = Coordinate.from_list(root["structure_world_origin"])
        except KeyError as e:
            raise StructureFormatError(f"스트럭처에 {e} 태그가 없습니다.") from e

        if len(layers) != 2:
            raise StructureFormatError(f"레이어 수가 2가 아닙니다: {len(layers)}")
        primary_indices, secondary_indices = layers

        position_blocks: Dict[int, Block] = {}
        for key, position_data in default_palette.get(
            "block_position_data", {}
        ).items():
            index = int(key)
            # 빈 공간에는 block_position_data 가 존재하지 않음
            if not 0 <= index < len(primary_indices):
                continue
            palette_index = primary_indices[index]
            if palette_index == VOID_INDEX or palette_index >= len(palette):
                continue
            position_blocks[index] = palette[palette_index].with_position_data(
                position_data
            )

        return cls(
            format_version=format_version,
            size=size,
            palette=palette,
            primary_indices=primary_indices,
            secondary_indices=secondary_indices,
            position_blocks=position_blocks,
            entities=list(structure.get("entities", [])),
            structure_world_origin=origin,
        )

    @classmethod
    def from_file(cls, path: str) -> "Structure":
        logger.debug(f"스트럭처 파일 읽기: {path}")
        return cls.from_nbt(read_nbt_file(path))

    def _block(self, palette_index: int) -> Optional[Block]:
        if palette_index == VOID_INDEX:
            return None
        return self.palette[palette_index]

    def layers_at(self, coordinate: Coordinate) -> Layers:
        index = self.size.flat_index(coordinate)
        primary = self.position_blocks.get(index) or self._block(
            self.primary_indices[index]
        )
        return Layers(
            primary=primary, secondary=self._block(self.secondary_indices[index])
        )

    def used_blocks(self) -> List[Block]:
        """빈 공간을 제외하고 실제로 배치된 팔레트 블록 목록"""
        used: Set[int] = set(self.primary_indices) | set(self.secondary_indices)
        used.discard(VOID_INDEX)
        return [self.palette[index] for index in sorted(used)]

    def min_engine_version(self) -> Optional[Version]:
        """
        배치된 블록 버전 중 가장 높은 버전을 반환합니다.

        Returns:
            모든 위치가 빈 공간이면 None
        """
        versions = {block.engine_version() for block in self.used_blocks()}
        if not versions:
            return None
        return max(versions)
