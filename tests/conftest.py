import json

import pytest
from nbtlib.tag import Compound, Int, List as ListTag, String

from erutcurts.structure import write_nbt
from erutcurts.structure.level import LevelVersionsData

# 1.18.10.1
STONE_VERSION = 17959425
# 1.20.30.2
CHERRY_VERSION = 18095618


def palette_entry(name: str, version: int) -> Compound:
    return Compound(
        {"name": String(name), "states": Compound({}), "version": Int(version)}
    )


def structure_nbt(
    size=(1, 1, 1),
    palette=(("minecraft:stone", STONE_VERSION),),
    primary=None,
    secondary=None,
    position_data=None,
) -> Compound:
    volume = size[0] * size[1] * size[2]
    primary = [0] * volume if primary is None else primary
    secondary = [-1] * volume if secondary is None else secondary
    return Compound(
        {
            "format_version": Int(1),
            "size": ListTag[Int]([Int(v) for v in size]),
            "structure": Compound(
                {
                    "block_indices": ListTag[ListTag[Int]](
                        [
                            ListTag[Int]([Int(i) for i in primary]),
                            ListTag[Int]([Int(i) for i in secondary]),
                        ]
                    ),
                    "entities": ListTag[Compound]([]),
                    "palette": Compound(
                        {
                            "default": Compound(
                                {
                                    "block_palette": ListTag[Compound](
                                        [palette_entry(n, v) for n, v in palette]
                                    ),
                                    "block_position_data": Compound(position_data or {}),
                                }
                            )
                        }
                    ),
                }
            ),
            "structure_world_origin": ListTag[Int]([Int(0), Int(0), Int(0)]),
        }
    )


@pytest.fixture
def temp_root(tmp_path, monkeypatch):
    """생성된 팩과 월드가 테스트 디렉토리 안에 만들어지도록 임시 루트를 교체"""
    root = tmp_path / "temp-root"
    monkeypatch.setattr("erutcurts.archive.TEMP_DIR", str(root))
    return root


@pytest.fixture
def write_structure(tmp_path):
    def _write(name: str = "house.mcstructure", **kwargs) -> str:
        path = tmp_path / name
        path.write_bytes(write_nbt(structure_nbt(**kwargs)))
        return str(path)

    return _write


@pytest.fixture
def level_versions() -> LevelVersionsData:
    return LevelVersionsData(
        generator=2,
        minimum_compatible_client_version=[1, 20, 30, 0, 0],
        world_version=1,
        inventory_version="1.20.30",
        storage_version=10,
        network_version=618,
        flat_world_layers={"encoding_version": 6, "world_version": "version.post_1_18"},
    )


def exported_level(**overrides) -> Compound:
    """관리자가 내보낸 평지 월드의 level.dat 에 해당하는 태그"""
    tags = {
        "LevelName": String("flat"),
        "Generator": Int(2),
        "MinimumCompatibleClientVersion": ListTag[Int](
            [Int(1), Int(20), Int(30), Int(0), Int(0)]
        ),
        "WorldVersion": Int(1),
        "InventoryVersion": String("1.20.30"),
        "StorageVersion": Int(10),
        "NetworkVersion": Int(618),
        "FlatWorldLayers": String(
            json.dumps(
                {
                    "biome_id": 1,
                    "block_layers": [{"block_name": "minecraft:bedrock", "count": 1}],
                    "encoding_version": 6,
                    "structure_options": None,
                    "world_version": "version.post_1_18",
                }
            )
        ),
    }
    tags.update(overrides)
    return Compound(tags)
