from .behavior import Behavior, StructureMetadata
from .extensions import MCExtension
from .identifier import Identifier
from .level import FlatWorldLayers, LevelVersions, LevelVersionsData
from .manifest import Manifest, ManifestModuleType
from .nbt_io import read_nbt, read_nbt_file, write_nbt
from .structure import Block, Coordinate, Layers, Size, Structure
from .target_type import TargetType, structures_from_files
from .world import World

__all__ = [
    "Behavior",
    "Block",
    "Coordinate",
    "FlatWorldLayers",
    "Identifier",
    "Layers",
    "LevelVersions",
    "LevelVersionsData",
    "MCExtension",
    "Manifest",
    "ManifestModuleType",
    "Size",
    "Structure",
    "StructureMetadata",
    "TargetType",
    "World",
    "structures_from_files",
    "read_nbt",
    "read_nbt_file",
    "write_nbt",
]
