"""
manifest.json (format_version 2) 모델

직렬화 규칙:
    - 키는 snake_case
    - None 값과 빈 컬렉션은 생략
    - 버전은 프리릴리스/빌드가 없으면 [x, y, z], 있으면 문자열
"""

import json
import posixpath
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator
from semver import Version

from ..errors import ManifestError
from .versions import LOWEST_GAME_VERSION, VersionArray, VersionString, parse_version

DEFAULT_VERSION = Version.parse("1.0.0")
FORMAT_VERSION = 2


class ManifestModuleType(str, Enum):
    DATA = "data"  # 비헤이비어 팩
    INTERFACE = "interface"
    RESOURCES = "resources"  # 리소스 팩
    SCRIPT = "script"  # GameTest Framework
    SKIN_PACK = "skin_pack"
    WORLD_TEMPLATE = "world_template"

    def compatible_types(self) -> FrozenSet["ManifestModuleType"]:
        """같은 매니페스트에 함께 존재할 수 있는 모듈 타입"""
        return _COMPATIBLE_TYPES[self]


_BEHAVIOR_TYPES = frozenset(
    {ManifestModuleType.DATA, ManifestModuleType.INTERFACE, ManifestModuleType.SCRIPT}
)
_COMPATIBLE_TYPES = {
    ManifestModuleType.DATA: _BEHAVIOR_TYPES,
    ManifestModuleType.INTERFACE: _BEHAVIOR_TYPES,
    ManifestModuleType.SCRIPT: _BEHAVIOR_TYPES,
    ManifestModuleType.RESOURCES: frozenset({ManifestModuleType.RESOURCES}),
    ManifestModuleType.SKIN_PACK: frozenset({ManifestModuleType.SKIN_PACK}),
    ManifestModuleType.WORLD_TEMPLATE: frozenset({ManifestModuleType.WORLD_TEMPLATE}),
}


class ScriptLanguage(str, Enum):
    JAVASCRIPT = "JavaScript"

    @property
    def extension(self) -> str:
        return {ScriptLanguage.JAVASCRIPT: "js"}[self]


class PackScope(str, Enum):
    GLOBAL = "global"
    WORLD = "world"


class ManifestCapability(str, Enum):
    CHEMISTRY = "chemistry"
    RAYTRACED = "raytraced"
    SCRIPT_EVAL = "script_eval"
    EDITOR_EXTENSION = "editorExtension"


class _ManifestPart(BaseModel):
    model_config = {"arbitrary_types_allowed": True, "use_enum_values": False}


class ManifestModule(_ManifestPart):
    type: ManifestModuleType
    description: Optional[str] = None
    uuid: UUID = Field(default_factory=uuid4)
    version: VersionArray = DEFAULT_VERSION
    entry: Optional[str] = None
    language: Optional[ScriptLanguage] = None

    @model_validator(mode="after")
    def _check_script(self) -> "ManifestModule":
        if self.type == ManifestModuleType.SCRIPT:
            if self.entry is None or self.language is None:
                raise ManifestError("script 모듈에는 entry 와 language 가 필요합니다.")
            if posixpath.dirname(self.entry) != "scripts":
                raise ManifestError(f"entry 는 scripts/ 아래에 있어야 합니다: {self.entry}")
            if not self.entry.endswith(f".{self.language.extension}"):
                raise ManifestError(
                    f"entry 확장자가 {self.language.value} 와 맞지 않습니다: {self.entry}"
                )
        elif self.entry is not None or self.language is not None:
            raise ManifestError(f"{self.type.value} 모듈은 entry/language 를 가질 수 없습니다.")
        return self


class ManifestHeader(_ManifestPart):
    # 모듈 타입별 검증에만 사용되며 JSON 에는 기록되지 않음
    type: ManifestModuleType = Field(exclude=True)
    name: str
    description: Optional[str] = None
    uuid: UUID = Field(default_factory=uuid4)
    version: VersionArray = DEFAULT_VERSION
    min_engine_version: Optional[VersionArray] = None
    platform_locked: Optional[bool] = None
    pack_scope: Optional[PackScope] = None
    base_game_version: Optional[VersionArray] = None
    lock_template_options: Optional[bool] = None

    @model_validator(mode="after")
    def _check_type_constraints(self) -> "ManifestHeader":
        if not self.name.strip():
            raise ManifestError("header.name 이 비어 있습니다.")

        def forbid(*fields: str) -> None:
            for field in fields:
                if getattr(self, field) is not None:
                    raise ManifestError(
                        f"{self.type.value} 팩의 header 에는 {field} 를 지정할 수 없습니다."
                    )

        if self.type == ManifestModuleType.RESOURCES:
            if self.min_engine_version is None:
                raise ManifestError("resources 팩에는 min_engine_version 이 필요합니다.")
            forbid("base_game_version", "lock_template_options")
        elif self.type in _BEHAVIOR_TYPES:
            if self.min_engine_version is None:
                raise ManifestError(f"{self.type.value} 팩에는 min_engine_version 이 필요합니다.")
            if self.min_engine_version < LOWEST_GAME_VERSION:
                raise ManifestError(
                    f"min_engine_version 은 {LOWEST_GAME_VERSION} 이상이어야 합니다: "
                    f"{self.min_engine_version}"
                )
            forbid("pack_scope", "base_game_version", "lock_template_options")
        elif self.type == ManifestModuleType.SKIN_PACK:
            forbid(
                "min_engine_version",
                "platform_locked",
                "pack_scope",
                "base_game_version",
                "lock_template_options",
            )
        elif self.type == ManifestModuleType.WORLD_TEMPLATE:
            forbid("min_engine_version", "platform_locked", "pack_scope")
            if self.base_game_version is None or self.lock_template_options is None:
                raise ManifestError(
                    "world_template 팩에는 base_game_version 과 lock_template_options 가 필요합니다."
                )
            if self.base_game_version < LOWEST_GAME_VERSION:
                raise ManifestError(
                    f"base_game_version 은 {LOWEST_GAME_VERSION} 이상이어야 합니다."
                )
        return self


class ManifestDependency(_ManifestPart):
    uuid: Optional[UUID] = None
    module_name: Optional[str] = None
    version: VersionArray

    @model_validator(mode="after")
    def _check_target(self) -> "ManifestDependency":
        if (self.uuid is None) == (self.module_name is None):
            raise ManifestError("uuid 와 module_name 중 정확히 하나만 지정해야 합니다.")
        if self.module_name is not None and not self.module_name.strip():
            raise ManifestError("module_name 이 비어 있습니다.")
        return self

    @classmethod
    def from_module(cls, module: ManifestModule) -> "ManifestDependency":
        return cls(uuid=module.uuid, version=module.version)

    @classmethod
    def from_manifest(cls, manifest: "Manifest") -> List["ManifestDependency"]:
        """매니페스트의 모든 모듈에 대한 의존성 목록"""
        return [cls.from_module(module) for module in manifest.modules]


class GeneratedWith(_ManifestPart):
    name: str
    versions: List[VersionString]

    @model_validator(mode="after")
    def _check_not_empty(self) -> "GeneratedWith":
        if not self.name.strip() or not self.versions:
            raise ManifestError("generated_with 에는 이름과 버전이 필요합니다.")
        return self


class ManifestMetadata(_ManifestPart):
    authors: List[str] = Field(default_factory=list)
    url: Optional[str] = None
    license: Optional[str] = None
    generated_with: List[GeneratedWith] = Field(default_factory=list)

    @field_validator("generated_with", mode="before")
    @classmethod
    def _parse_generated_with(cls, value: Any) -> Any:
        # JSON 에서는 {"이름": ["1.0.0"]} 형태
        if isinstance(value, dict):
            return [
                {"name": name, "versions": [parse_version(v) for v in versions]}
                for name, versions in value.items()
            ]
        return value

    @field_serializer("generated_with")
    def _serialize_generated_with(self, value: List[GeneratedWith]) -> Dict[str, List[str]]:
        return {item.name: [str(v) for v in item.versions] for item in value}

    @model_validator(mode="after")
    def _check_strings(self) -> "ManifestMetadata":
        if any(not author.strip() for author in self.authors):
            raise ManifestError("authors 에 빈 문자열이 있습니다.")
        if self.license is not None and not self.license.strip():
            raise ManifestError("license 가 비어 있습니다.")
        return self


class ManifestSubpack(_ManifestPart):
    folder_name: str
    name: str
    memory_tier: Optional[int] = None

    @model_validator(mode="after")
    def _check_values(self) -> "ManifestSubpack":
        parts = [p for p in self.folder_name.split("/") if p]
        if len(parts) != 1:
            raise ManifestError(f"folder_name 은 단일 경로여야 합니다: {self.folder_name}")
        if not self.name.strip():
            raise ManifestError("subpack name 이 비어 있습니다.")
        if self.memory_tier is not None and self.memory_tier < 0:
            raise ManifestError("memory_tier 는 0 이상이어야 합니다.")
        return self


def _drop_empty(value: Any) -> Any:
    """None 과 빈 컬렉션을 재귀적으로 제거합니다."""
    if isinstance(value, dict):
        cleaned = {k: _drop_empty(v) for k, v in value.items()}
        return {k: v for k, v in cleaned.items() if v is not None and v != [] and v != {}}
    if isinstance(value, list):
        return [_drop_empty(v) for v in value]
    return value


class Manifest(_ManifestPart):
    format_version: int = FORMAT_VERSION
    header: ManifestHeader
    modules: List[ManifestModule]
    dependencies: List[ManifestDependency] = Field(default_factory=list)
    capabilities: List[ManifestCapability] = Field(default_factory=list)
    metadata: ManifestMetadata = Field(default_factory=ManifestMetadata)
    subpacks: List[ManifestSubpack] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_structure(self) -> "Manifest":
        if self.format_version != FORMAT_VERSION:
            raise ManifestError("format_version 2 만 지원합니다.")
        if not self.modules:
            raise ManifestError("modules 가 비어 있습니다.")

        module_types = {module.type for module in self.modules}
        if not all(module_types <= t.compatible_types() for t in module_types):
            raise ManifestError(
                f"호환되지 않는 모듈 타입: {sorted(t.value for t in module_types)}"
            )

        if self.header.type in _BEHAVIOR_TYPES and self.subpacks:
            raise ManifestError(f"{self.header.type.value} 팩은 subpacks 를 가질 수 없습니다.")
        if self.header.type in (
            ManifestModuleType.SKIN_PACK,
            ManifestModuleType.WORLD_TEMPLATE,
        ) and (self.dependencies or self.capabilities or self.subpacks):
            raise ManifestError(
                f"{self.header.type.value} 팩은 dependencies/capabilities/subpacks 를 가질 수 없습니다."
            )
        if len(self.subpacks) == 1:
            raise ManifestError("subpack 이 하나뿐인 팩은 허용되지 않습니다.")
        return self

    def with_min_engine_version(self, version: Version) -> "Manifest":
        """header.min_engine_version 만 바꾼 새 매니페스트"""
        header = self.header.model_copy(update={"min_engine_version": version})
        return self.model_copy(update={"header": header})

    def to_dict(self) -> Dict[str, Any]:
        return _drop_empty(self.model_dump(mode="json"))

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2)

    @classmethod
    def from_json(cls, text: str, pack_type: ManifestModuleType) -> "Manifest":
        """
        JSON 문자열에서 매니페스트를 읽습니다.

        header.type 은 JSON 에 기록되지 않으므로 따로 지정해야 합니다.
        """
        data = json.loads(text)
        data.setdefault("header", {})["type"] = pack_type
        return cls.model_validate(data)
