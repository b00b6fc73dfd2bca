from typing import Annotated, Any, List, Union

from pydantic import PlainSerializer, PlainValidator
from semver import Version

# 매니페스트에서 허용하는 가장 낮은 게임 버전
LOWEST_GAME_VERSION = Version.parse("1.13.0")


def parse_version(value: Any) -> Version:
    """`"1.2.3"`, `[1, 2, 3]`, Version 중 하나를 Version 으로 변환합니다."""
    if isinstance(value, Version):
        return value
    if isinstance(value, (list, tuple)):
        if len(value) != 3:
            raise ValueError(f"버전 배열은 3개의 정수여야 합니다: {value}")
        return Version(*(int(v) for v in value))
    if isinstance(value, str):
        return Version.parse(value)
    raise ValueError(f"버전으로 해석할 수 없습니다: {value!r}")


def version_to_array(version: Version) -> Union[List[int], str]:
    """프리릴리스와 빌드가 없으면 배열로, 있으면 문자열로 변환합니다."""
    if version.prerelease is None and version.build is None:
        return [version.major, version.minor, version.patch]
    return str(version)


# JSON 에서 가능하면 [x, y, z] 형태로 직렬화되는 버전
VersionArray = Annotated[
    Version, PlainValidator(parse_version), PlainSerializer(version_to_array)
]

# JSON 에서 항상 "x.y.z" 문자열로 직렬화되는 버전
VersionString = Annotated[Version, PlainValidator(parse_version), PlainSerializer(str)]
