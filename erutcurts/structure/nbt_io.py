import io
import logging
import struct
from typing import Optional

from nbtlib import File
from nbtlib.tag import Compound

from ..errors import StructureFormatError

logger = logging.getLogger(__name__)

# level.dat 헤더: StorageVersion(int32) + 본문 길이(int32), 리틀 엔디언
LEVEL_DAT_HEADER = struct.Struct("<ii")


def read_nbt(data: bytes, has_header: bool = False) -> Compound:
    """
    베드락 에디션 형식(리틀 엔디언)의 NBT 바이트를 읽습니다.

    Args:
        data: NBT 바이트
        has_header: level.dat 처럼 8바이트 헤더가 붙어 있는지 여부

    Returns:
        루트 Compound 태그
    """
    if has_header:
        if len(data) < LEVEL_DAT_HEADER.size:
            raise StructureFormatError("level.dat 헤더가 잘려 있습니다.")
        storage_version, length = LEVEL_DAT_HEADER.unpack_from(data)
        logger.debug(f"level.dat 헤더: StorageVersion={storage_version}, 길이={length}")
        data = data[LEVEL_DAT_HEADER.size :]

    try:
        return File.parse(io.BytesIO(data), byteorder="little")
    except Exception as e:
        raise StructureFormatError(f"NBT 를 읽을 수 없습니다: {e}") from e


def read_nbt_file(path: str, has_header: bool = False) -> Compound:
    """파일 경로에서 NBT 를 읽습니다."""
    with open(path, "rb") as f:
        return read_nbt(f.read(), has_header=has_header)


def write_nbt(compound: Compound, header_version: Optional[int] = None) -> bytes:
    """
    Compound 태그를 리틀 엔디언 NBT 바이트로 직렬화합니다.

    Args:
        compound: 루트 Compound 태그
        header_version: 지정하면 level.dat 헤더를 앞에 붙입니다 (StorageVersion)

    Returns:
        직렬화된 바이트
    """
    buffer = io.BytesIO()
    File(compound).write(buffer, byteorder="little")
    payload = buffer.getvalue()

    if header_version is None:
        return payload
    return LEVEL_DAT_HEADER.pack(header_version, len(payload)) + payload
