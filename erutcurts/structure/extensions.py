from enum import Enum


class MCExtension(str, Enum):
    """마인크래프트 베드락 에디션에서 사용하는 파일 확장자"""

    MCADDON = "mcaddon"
    MCFUNCTION = "mcfunction"
    MCPACK = "mcpack"
    MCPERF = "mcperf"
    MCSHORTCUT = "mcshortcut"
    MCSTRUCTURE = "mcstructure"
    MCTEMPLATE = "mctemplate"
    MCWORLD = "mcworld"
    NBT = "nbt"
    DAT = "dat"

    def __str__(self) -> str:
        return self.value

    def filename(self, stem: str) -> str:
        """확장자를 붙인 파일 이름을 반환합니다."""
        return f"{stem}.{self.value}"
