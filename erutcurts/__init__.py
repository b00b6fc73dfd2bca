"""
Erutcurts

마인크래프트 베드락 에디션의 .mcstructure 파일을 비헤이비어 팩(.mcpack)이나
월드(.mcworld)로 변환하고, 팔로우 중인 체인지로그 채널을 번역하는 디스코드 봇
"""

__version__ = "1.1.0"

from .archive import zip_directory
from .structure import Behavior, Identifier, Structure, TargetType, World
from .translator import get_translator

__all__ = [
    "Behavior",
    "Identifier",
    "Structure",
    "TargetType",
    "World",
    "get_translator",
    "zip_directory",
]
