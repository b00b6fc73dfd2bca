import contextlib
import logging
import os
import shutil
import tempfile
import zipfile
from typing import Iterator

from .config import TEMP_DIR

logger = logging.getLogger(__name__)


def reset_temp_root() -> None:
    """임시 루트 디렉토리를 비우고 다시 생성합니다."""
    if os.path.exists(TEMP_DIR):
        shutil.rmtree(TEMP_DIR, ignore_errors=True)
    os.makedirs(TEMP_DIR, exist_ok=True)
    logger.info(f"임시 디렉토리 초기화: {TEMP_DIR}")


def create_temp_dir() -> str:
    """임시 루트 아래에 고유한 작업 디렉토리를 만듭니다."""
    os.makedirs(TEMP_DIR, exist_ok=True)
    return tempfile.mkdtemp(dir=TEMP_DIR)


def delete_quietly(path: str) -> None:
    """파일 또는 디렉토리를 삭제합니다. 실패해도 예외를 던지지 않습니다."""
    try:
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        elif os.path.exists(path):
            os.remove(path)
    except OSError as e:
        logger.warning(f"삭제 실패: {path} ({e})")


def delete_if_empty_quietly(directory: str) -> None:
    """비어 있는 디렉토리만 삭제합니다."""
    try:
        if os.path.isdir(directory) and not os.listdir(directory):
            os.rmdir(directory)
    except OSError as e:
        logger.warning(f"빈 디렉토리 삭제 실패: {directory} ({e})")


@contextlib.contextmanager
def temporary_directory() -> Iterator[str]:
    """블록이 끝나면 삭제되는 임시 작업 디렉토리"""
    path = create_temp_dir()
    try:
        yield path
    finally:
        delete_quietly(path)


def zip_directory(target: str, directory: str, include_root: bool = False) -> str:
    """
    디렉토리를 ZIP 파일로 압축합니다.

    Args:
        target: 생성할 ZIP 파일 경로 (존재하지 않아야 함)
        directory: 압축할 디렉토리
        include_root: True 이면 디렉토리 이름을 최상위 폴더로 포함

    Returns:
        생성된 ZIP 파일 경로
    """
    if os.path.exists(target):
        raise FileExistsError(f"이미 존재하는 파일입니다: {target}")
    if not os.path.isdir(directory):
        raise NotADirectoryError(f"디렉토리가 아닙니다: {directory}")

    base = os.path.dirname(directory) if include_root else directory
    with zipfile.ZipFile(target, "w", zipfile.ZIP_DEFLATED) as zipf:
        for root, _, files in os.walk(directory):
            for file in sorted(files):
                file_path = os.path.join(root, file)
                # ZIP 내부 경로는 항상 / 구분
                arcname = os.path.relpath(file_path, base).replace(os.sep, "/")
                zipf.write(file_path, arcname)
                logger.debug(f"압축: {file_path} -> {arcname}")

    logger.info(f"압축 완료: {target}")
    return target


def extract_member(zip_path: str, member: str, target_dir: str) -> str:
    """
    ZIP 파일에서 파일 하나를 추출합니다.

    Args:
        zip_path: ZIP 파일 경로
        member: 추출할 파일의 ZIP 내부 경로
        target_dir: 추출할 디렉토리

    Returns:
        추출된 파일 경로
    """
    with zipfile.ZipFile(zip_path, "r") as zipf:
        names = zipf.namelist()
        if member not in names:
            # 폴더째 압축된 월드도 허용
            candidates = [name for name in names if name.endswith("/" + member)]
            if not candidates:
                raise KeyError(f"{zip_path} 에 {member} 가 없습니다.")
            member = min(candidates, key=len)
        target = os.path.join(target_dir, os.path.basename(member))
        with zipf.open(member) as src, open(target, "wb") as dst:
            shutil.copyfileobj(src, dst)
    return target


def generate_unique_path(path: str) -> str:
    """
    이미 존재하는 경로라면 `이름_1.확장자`, `이름_2.확장자` ... 형태의 경로를 반환합니다.
    """
    if not os.path.exists(path):
        return path
    stem, ext = os.path.splitext(path)
    count = 1
    while os.path.exists(f"{stem}_{count}{ext}"):
        count += 1
    return f"{stem}_{count}{ext}"


def is_extension(filename: str, *extensions: str) -> bool:
    """파일 확장자가 주어진 확장자 중 하나인지 대소문자 구분 없이 확인합니다."""
    ext = os.path.splitext(filename)[1].lstrip(".").lower()
    return ext in {str(e).lower() for e in extensions}


def filename_without_extension(filename: str) -> str:
    return os.path.splitext(os.path.basename(filename))[0]


def safe_filename(name: str) -> str:
    """디렉토리/파일 이름으로 쓸 수 없는 `:` 와 `/` 를 `_` 로 바꿉니다."""
    return name.replace(":", "_").replace("/", "_").replace("\\", "_")
