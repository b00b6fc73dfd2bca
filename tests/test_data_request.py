import asyncio
import io
import zipfile

import discord
import pytest

from bot_modules.data_request import (
    DATA_REQUEST_TITLE,
    DataRequest,
    extract_level,
    process,
)
from conftest import exported_level
from erutcurts.structure import LevelVersions, write_nbt

from test_level import FakeDB


class FakeAttachment:
    def __init__(self, filename, data=b""):
        self.filename = filename
        self.data = data

    async def read(self):
        return self.data


def exported_world() -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zipf:
        zipf.writestr("levelname.txt", "flat")
        zipf.writestr("level.dat", write_nbt(exported_level(), header_version=10))
    return buffer.getvalue()


def test_extract_level(tmp_path):
    world = tmp_path / "flat.mcworld"
    world.write_bytes(exported_world())

    level = extract_level(str(world), str(tmp_path))
    assert int(level["NetworkVersion"]) == 618


def test_request_embed_round_trip():
    embed = DataRequest.EXPORTED_FLAT_WORLD.create_embed()
    assert embed.title == DATA_REQUEST_TITLE
    assert DataRequest.from_embed(embed) is DataRequest.EXPORTED_FLAT_WORLD

    assert DataRequest.from_embed(discord.Embed(title="Log", description="x")) is None
    assert DataRequest.from_embed(discord.Embed(title=DATA_REQUEST_TITLE, description="x")) is None


def test_process_exported_flat_world(temp_root):
    db = FakeDB()
    attachments = [FakeAttachment("flat.mcworld", exported_world())]

    asyncio.run(process(DataRequest.EXPORTED_FLAT_WORLD, attachments, LevelVersions(db)))

    assert db.value.network_version == 618
    assert db.saved == ["LevelVersions"]


@pytest.mark.parametrize(
    "filenames",
    [[], ["flat.zip"], ["a.mcworld", "b.mcworld"]],
)
def test_process_requires_one_world(filenames):
    attachments = [FakeAttachment(name) for name in filenames]
    with pytest.raises(ValueError):
        asyncio.run(
            process(DataRequest.EXPORTED_FLAT_WORLD, attachments, LevelVersions(FakeDB()))
        )
