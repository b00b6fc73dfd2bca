import json
from uuid import UUID

import pytest
from semver import Version

from erutcurts.structure.manifest import (
    GeneratedWith,
    Manifest,
    ManifestDependency,
    ManifestHeader,
    ManifestMetadata,
    ManifestModule,
    ManifestModuleType,
    ManifestSubpack,
    ScriptLanguage,
)


def behavior_header(**kwargs) -> ManifestHeader:
    values = {
        "type": ManifestModuleType.DATA,
        "name": "Structures",
        "min_engine_version": Version.parse("1.19.50"),
    }
    values.update(kwargs)
    return ManifestHeader(**values)


def test_behavior_manifest_serialization():
    manifest = Manifest(
        header=behavior_header(),
        modules=[ManifestModule(type=ManifestModuleType.DATA)],
        metadata=ManifestMetadata(
            generated_with=[GeneratedWith(name="Erutcurts", versions=["1.1.0"])]
        ),
    )
    data = manifest.to_dict()

    assert data["format_version"] == 2
    assert data["header"]["min_engine_version"] == [1, 19, 50]
    assert data["header"]["version"] == [1, 0, 0]
    assert "type" not in data["header"]
    assert "description" not in data["header"]
    assert data["modules"][0]["type"] == "data"
    assert UUID(data["modules"][0]["uuid"])
    assert data["metadata"] == {"generated_with": {"Erutcurts": ["1.1.0"]}}
    assert "dependencies" not in data
    assert "subpacks" not in data


def test_prerelease_version_is_serialized_as_string():
    manifest = Manifest(
        header=behavior_header(version=Version.parse("1.0.0-beta")),
        modules=[ManifestModule(type=ManifestModuleType.DATA)],
    )
    assert manifest.to_dict()["header"]["version"] == "1.0.0-beta"


def test_json_round_trip_keeps_uuids():
    manifest = Manifest(
        header=behavior_header(),
        modules=[ManifestModule(type=ManifestModuleType.DATA)],
    )
    loaded = Manifest.from_json(manifest.to_json(), ManifestModuleType.DATA)
    assert loaded.header.uuid == manifest.header.uuid
    assert loaded.modules[0].uuid == manifest.modules[0].uuid
    assert loaded.header.min_engine_version == Version.parse("1.19.50")


def test_behavior_pack_requires_min_engine_version():
    with pytest.raises(ValueError):
        behavior_header(min_engine_version=None)


def test_min_engine_version_lower_bound():
    with pytest.raises(ValueError):
        behavior_header(min_engine_version=Version.parse("1.12.0"))


def test_world_template_requires_base_game_version():
    with pytest.raises(ValueError):
        ManifestHeader(type=ManifestModuleType.WORLD_TEMPLATE, name="World")

    header = ManifestHeader(
        type=ManifestModuleType.WORLD_TEMPLATE,
        name="World",
        base_game_version=Version.parse("1.20.0"),
        lock_template_options=True,
    )
    assert header.min_engine_version is None


def test_incompatible_module_types_are_rejected():
    with pytest.raises(ValueError):
        Manifest(
            header=behavior_header(),
            modules=[
                ManifestModule(type=ManifestModuleType.DATA),
                ManifestModule(type=ManifestModuleType.RESOURCES),
            ],
        )


def test_script_module_requires_entry_under_scripts():
    module = ManifestModule(
        type=ManifestModuleType.SCRIPT,
        entry="scripts/main.js",
        language=ScriptLanguage.JAVASCRIPT,
    )
    assert module.entry == "scripts/main.js"

    with pytest.raises(ValueError):
        ManifestModule(
            type=ManifestModuleType.SCRIPT,
            entry="main.js",
            language=ScriptLanguage.JAVASCRIPT,
        )
    with pytest.raises(ValueError):
        ManifestModule(type=ManifestModuleType.DATA, entry="scripts/main.js")


def test_dependency_needs_exactly_one_target():
    with pytest.raises(ValueError):
        ManifestDependency(version=[1, 0, 0])

    module = ManifestModule(type=ManifestModuleType.DATA)
    dependency = ManifestDependency.from_module(module)
    assert dependency.uuid == module.uuid


def test_single_subpack_is_rejected():
    with pytest.raises(ValueError):
        Manifest(
            header=ManifestHeader(
                type=ManifestModuleType.RESOURCES,
                name="Resources",
                min_engine_version=Version.parse("1.20.0"),
            ),
            modules=[ManifestModule(type=ManifestModuleType.RESOURCES)],
            subpacks=[ManifestSubpack(folder_name="low", name="Low")],
        )


def test_empty_author_is_rejected():
    with pytest.raises(ValueError):
        ManifestMetadata(authors=[" "])


def test_generated_with_is_read_from_mapping():
    metadata = ManifestMetadata.model_validate({"generated_with": {"Erutcurts": ["1.1.0"]}})
    assert metadata.generated_with[0].name == "Erutcurts"
    assert json.loads(json.dumps(metadata.model_dump(mode="json")))["generated_with"] == {
        "Erutcurts": ["1.1.0"]
    }
