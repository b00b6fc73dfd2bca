import pytest

from erutcurts.errors import InvalidIdentifierError
from erutcurts.structure import Identifier


def test_from_string_without_namespace_uses_default():
    identifier = Identifier.from_string("house")
    assert identifier.namespace == "mystructure"
    assert identifier.path == ("house",)
    assert str(identifier) == "mystructure:house"
    assert identifier.display_name() == "house"


def test_from_string_with_namespace_and_directories():
    identifier = Identifier.from_string("town:buildings/house")
    assert identifier.namespace == "town"
    assert identifier.path == ("buildings", "house")
    assert identifier.display_name() == "town:buildings/house"


def test_paths():
    assert Identifier.from_string("house").to_path() == "house.mcstructure"
    assert Identifier.from_string("house").function_path() == "house"

    identifier = Identifier.from_string("town:buildings/house")
    assert identifier.to_path() == "town/buildings/house.mcstructure"
    assert identifier.to_path("mcfunction") == "town/buildings/house.mcfunction"


@pytest.mark.parametrize(
    "text", ["", "a::b", "ns:", ":name", "dir//name", "mystructure:dir/name"]
)
def test_invalid_identifiers(text):
    with pytest.raises(InvalidIdentifierError):
        Identifier.from_string(text)


def test_identifiers_are_hashable_and_comparable():
    a = Identifier.from_string("town:house")
    b = Identifier(["house"], "town")
    assert a == b
    assert len({a, b}) == 1
