import pytest

from tradelog.engine.tags import TagSet


@pytest.mark.parametrize("raw,expected", [
    (None, []),
    ("", []),
    ("momentum, earnings ,,momentum", ["earnings", "momentum"]),
    (["fomo", " fomo ", ""], ["fomo"]),
    (("B", "a"), ["a", "B"]),
])
def test_parse(raw, expected):
    assert TagSet.parse(raw).to_list() == expected


def test_storage_round_trip():
    tags = TagSet(["momentum", "earnings"])
    stored = tags.to_storage()
    assert stored == "earnings,momentum"
    assert TagSet.parse(stored) == tags


def test_empty_set_stores_null():
    assert TagSet().to_storage() is None


def test_separator_inside_label_is_neutralized():
    tags = TagSet(["gap,up"])
    assert tags.to_list() == ["gap up"]
    assert TagSet.parse(tags.to_storage()) == tags


def test_parse_returns_same_instance_for_tagset():
    tags = TagSet(["x"])
    assert TagSet.parse(tags) is tags
