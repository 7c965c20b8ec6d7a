from tranche_model.src.utils.indexed_set import IndexedSet


def test_add_is_idempotent():
    members = IndexedSet()
    assert members.add("LP-A")
    assert not members.add("LP-A")
    assert len(members) == 1
    assert "LP-A" in members


def test_swap_remove_keeps_list_compact():
    members = IndexedSet(["a", "b", "c", "d"])
    assert members.remove("b")
    assert members.to_list() == ["a", "d", "c"]
    assert members.at(1) == "d"
    assert "b" not in members

    # The moved member can still be removed by value
    assert members.remove("d")
    assert members.to_list() == ["a", "c"]
    assert not members.remove("missing")


def test_remove_last_member():
    members = IndexedSet(["only"])
    assert members.remove("only")
    assert len(members) == 0
    assert list(members) == []
