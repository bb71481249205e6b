import pytest

from normtree.gen import ChoiceMap


def test_set_and_get_by_path() -> None:
    cm = ChoiceMap()
    cm.set_value(("tree", (1, "node_type")), "Obl")
    cm.set_value(("tree", (2, "Colour")), "red")
    cm["zone"] = 1

    assert cm.get_value(("tree", (1, "node_type"))) == "Obl"
    assert cm.has_value(("tree", (2, "Colour")))
    assert not cm.has_value(("tree", (3, "Zone")))
    assert cm["zone"] == 1
    assert len(cm) == 3


def test_tuple_keys_are_not_paths() -> None:
    cm = ChoiceMap()
    cm[(1, "node_type")] = "Zone"
    assert cm.has_value(((1, "node_type"),))
    assert not cm.has_value((1, "node_type"))


def test_missing_value_raises() -> None:
    with pytest.raises(KeyError, match="No value at address"):
        ChoiceMap().get_value(("a", "b"))


def test_get_submap_of_missing_key_is_empty() -> None:
    sub = ChoiceMap().get_submap("subtree")
    assert sub.is_empty()
    assert len(sub) == 0


def test_set_submap_copies() -> None:
    sub = ChoiceMap.of(a=1)
    cm = ChoiceMap()
    cm.set_submap("outer", sub)
    sub["b"] = 2

    assert cm.flatten() == {("outer", "a"): 1}


def test_set_empty_submap_removes_entry() -> None:
    cm = ChoiceMap()
    cm.set_value(("outer", "a"), 1)
    cm.set_submap("outer", ChoiceMap())
    assert cm.is_empty()


def test_value_and_submap_cannot_share_a_key() -> None:
    cm = ChoiceMap.of(a=1)
    with pytest.raises(KeyError, match="already holds a value"):
        cm.set_submap("a", ChoiceMap.of(b=2))
    with pytest.raises(KeyError, match="already holds a value"):
        cm.set_value(("a", "b"), 2)


def test_flatten_and_from_flat_agree() -> None:
    flat = {("pick_node", ("done", 1)): False, ("subtree", (3, "Zone")): "2", ("x",): 0}
    cm = ChoiceMap.from_flat(flat)
    assert cm.flatten() == flat
    assert cm == ChoiceMap.from_flat(dict(reversed(flat.items())))
    assert dict(iter(cm)) == flat


def test_equality_is_structural() -> None:
    assert ChoiceMap.of(a=1) == ChoiceMap.of(a=1)
    assert ChoiceMap.of(a=1) != ChoiceMap.of(a=2)
    assert ChoiceMap.of(a=1) != ChoiceMap()
