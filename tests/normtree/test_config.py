import json
import math

import pytest

from normtree.config import NormConfig, default_config, load_config
from normtree.errors import ConfigError


def _tables() -> dict:
    return default_config().to_dict()


def test_default_config_is_valid() -> None:
    config = default_config()
    assert config.root_rule == "NORMS"
    assert config.rules["NORMS"]["Obl"] == ("COLOUR", "ZONE")
    assert config.validate() is config


@pytest.mark.parametrize("rule", ["NORMS", "ZONE", "COLOUR", "NO_NORM"])
def test_node_type_probabilities_sum_to_one(rule: str) -> None:
    dist = default_config().node_type_probabilities[rule]
    assert math.isclose(sum(dist.values()), 1.0)


@pytest.mark.parametrize("leaf", ["Colour", "Zone", "No_norm"])
def test_terminal_value_probabilities_sum_to_one(leaf: str) -> None:
    dist = default_config().terminal_value_probabilities[leaf]
    assert math.isclose(sum(dist.values()), 1.0)


def test_tables_are_read_only() -> None:
    config = default_config()
    with pytest.raises(TypeError):
        config.rules["NEW"] = {}  # type: ignore[index]


def test_from_dict_round_trip() -> None:
    assert NormConfig.from_dict(_tables()) == default_config()


def test_load_config(tmp_path) -> None:
    path = tmp_path / "grammar.json"
    path.write_text(json.dumps(_tables()), encoding="utf-8")
    assert load_config(path) == default_config()


def test_load_config_rejects_non_object(tmp_path) -> None:
    path = tmp_path / "grammar.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(ConfigError, match="expected a JSON object"):
        load_config(path)


def test_missing_table() -> None:
    tables = _tables()
    del tables["rules"]
    with pytest.raises(ConfigError, match="Missing configuration table 'rules'"):
        NormConfig.from_dict(tables)


def test_invalid_arity() -> None:
    tables = _tables()
    tables["rules"]["NORMS"]["Obl"] = ["COLOUR", "ZONE", "ZONE"]
    with pytest.raises(ConfigError, match="Invalid arity"):
        NormConfig.from_dict(tables)


def test_missing_terminal_distribution() -> None:
    tables = _tables()
    del tables["terminal_value_probabilities"]["Zone"]
    with pytest.raises(ConfigError, match="No distribution found for terminal parameter 'Zone'"):
        NormConfig.from_dict(tables)


def test_node_type_probabilities_must_sum_to_one() -> None:
    tables = _tables()
    tables["node_type_probabilities"]["NORMS"]["Obl"] = 0.5
    with pytest.raises(ConfigError, match="sum to"):
        NormConfig.from_dict(tables)


def test_terminal_probabilities_must_sum_to_one() -> None:
    tables = _tables()
    tables["terminal_value_probabilities"]["Zone"]["1"] = 0.9
    with pytest.raises(ConfigError, match="terminal parameter 'Zone'"):
        NormConfig.from_dict(tables)


def test_unregistered_node_type() -> None:
    tables = _tables()
    tables["rules"]["NORMS"]["Maybe"] = []
    tables["node_type_probabilities"]["NORMS"] = {"No_norm": 0.3, "Obl": 0.4, "Pro": 0.2, "Maybe": 0.1}
    with pytest.raises(ConfigError, match="Unregistered node type 'Maybe'"):
        NormConfig.from_dict(tables)


def test_unknown_child_rule() -> None:
    tables = _tables()
    tables["rules"]["NORMS"]["Pro"] = ["COLOR", "ZONE"]
    with pytest.raises(ConfigError, match="unknown rule 'COLOR'"):
        NormConfig.from_dict(tables)


def test_probability_keys_must_match_rule() -> None:
    tables = _tables()
    tables["node_type_probabilities"]["NORMS"] = {"No_norm": 0.6, "Obl": 0.4}
    with pytest.raises(ConfigError, match="has probabilities for"):
        NormConfig.from_dict(tables)


def test_leaf_cannot_have_children() -> None:
    tables = _tables()
    tables["rules"]["ZONE"]["Zone"] = ["COLOUR"]
    with pytest.raises(ConfigError, match="cannot have child rules"):
        NormConfig.from_dict(tables)


def test_unknown_root_rule() -> None:
    tables = _tables()
    tables["root_rule"] = "START"
    with pytest.raises(ConfigError, match="Unknown root rule 'START'"):
        NormConfig.from_dict(tables)


def test_leaf_regrowth_rule_must_exist() -> None:
    tables = _tables()
    del tables["rules"]["NO_NORM"]
    del tables["node_type_probabilities"]["NO_NORM"]
    with pytest.raises(ConfigError, match="regrows under unknown rule 'NO_NORM'"):
        NormConfig.from_dict(tables)


def test_leaf_regrowth_rule_must_produce_the_same_leaf() -> None:
    config = NormConfig(
        rules={
            "NORMS": {"Obl": ["COLOUR", "ZONE"]},
            "ZONE": {"Colour": []},
            "COLOUR": {"Zone": []},
        },
        node_type_probabilities={
            "NORMS": {"Obl": 1.0},
            "ZONE": {"Colour": 1.0},
            "COLOUR": {"Zone": 1.0},
        },
        terminal_value_probabilities={"Colour": {"red": 1.0}, "Zone": {"1": 1.0}},
    )
    with pytest.raises(ConfigError, match="regrows under rule 'COLOUR', which expands to"):
        config.validate()


def test_leaf_regrowth_rule_cannot_offer_other_node_types() -> None:
    tables = _tables()
    tables["rules"]["NO_NORM"] = {"No_norm": [], "Obl": ["COLOUR", "ZONE"]}
    tables["node_type_probabilities"]["NO_NORM"] = {"No_norm": 0.5, "Obl": 0.5}
    with pytest.raises(ConfigError, match="regrows under rule 'NO_NORM'"):
        NormConfig.from_dict(tables)
