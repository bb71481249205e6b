import json

from normtree.__main__ import main
from normtree.config import default_config
from normtree.parse import parse_node


def test_sample(capsys) -> None:
    assert main(["--seed", "3", "sample"]) == 0
    out = capsys.readouterr().out.strip()
    parse_node(out)


def test_sample_with_choices(capsys) -> None:
    assert main(["--seed", "3", "sample", "--choices"]) == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert lines[1].startswith("'tree' => (1, 'node_type')")


def test_sample_is_reproducible(capsys) -> None:
    main(["--seed", "9", "sample"])
    first = capsys.readouterr().out
    main(["--seed", "9", "sample"])
    assert capsys.readouterr().out == first


def test_chain(capsys) -> None:
    assert main(["--seed", "1", "chain", "--steps", "20", "--check"]) == 0
    out = capsys.readouterr().out
    assert "initial:" in out
    assert "accepted " in out


def test_infer_with_config_file(tmp_path, capsys) -> None:
    path = tmp_path / "grammar.json"
    path.write_text(json.dumps(default_config().to_dict()), encoding="utf-8")
    assert main(["--seed", "0", "--config", str(path), "infer", "--color", "green", "--zone", "1", "-n", "20"]) == 0
    for line in capsys.readouterr().out.strip().splitlines():
        weight, norm = line.split("  ", 1)
        assert 0 < float(weight) <= 1
        parse_node(norm)
