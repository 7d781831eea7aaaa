import json

import pytest

from recon.cli import parse_args, run_cli


def _write_config(tmp_path, **extra):
    cfg = {"runtime": {"base_dir": str(tmp_path / "work")}, "solr": {"url": "http://localhost:8083/solr"}}
    cfg.update(extra)
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(cfg))
    return str(path)


def test_parse_args_short_flags():
    args = parse_args(["-q", "-s", "transaction-id", "-f", "10", "-t", "20", "-m", "5", "-c"])

    assert args.query and args.check
    assert (args.strategy, args.from_value, args.to_value, args.max_values) == ("transaction-id", "10", "20", "5")


def test_no_action_prints_help(capsys):
    assert run_cli([]) == {}
    assert "usage: index-check" in capsys.readouterr().out


def test_check_and_fix_from_csv(tmp_path, fake_solr):
    fake_solr.indexed["Node"] = {1}
    fake_solr.indexed["Acl"] = {10}
    fake_solr.indexed["Tx"] = {100}
    fake_solr.indexed["AclTx"] = {7}
    dataset = tmp_path / "nodes.csv"
    dataset.write_text("1,10,100,7\n2,10,100,7\n")
    output = tmp_path / "summary.json"

    results = run_cli(
        ["--config", _write_config(tmp_path), "--check", "--csv", str(dataset), "--fix", "--output-json", str(output)],
        transport=fake_solr.transport(),
    )

    assert results["check"]["nodes_to_reindex"] == 1
    assert results["fix"]["status"] == "completed"
    assert fake_solr.admin_params() == [{"action": "reindex", "nodeid": "2"}]
    assert json.loads(output.read_text())["check"]["status"] == "checked"


def test_fail_on_errors_exit_code(tmp_path, fake_solr):
    fake_solr.admin_status = lambda host, params: 500
    config = _write_config(tmp_path)
    work = tmp_path / "work"
    work.mkdir()
    (work / "missing-nodes").write_text("5\n")

    with pytest.raises(SystemExit) as exc:
        run_cli(["--config", config, "--fix", "--fail-on-errors"], transport=fake_solr.transport())

    assert exc.value.code == 2


def test_invalid_strategy_exits_with_error(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        run_cli(["--config", _write_config(tmp_path), "--check", "--strategy", "by-size"])

    assert exc.value.code == 1
    assert "run_failed" in capsys.readouterr().out


def test_malformed_dataset_exits_with_error(tmp_path, fake_solr):
    dataset = tmp_path / "nodes.csv"
    dataset.write_text("nodeid,aclid,txnid,acltxid\n")

    with pytest.raises(SystemExit) as exc:
        run_cli(
            ["--config", _write_config(tmp_path), "--check", "--csv", str(dataset)],
            transport=fake_solr.transport(),
        )

    assert exc.value.code == 1


def test_ancestor_check_requires_uuid(tmp_path, fake_solr):
    dataset = tmp_path / "nodes.csv"
    dataset.write_text("1,10,100,7\n")

    with pytest.raises(SystemExit) as exc:
        run_cli(
            ["--config", _write_config(tmp_path), "--check", "--csv", str(dataset), "--strategy", "ancestor-id"],
            transport=fake_solr.transport(),
        )

    assert exc.value.code == 1
    assert fake_solr.select_calls == []
