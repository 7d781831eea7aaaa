import pytest

from index_check.errors import TransportError
from recon.checks import NodeCheck
from recon.dispatch import CorrectiveDispatcher, DispatchStatus
from recon.runner import run_fix

MULTI_INSTANCE = {"url": "http://solr1:8983/solr", "instances": ["http://solr2:8983/solr"]}


def test_item_failure_is_logged_and_run_continues(fake_solr, make_context):
    fake_solr.admin_status = lambda host, params: 500 if params.get("nodeid") == "5" else 200
    context = make_context()
    context.workspace.write_ids("missing-nodes", [5, 6])

    summary = run_fix(context)

    assert [params["nodeid"] for params in fake_solr.admin_params()] == ["5", "6"]
    nodes = summary.items[0]
    assert (nodes.kind, nodes.scheduled, nodes.failed) == ("nodes", 1, 1)
    assert summary.failures == 1
    assert summary.to_dict()["status"] == "completed_with_failures"
    with open(context.workspace.failure_log.path, encoding="utf-8") as handle:
        log = handle.read()
    assert "nodeid=5" in log
    assert "HTTP 500" in log


def test_kinds_without_missing_file_are_skipped(fake_solr, make_context):
    context = make_context()

    summary = run_fix(context)

    assert all(item.skipped for item in summary.items)
    assert fake_solr.admin_calls == []


def test_transport_failure_aborts_dispatch(fake_solr, make_context):
    fake_solr.unreachable.add("localhost")
    context = make_context()
    context.workspace.write_ids("missing-nodes", [1, 2, 3])

    with pytest.raises(TransportError):
        run_fix(context)


@pytest.mark.parametrize("parallel", [False, True])
def test_every_instance_receives_each_request(fake_solr, make_context, make_config, parallel):
    config = make_config(solr=MULTI_INSTANCE, fix={"parallel": parallel})
    context = make_context(config=config)

    with CorrectiveDispatcher(context) as dispatcher:
        summary = dispatcher.reindex("nodes", [(1,), (2,)], NodeCheck(context).reindex_params)

    assert summary.scheduled == 2
    assert [p["nodeid"] for p in fake_solr.admin_params("solr1")] == ["1", "2"]
    assert [p["nodeid"] for p in fake_solr.admin_params("solr2")] == ["1", "2"]
    assert all(p["action"] == "reindex" for _, p in fake_solr.admin_calls)


def test_parallel_dispatch_collects_all_outcomes_before_failing(fake_solr, make_context, make_config):
    fake_solr.unreachable.add("solr2")
    config = make_config(solr=MULTI_INSTANCE, fix={"parallel": True})
    context = make_context(config=config)

    with CorrectiveDispatcher(context) as dispatcher:
        with pytest.raises(TransportError) as exc:
            dispatcher.dispatch_item("reindex", {"nodeid": "1"})

    assert exc.value.target == "http://solr2:8983/solr"
    assert len(fake_solr.admin_params("solr1")) == 1


def test_failure_on_one_instance_counts_item_failed(fake_solr, make_context, make_config):
    fake_solr.admin_status = lambda host, params: 503 if host == "solr2" else 200
    context = make_context(config=make_config(solr=MULTI_INSTANCE))

    with CorrectiveDispatcher(context) as dispatcher:
        outcomes = dispatcher.dispatch_item("purge", {"nodeid": "9"})

    assert [outcome.status for outcome in outcomes] == [DispatchStatus.SCHEDULED, DispatchStatus.ITEM_FAILURE]
    assert outcomes[1].status_code == 503


def test_transaction_reindex_can_be_disabled(fake_solr, make_context, make_config):
    context = make_context(config=make_config(fix={"reindex_transactions": False}))
    context.workspace.write_ids("missing-txns", [100])
    context.workspace.write_ids("missing-acltxids", [7])
    context.workspace.write_tuples("missing-acls", [(10, 100, 7)])

    summary = run_fix(context)

    skipped = {item.kind for item in summary.items if item.skipped}
    assert {"txns", "acltxids"} <= skipped
    assert fake_solr.admin_params() == [{"action": "reindex", "acltxid": "7", "txid": "100"}]


def test_purge_candidates_are_purged(fake_solr, make_context):
    context = make_context()
    context.workspace.write_ids("purge-nodes", [102])

    summary = run_fix(context)

    purge = summary.items[-1]
    assert (purge.action, purge.scheduled) == ("purge", 1)
    assert fake_solr.admin_params() == [{"action": "purge", "nodeid": "102"}]


def test_parallel_failures_keep_failure_log_entries_whole(fake_solr, make_context, make_config):
    fake_solr.admin_status = lambda host, params: 500
    solr = {"url": "http://solr1:8983/solr", "instances": ["http://solr2:8983/solr", "http://solr3:8983/solr"]}
    context = make_context(config=make_config(solr=solr, fix={"parallel": True}))
    entries = [(node_id,) for node_id in range(1, 31)]

    with CorrectiveDispatcher(context) as dispatcher:
        summary = dispatcher.reindex("nodes", entries, NodeCheck(context).reindex_params)

    assert summary.failed == 30
    with open(context.workspace.failure_log.path, encoding="utf-8") as handle:
        lines = handle.read().splitlines()
    headers, bodies = lines[0::2], lines[1::2]
    assert len(headers) == 90
    assert all(header.startswith("reindex nodeid=") and header.endswith("returned HTTP 500") for header in headers)
    assert all(body.startswith("failed ") for body in bodies)
    for header, body in zip(headers, bodies):
        node_id = header.split()[1].split("=")[1]
        assert f"'nodeid': '{node_id}'" in body


def test_admin_endpoint_rejects_unknown_action(make_context):
    endpoint = make_context().admin_endpoints[0]

    with pytest.raises(ValueError):
        endpoint.send("optimize", {"nodeid": "1"})
