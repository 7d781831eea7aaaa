import json

import pytest

from index_check.dataset import SourceRecord, iter_records, read_dataset
from index_check.errors import InputFormatError
from index_check.workspace import Workspace
from recon.canonical import canonicalize


def _records():
    return [
        SourceRecord(5, 10, 100, 7),
        SourceRecord(2, 10, 101, 7),
        SourceRecord(9, 11, 100, 8),
        SourceRecord(2, 10, 101, 7),
    ]


def test_canonicalize_dedupes_and_sorts_every_kind():
    sets = canonicalize(_records())

    assert sets.nodes == [2, 5, 9]
    assert sets.acls == [10, 11]
    assert sets.txns == [100, 101]
    assert sets.acltxids == [7, 8]
    assert sets.acl_tuples == [(10, 100, 7), (10, 101, 7), (11, 100, 8)]


def test_canonicalize_is_deterministic():
    first = canonicalize(_records())
    second = canonicalize(list(reversed(_records())))

    assert first == second


def test_canonicalize_logs_statistics(logger, log_stream):
    canonicalize(_records(), logger=logger)

    event = json.loads(log_stream.getvalue().splitlines()[0])
    assert event["msg"] == "dataset_statistics"
    assert event["nodes"] == 3
    assert event["changesets"] == 2
    assert event["last_node_id"] == 9


def test_canonicalize_rejects_malformed_first_record():
    with pytest.raises(InputFormatError):
        canonicalize([SourceRecord(-1, 1, 1, 1)])


def test_read_dataset_trims_whitespace_and_blank_lines(tmp_path):
    path = tmp_path / "output.csv"
    path.write_text(" 1 ,2,3,\t4\n\n5,6,7,8\n")

    assert read_dataset(str(path)) == [SourceRecord(1, 2, 3, 4), SourceRecord(5, 6, 7, 8)]


def test_read_dataset_rejects_header_row(tmp_path):
    path = tmp_path / "output.csv"
    path.write_text("alf_node.id,alf_node.acl_id,alf_node.transaction_id,acl_change_set\n1,2,3,4\n")

    with pytest.raises(InputFormatError) as exc:
        read_dataset(str(path))

    assert exc.value.line_number == 1


def test_iter_records_rejects_short_rows():
    with pytest.raises(InputFormatError):
        list(iter_records(["1,2,3"]))


def test_canonical_sets_are_written_to_workspace(tmp_path):
    workspace = Workspace(str(tmp_path / "work")).prepare()
    canonicalize(_records()).write(workspace)

    assert workspace.read_ids("nodes") == [2, 5, 9]
    assert workspace.read_ids("aclunique") == [10, 11]
    assert workspace.read_tuples("acls") == [(10, 100, 7), (10, 101, 7), (11, 100, 8)]
