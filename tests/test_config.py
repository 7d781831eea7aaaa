import json

import pytest

from index_check.config import InspectorConfig, load_config, parse_env_file
from index_check.errors import UnsupportedConfigurationError

ENV_FILE = """\
# index check settings
DBMS=ora
DBHOST=db.example
DBPORT=1521
DBUSER=alfresco
DBPASS='s3cret'
DBSID=ORCL
SOLRURL=https://solr1:8983/solr/
SOLRSECRET=shared
BATCH_REQUEST_NUM=50
BATCH_QUERY_NODES_NUM=500
SSL_ENABLED=true
SSL_CERT=/certs/client.pem
SOLR_INSTANCES=https://solr2:8983/solr,https://solr1:8983/solr
export PARALLEL_FIX=yes
"""


def test_env_file_maps_onto_nested_layout():
    cfg = parse_env_file(ENV_FILE)

    assert cfg["database"]["dbms"] == "ora"
    assert cfg["database"]["password"] == "s3cret"
    assert cfg["solr"]["batch"] == {"request": "50", "error_nodes": "500", "path_nodes": "500"}
    assert cfg["solr"]["tls"] == {"enabled": "true", "cert": "/certs/client.pem"}
    assert cfg["fix"]["parallel"] == "yes"


def test_env_file_builds_typed_config():
    config = InspectorConfig.from_config(parse_env_file(ENV_FILE))

    assert config.database.port == 1521
    assert config.database.sid == "ORCL"
    assert config.solr.url == "https://solr1:8983/solr"
    assert config.solr.request_batch == 50
    assert config.solr.path_batch == 500
    assert config.solr.tls.enabled
    assert config.solr.headers == {"X-Alfresco-Search-Secret": "shared"}
    assert config.fix.parallel
    assert config.fix.reindex_transactions


def test_all_instances_puts_primary_first_without_repeats():
    config = InspectorConfig.from_config(parse_env_file(ENV_FILE))

    assert config.solr.all_instances == ("https://solr1:8983/solr", "https://solr2:8983/solr")


def test_defaults():
    config = InspectorConfig.from_config({})

    assert config.database.dbms == "pg"
    assert config.default_query_strategy == "node-id"
    assert config.solr.query_url == "http://localhost:8083/solr/alfresco/afts"
    assert config.solr.shard_params == {}
    assert config.csv_path.endswith("output.csv")


def test_shard_changes_query_core():
    config = InspectorConfig.from_config({"solr": {"shard": "alfresco-1", "shard_list": "h1/alfresco-0,h2/alfresco-1"}})

    assert config.solr.query_url.endswith("/alfresco-1/afts")
    assert config.solr.shard_params == {"shards": "h1/alfresco-0,h2/alfresco-1"}


def test_load_json_config(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"database": {"dbms": "mysql"}, "runtime": {"base_dir": "work"}}))

    cfg = load_config(str(path))

    assert InspectorConfig.from_config(cfg).database.dbms == "mysql"


def test_missing_config_file(tmp_path):
    with pytest.raises(UnsupportedConfigurationError):
        load_config(str(tmp_path / "absent.json"))


@pytest.mark.parametrize(
    "cfg",
    [
        {"database": {"dbms": "db2"}},
        {"runtime": {"default_query_strategy": "by-size"}},
        {"solr": {"batch": {"request": 0}}},
        {"solr": {"batch": {"error_nodes": "many"}}},
        {"solr": {"tls": {"enabled": True}}},
        {"solr": {"shard": "alfresco-0"}},
        {"solr": {"instances": 3}},
    ],
)
def test_invalid_configuration_is_rejected(cfg):
    with pytest.raises(UnsupportedConfigurationError):
        InspectorConfig.from_config(cfg)
