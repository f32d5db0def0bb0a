"""
Tests for ConnectParams parsing.
"""

from databank.storage.base import ConnectParams


def test_defaults():
    params = ConnectParams.from_mapping({})
    
    assert params.host == "localhost"
    assert params.port == 27017
    assert params.database_name == "test"
    assert params.options == {}


def test_database_name_spellings():
    assert ConnectParams.from_mapping({"databaseName": "a"}).database_name == "a"
    assert ConnectParams.from_mapping({"database_name": "b"}).database_name == "b"
    assert ConnectParams.from_mapping({"db": "c"}).database_name == "c"


def test_extra_keys_become_options():
    params = ConnectParams.from_mapping({
        "host": "db.example.org",
        "port": "27018",
        "options": {"tls": True},
        "appname": "databank",
    })
    
    assert params.host == "db.example.org"
    assert params.port == 27018
    assert params.options == {"tls": True, "appname": "databank"}


def test_empty_values_fall_back():
    params = ConnectParams.from_mapping({"host": "", "port": None, "db": ""})
    
    assert params == ConnectParams()


def test_every_database_spelling_is_consumed():
    params = ConnectParams.from_mapping({"databaseName": "things", "db": "other"})
    
    assert params.database_name == "things"
    assert params.options == {}


def test_schema_is_not_a_client_option():
    schema = {"user": {"idCol": "nickname"}}
    params = ConnectParams.from_mapping({"schema": schema, "appname": "databank"})
    
    assert params.schema == schema
    assert params.options == {"appname": "databank"}
