import pytest
from pydantic import ValidationError

from mquery import QueryOptions
from mquery.options import parse_options, validate_target


def test_defaults():
    options = QueryOptions()

    assert options.timeout == 5000
    assert options.enable_srv is True
    assert options.protocol == 47
    assert options.try_java_first is True
    assert options.client_guid == 2


def test_parse_options():
    options = QueryOptions(timeout=10)

    assert parse_options(None) == QueryOptions()
    assert parse_options(options) is options
    assert parse_options({"timeout": 10}) == options


@pytest.mark.parametrize(
    "options",
    [
        {"timeout": "5000"},
        {"timeout": -1},
        {"timeout": 1.0},
        {"enable_srv": 1},
        {"client_guid": 2**63},
    ],
)
def test_invalid_options(options):
    with pytest.raises(ValidationError):
        parse_options(options)


def test_options_type():
    with pytest.raises(TypeError, match="'options'"):
        parse_options([("timeout", 10)])


def test_options_are_frozen():
    with pytest.raises(ValidationError):
        QueryOptions().timeout = 1


def test_validate_target():
    host, port, options = validate_target("  mc.example.com\t", 0)

    assert host == "mc.example.com"
    assert port == 0
    assert options == QueryOptions()
