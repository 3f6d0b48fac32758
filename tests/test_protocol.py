import pytest

from dkv.db import Feature
from dkv.protocol import Command, CommandType, Query, QueryResult, QueryType

U64_MAX = 18446744073709551615


@pytest.mark.parametrize(
    "command, expected",
    [
        (Command(CommandType.SET_E, "testkey", 100, 200, b"testvalue"), 1 + 8 + 8 + 4 + 7 + 9),
        (Command(CommandType.SET_E, "", 100, 200, b"testvalue"), 1 + 8 + 8 + 4 + 0 + 9),
    ],
)
def test_size_bytes(command, expected):
    assert command.size_bytes() == expected


@pytest.mark.parametrize(
    "command",
    [
        Command(CommandType.SET_E, "testkey", 100, 200, b"testvalue"),
        Command(CommandType.DELETE, "testkey", 100, 200, None),
        Command(CommandType.SET_E, "", 100, 200, b"testvalue"),
        Command(CommandType.SET_E, "testkey", 100, 200, b""),
        Command(CommandType.SET_E, "testkey", U64_MAX, U64_MAX, b"testvalue"),
        Command(CommandType.SET_E, "binary", 100, 200, bytes([0, 1, 2, 3, 254, 255])),
        Command(CommandType.SET_E, "你好世界", 100, 200, b"unicode test"),
    ],
)
def test_serialize_deserialize(command):
    data = command.serialize()
    decoded = Command.deserialize(data)
    assert decoded.type == command.type
    assert decoded.key == command.key
    assert decoded.expire_in == command.expire_in
    assert decoded.delete_in == command.delete_in
    assert (decoded.value or b"") == (command.value or b"")
    assert command.size_bytes() == len(data)


@pytest.mark.parametrize(
    "data, message",
    [
        (b"", "data too short for command"),
        (bytes([1, 2, 3, 4, 5]), "data too short for command"),
        (
            bytes([int(CommandType.SET_E)]) + bytes(16) + (1000).to_bytes(4, "big"),
            "data too short for key of length 1000",
        ),
    ],
)
def test_deserialize_errors(data, message):
    with pytest.raises(ValueError) as info:
        Command.deserialize(data)
    assert str(info.value) == message


def test_binary_format():
    cmd = Command(CommandType.SET_E, "testkey", 12345, 67890, b"testvalue")
    expected = (
        bytes([int(CommandType.SET_E)])
        + (12345).to_bytes(8, "big")
        + (67890).to_bytes(8, "big")
        + (7).to_bytes(4, "big")
        + b"testkey"
        + b"testvalue"
    )
    assert cmd.serialize() == expected


def test_deserialize_values_of_different_lengths():
    short = Command(CommandType.SET_E, "key", 100, 200, b"changed value").serialize()
    assert Command.deserialize(short).value == b"changed value"
    long_value = b"this is a much longer value that spans many more bytes than the short one"
    long = Command(CommandType.SET_E, "key", 100, 200, long_value).serialize()
    assert Command.deserialize(long).value == long_value


def test_command_without_value_decodes_to_none():
    data = Command(CommandType.EXPIRE, "k").serialize()
    assert Command.deserialize(data).value is None


@pytest.mark.parametrize(
    "ctype, feature",
    [
        (CommandType.SET, Feature.SET),
        (CommandType.SET_E, Feature.SET_E),
        (CommandType.SET_IF_UNSET, Feature.SET_E_IF_UNSET),
        (CommandType.EXPIRE, Feature.EXPIRE),
        (CommandType.DELETE, Feature.DELETE),
    ],
)
def test_to_db_feature(ctype, feature):
    assert ctype.to_db_feature() is feature


def test_unknown_command_type():
    data = bytes([9]) + bytes(16) + (1).to_bytes(4, "big") + b"k"
    cmd = Command.deserialize(data)
    assert int(cmd.type) == 9
    assert str(cmd.type) == "Unknown(9)"
    with pytest.raises(ValueError, match="unknown command type 9"):
        cmd.type.to_db_feature()


def test_command_type_names():
    names = [str(CommandType(code)) for code in range(5)]
    assert names == ["Set", "SetE", "SetIfUnset", "Expire", "Delete"]


def test_query_types_and_results():
    query = Query(QueryType.GET_DB_INFO)
    assert query.key == ""
    assert str(query.type) == "GetDBInfo"
    result = QueryResult(ok=True, value=b"v")
    assert result == QueryResult(True, b"v")