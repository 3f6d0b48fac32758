import pytest

from dkv.store import RetCode, Store, StoreError


def test_internal_error_message():
    err = StoreError(RetCode.INTERNAL_ERROR, "boom")
    assert str(err) == "KVStoreError (code RetCInternalError): boom"


def test_invalid_operation_message():
    err = StoreError(RetCode.INVALID_OPERATION, "bad op")
    assert str(err) == "KVStoreError (code InvalidOperation): bad op"


def test_other_codes_are_unknown_in_message():
    err = StoreError(RetCode.UNSUPPORTED_OPERATION, "nope")
    assert str(err) == "KVStoreError (code Unknown): nope"


def test_int_code_is_converted():
    err = StoreError(1, "x")
    assert err.code is RetCode.INTERNAL_ERROR
    assert err.msg == "x"


def test_unrecognised_int_code_is_kept():
    err = StoreError(42, "odd")
    assert err.code == 42
    assert "Unknown" in str(err)


def test_store_error_can_be_raised_and_caught():
    err = StoreError(RetCode.UNSUPPORTED_OPERATION, "Get operation is not supported")
    assert err.code is RetCode.UNSUPPORTED_OPERATION
    assert err.msg == "Get operation is not supported"
    with pytest.raises(StoreError) as info:
        raise err
    assert info.value is err


def test_store_is_abstract():
    with pytest.raises(TypeError):
        Store()