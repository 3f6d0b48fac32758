import pytest

from dkv.db import KVDB, DatabaseInfo, Feature, Implementation


def test_features_are_distinct_single_bits():
    values = [f.value for f in Feature]
    assert len(values) == len(set(values))
    for v in values:
        assert v > 0
        assert v & (v - 1) == 0
        assert Feature(v).value == v


def test_feature_order_matches_declaration():
    assert list(Feature) == [
        Feature.SET,
        Feature.SET_E,
        Feature.SET_E_IF_UNSET,
        Feature.GET,
        Feature.EXPIRE,
        Feature.DELETE,
        Feature.HAS,
        Feature.SAVE,
        Feature.LOAD,
        Feature.GARBAGE_COLLECT,
    ]
    assert Feature(1) is Feature.SET
    assert Feature(2) is Feature.SET_E
    assert Feature(512) is Feature.GARBAGE_COLLECT
    values = [f.value for f in Feature]
    assert values == sorted(values)


@pytest.mark.parametrize(
    "feature,label",
    [
        (Feature.SET, "Set"),
        (Feature.SET_E, "SetE"),
        (Feature.SET_E_IF_UNSET, "SetEIfUnset"),
        (Feature.GET, "Get"),
        (Feature.DELETE, "Delete"),
        (Feature.HAS, "Has"),
        (Feature.SAVE, "Save"),
        (Feature.LOAD, "Load"),
        (Feature.GARBAGE_COLLECT, "GarbageCollect"),
    ],
)
def test_feature_labels(feature, label):
    assert str(feature) == label


def test_combined_feature_label_is_unknown():
    combined = Feature(Feature.GET.value | Feature.HAS.value)
    assert str(combined) == "Unknown"


def test_feature_bitmask_containment():
    combined = Feature(Feature.GET.value | Feature.HAS.value | Feature.SET.value)
    assert combined & Feature.GET == Feature.GET
    assert combined & Feature.DELETE != Feature.DELETE
    assert combined & (Feature.GET | Feature.HAS) == Feature.GET | Feature.HAS


def test_implementation_maple():
    assert Implementation.MAPLE.value == "maple"
    assert Implementation("maple") is Implementation.MAPLE


def test_database_info_fields():
    info = DatabaseInfo(
        size_bytes=42,
        db_type=Implementation.MAPLE,
        supported_features=[Feature.SET, Feature.GET],
        metadata={"k": "v"},
    )
    assert info.size_bytes == 42
    assert info.db_type == "maple"
    assert info.supported_features == [Feature.SET, Feature.GET]
    assert info.metadata == {"k": "v"}


def test_database_info_defaults():
    info = DatabaseInfo(size_bytes=0, db_type=Implementation.MAPLE)
    assert info.supported_features == []
    assert info.metadata is None


def test_kvdb_is_abstract():
    with pytest.raises(TypeError):
        KVDB()
    assert {"set", "get", "has", "close"} <= set(KVDB.__abstractmethods__)