"""Unit tests for the schema model: validation, matching and descriptions."""

from datetime import UTC, datetime

import pytest

from lognorm.exceptions import SchemaError, TypeMismatch
from lognorm.logtypes.schema import (
    Field,
    FieldKind,
    Schema,
    array,
    boolean,
    column_name,
    float_,
    integer,
    obj,
    string,
    timestamp,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def dns_schema() -> Schema:
    return Schema(
        name="DNS",
        fields=(
            string("query", required=True, indicators=("domain",)),
            timestamp("timestamp", required=True, event_time=True),
            integer("rcode"),
            float_("rtt"),
            boolean("rejected"),
            array("answers", string("answer", indicators=("ip",))),
            obj("id.orig", string("h", indicators=("ip",)), integer("p")),
        ),
    )


class TestSchemaValidate:
    """Tests for Schema.validate()."""

    def test_valid_schema(self, dns_schema):
        dns_schema.validate()

    def test_duplicate_sibling_names(self):
        schema = Schema("S", (string("a"), integer("a")))
        with pytest.raises(SchemaError, match="duplicate field 'a'"):
            schema.validate()

    def test_colliding_columns(self):
        schema = Schema("S", (string("id.orig"), string("id_orig")))
        with pytest.raises(SchemaError, match="collides"):
            schema.validate()

    def test_empty_object(self):
        schema = Schema("S", (Field("o", FieldKind.OBJECT),))
        with pytest.raises(SchemaError, match="no fields"):
            schema.validate()

    def test_array_without_element(self):
        schema = Schema("S", (Field("a", FieldKind.ARRAY),))
        with pytest.raises(SchemaError, match="no element"):
            schema.validate()

    def test_unknown_kind(self):
        schema = Schema("S", (Field("a", "text"),))
        with pytest.raises(SchemaError, match="unknown field kind"):
            schema.validate()

    def test_reserved_prefix(self):
        schema = Schema("S", (string("p_row_id"),))
        with pytest.raises(SchemaError, match="reserved"):
            schema.validate()

    def test_multiple_event_time_fields(self):
        schema = Schema(
            "S",
            (timestamp("a", event_time=True), timestamp("b", event_time=True)),
        )
        with pytest.raises(SchemaError, match="multiple event_time"):
            schema.validate()

    def test_event_time_on_string(self):
        schema = Schema("S", (Field("a", FieldKind.STRING, event_time=True),))
        with pytest.raises(SchemaError, match="event_time must be a timestamp"):
            schema.validate()

    def test_event_time_inside_array(self):
        schema = Schema("S", (array("a", timestamp("t", event_time=True)),))
        with pytest.raises(SchemaError, match="nested in an array"):
            schema.validate()

    def test_unknown_indicator(self):
        schema = Schema("S", (string("a", indicators=("mac",)),))
        with pytest.raises(SchemaError, match="unknown indicator"):
            schema.validate()

    def test_format_on_non_timestamp(self):
        schema = Schema("S", (Field("a", FieldKind.INTEGER, format="unix"),))
        with pytest.raises(SchemaError, match="format hints"):
            schema.validate()

    def test_unknown_format_hint(self):
        schema = Schema("S", (timestamp("a", format="iso"),))
        with pytest.raises(SchemaError, match="unknown timestamp format"):
            schema.validate()

    def test_error_carries_path(self):
        schema = Schema("S", (obj("outer", obj("inner", integer("x"), integer("x"))),))
        with pytest.raises(SchemaError) as exc_info:
            schema.validate()
        assert exc_info.value.path == "S.outer.inner"


class TestSchemaMatch:
    """Tests for Schema.match()."""

    def test_coerces_loose_values(self, dns_schema):
        data = dns_schema.match(
            {
                "query": "example.com",
                "timestamp": "2021-01-01T00:00:00Z",
                "rcode": "3",
                "rtt": "0.25",
                "rejected": "false",
                "answers": ["10.0.0.1"],
                "id.orig": {"h": "10.0.0.2", "p": 53.0},
            }
        )
        assert data["query"] == "example.com"
        assert data["timestamp"] == datetime(2021, 1, 1, tzinfo=UTC)
        assert data["rcode"] == 3
        assert data["rtt"] == 0.25
        assert data["rejected"] is False
        assert data["answers"] == ["10.0.0.1"]
        assert data["id_orig"] == {"h": "10.0.0.2", "p": 53}

    def test_missing_optional_fields_are_none(self, dns_schema):
        data = dns_schema.match({"query": "a.com", "timestamp": "2021-01-01T00:00:00Z"})
        assert data["rcode"] is None
        assert data["answers"] is None
        assert data["id_orig"] is None

    def test_unknown_fields_dropped(self, dns_schema):
        data = dns_schema.match(
            {"query": "a.com", "timestamp": "2021-01-01T00:00:00Z", "extra": 1}
        )
        assert "extra" not in data

    def test_missing_required_field(self, dns_schema):
        with pytest.raises(TypeMismatch) as exc_info:
            dns_schema.match({"timestamp": "2021-01-01T00:00:00Z"})
        assert exc_info.value.path == "query"

    def test_invalid_required_field(self, dns_schema):
        with pytest.raises(TypeMismatch, match="invalid timestamp"):
            dns_schema.match({"query": "a.com", "timestamp": "yesterday"})

    def test_invalid_optional_field_degrades(self, dns_schema):
        degraded = []
        data = dns_schema.match(
            {"query": "a.com", "timestamp": "2021-01-01T00:00:00Z", "rcode": "NXDOMAIN"},
            degraded,
        )
        assert data["rcode"] is None
        assert degraded == ["rcode"]

    def test_degraded_nested_path(self, dns_schema):
        degraded = []
        dns_schema.match(
            {
                "query": "a.com",
                "timestamp": "2021-01-01T00:00:00Z",
                "id.orig": {"p": "http"},
            },
            degraded,
        )
        assert degraded == ["id.orig.p"]

    def test_not_an_object(self, dns_schema):
        with pytest.raises(TypeMismatch, match="expected object"):
            dns_schema.match(["a.com"])

    def test_number_to_string(self):
        schema = Schema("S", (string("s"),))
        assert schema.match({"s": 42}) == {"s": "42"}

    @pytest.mark.parametrize("value", [10**400, "nan", "inf", "-Infinity", float("nan")])
    def test_float_out_of_range_or_non_finite(self, value):
        schema = Schema("S", (float_("x", required=True),))
        with pytest.raises(TypeMismatch):
            schema.match({"x": value})

    def test_huge_optional_float_degrades(self, dns_schema):
        degraded = []
        data = dns_schema.match(
            {"query": "a.com", "timestamp": "2021-01-01T00:00:00Z", "rtt": 10**400},
            degraded,
        )
        assert data["rtt"] is None
        assert degraded == ["rtt"]

    def test_huge_timestamp_is_type_mismatch(self, dns_schema):
        with pytest.raises(TypeMismatch, match="invalid timestamp"):
            dns_schema.match({"query": "a.com", "timestamp": 10**400})

    def test_huge_integer_string(self):
        schema = Schema("S", (integer("n", required=True),))
        assert schema.match({"n": "1" + "0" * 30}) == {"n": 10**30}
        with pytest.raises(TypeMismatch):
            schema.match({"n": "1e400"})

    def test_bool_is_not_integer(self):
        schema = Schema("S", (integer("n", required=True),))
        with pytest.raises(TypeMismatch):
            schema.match({"n": True})

    def test_empty_string_is_missing_for_non_strings(self):
        schema = Schema("S", (integer("n"), string("s")))
        assert schema.match({"n": "", "s": ""}) == {"n": None, "s": ""}

    def test_match_is_pure(self, dns_schema):
        value = {"query": "a.com", "timestamp": "2021-01-01T00:00:00Z"}
        assert dns_schema.match(value) == dns_schema.match(value)
        assert value == {"query": "a.com", "timestamp": "2021-01-01T00:00:00Z"}


class TestSchemaIndicators:
    """Tests for indicator collection."""

    def test_collects_nested_and_array_values(self, dns_schema):
        data = dns_schema.match(
            {
                "query": "example.com",
                "timestamp": "2021-01-01T00:00:00Z",
                "answers": ["10.0.0.9", "10.0.0.1"],
                "id.orig": {"h": "10.0.0.1"},
            }
        )
        indicators = dns_schema.collect_indicators(data)
        assert indicators == {
            "p_any_domain_names": ["example.com"],
            "p_any_ip_addresses": ["10.0.0.1", "10.0.0.9"],
        }


class TestSchemaDescribe:
    """Tests for catalog rendering."""

    def test_hive_types(self, dns_schema):
        types = {f.column: f.hive_type() for f in dns_schema.fields}
        assert types["query"] == "string"
        assert types["timestamp"] == "timestamp"
        assert types["rcode"] == "bigint"
        assert types["rtt"] == "double"
        assert types["answers"] == "array<string>"
        assert types["id_orig"] == "struct<h:string,p:bigint>"

    def test_describe(self, dns_schema):
        description = dns_schema.describe()
        assert description["name"] == "DNS"
        query = description["fields"][0]
        assert query["nullable"] is False
        assert query["indicators"] == ["domain"]
        assert description["fields"][1]["event_time"] is True

    def test_event_time_path(self, dns_schema):
        assert dns_schema.event_time_path == ("timestamp",)

    def test_column_name(self):
        assert column_name("id.orig_h") == "id_orig_h"
        assert column_name("log-status") == "log_status"
