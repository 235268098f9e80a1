import base64
import json
from datetime import datetime, timezone

from coordimap_otel.consts import (
    CRAWL_INTERNAL_ID,
    ELEMENTTYPE,
    RESOURCEATTR,
    SPANATTR,
)
from coordimap_otel.envelope import (
    Batch,
    DataSourceConfig,
    DataSourceInfo,
    build_batch,
)
from coordimap_otel.utils import convert_from_otel_timestamp


NOW = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

RESOURCE = {
    RESOURCEATTR.K8S_CLUSTER_NAME: "cluster-1",
    RESOURCEATTR.SERVICE_NAME: "checkout",
}

COMPONENT = '{"Name":"svc1","InternalID":"id-1"}'


def make_batch(spans):
    return build_batch(spans, DataSourceInfo("name", "desc"))


def test_data_source_info():
    assert DataSourceInfo("name", "desc").to_json() == {
        "name": "name",
        "desc": "desc",
        "type": "opentelemetry",
    }


def test_data_source_config_filters_secrets():
    config = DataSourceConfig.from_mapping(
        {
            "region": "eu-west-1",
            "db_password": "hunter2",
            "Client-Secret": "abc",
            "cluster": "main",
        }
    )

    assert config.to_json() == {
        "value_pairs": [
            {"key": "region", "value": "eu-west-1"},
            {"key": "cluster", "value": "main"},
        ]
    }


def test_data_source_config_empty():
    assert DataSourceConfig().to_json() == {"value_pairs": []}
    assert DataSourceConfig.from_mapping(None).to_json() == {"value_pairs": []}


def test_span_emission_order(make_span):
    span = make_span(
        name="my-span",
        attributes={
            SPANATTR.COMPONENT: COMPONENT,
            SPANATTR.PARENT_NAME: "parent",
        },
        resource_attributes=RESOURCE,
        links=[{SPANATTR.RELATIONSHIP: "A@@@B"}],
    )

    batch = make_batch([span])

    assert [e.id for e in batch.elements] == [
        "cluster-1.checkout",
        "A.B",
        "parent.my-span",
        "id-1",
    ]
    assert batch.elements[-1].type == ELEMENTTYPE.COMPONENT
    assert len(batch) == 4


def test_span_elements_use_end_time(make_span):
    span = make_span(attributes={SPANATTR.COMPONENT: COMPONENT})

    (element,) = make_batch([span]).elements

    assert element.retrieved_at == convert_from_otel_timestamp(span.end_time)


def test_span_without_end_time(make_span):
    span = make_span(attributes={SPANATTR.COMPONENT: COMPONENT}, end_time=None)

    (element,) = make_batch([span]).elements

    assert element.retrieved_at.tzinfo is not None


def test_batch_ordering_across_spans(make_span):
    span_a = make_span(
        name="a",
        attributes={SPANATTR.TARGET_SERVICE: "x", SPANATTR.COMPONENT: COMPONENT},
    )
    span_b = make_span(
        name="b",
        attributes={SPANATTR.TARGET_SERVICE: "y"},
        links=[{SPANATTR.RELATIONSHIP: "C@@@D"}],
    )

    batch = make_batch([span_a, span_b])

    assert [e.id for e in batch.elements] == ["a.x", "id-1", "C.D", "b.y"]


def test_resource_relationships_deduplicated_within_batch(make_span):
    spans = [
        make_span(name="a", resource_attributes=RESOURCE),
        make_span(name="b", resource_attributes=RESOURCE),
    ]

    batch = make_batch(spans)

    assert [e.id for e in batch.elements] == ["cluster-1.checkout"]
    assert len(batch.ledger) == 1


def test_ledger_scoped_to_batch(make_span):
    spans = [make_span(resource_attributes=RESOURCE)]

    first = make_batch(spans)
    second = make_batch(spans)

    assert [e.id for e in first.elements] == ["cluster-1.checkout"]
    assert [e.id for e in second.elements] == ["cluster-1.checkout"]
    assert first.ledger is not second.ledger


def test_malformed_input_does_not_abort_batch(make_span):
    spans = [
        make_span(
            name="a",
            attributes={SPANATTR.COMPONENT: "{broken"},
            links=[{SPANATTR.RELATIONSHIP: "no-delimiter"}],
        ),
        make_span(name="b", attributes={SPANATTR.COMPONENT: COMPONENT}),
    ]

    batch = make_batch(spans)

    assert [e.id for e in batch.elements] == ["id-1"]


def test_broken_component_keeps_relationships(make_span):
    span = make_span(
        name="a",
        attributes={SPANATTR.COMPONENT: "{broken", SPANATTR.PARENT_NAME: "p"},
    )

    assert [e.id for e in make_batch([span]).elements] == ["p.a"]


def test_batch_to_json(make_span):
    span = make_span(attributes={SPANATTR.COMPONENT: COMPONENT})
    batch = build_batch(
        [span],
        DataSourceInfo("name", "desc"),
        DataSourceConfig([("region", "eu")]),
    )

    payload = batch.to_json(NOW)

    assert payload["data_source"] == {
        "data_source_info": {"name": "name", "desc": "desc", "type": "opentelemetry"},
        "data_source_config": {"value_pairs": [{"key": "region", "value": "eu"}]},
    }
    assert payload["timestamp"] == "2024-01-02T03:04:05.000000Z"
    assert payload["crawl_internal_id"] == CRAWL_INTERNAL_ID

    (element,) = payload["crawled_data"]["data"]
    assert element["id"] == "id-1"
    assert json.loads(base64.b64decode(element["data"])) == {
        "Name": "svc1",
        "InternalID": "id-1",
    }


def test_empty_batch_serializes():
    batch = Batch(DataSourceInfo("name", "desc"))

    payload = json.loads(batch.serialize(NOW))

    assert payload["crawled_data"] == {"data": []}
    assert payload["data_source"]["data_source_config"] == {"value_pairs": []}


def test_batch_description():
    batch = Batch(DataSourceInfo("name", "desc"))

    assert batch.description == "batch with 0 elements (0 relationships tracked)"
