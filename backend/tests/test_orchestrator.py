import json
import re

import pytest

from conftest import FakeSuggestionService
from core.disambiguation import AutoSelectOperator
from core.errors import TemplateError
from core.orchestrator import TemplateOrchestrator, load_template, parse_template


def template_from(endpoints):
    return parse_template(json.dumps({"endpoints": endpoints}))


def test_get_path_param_targets_existing_row(introspector):
    template = template_from({"GET /api/customer/{id}": {"path_params": {"id": None}, "headers": {"Authorization": None}}})
    summary = TemplateOrchestrator(introspector, seed=1).run(template)

    endpoint = template.endpoints["GET /api/customer/{id}"]
    assert summary.endpoints_filled == 1
    assert endpoint.path_params["id"] in (1, 2, 3)
    assert endpoint.headers == {"Authorization": None}
    assert not endpoint.has("body")

def test_post_unknown_path_disambiguated(introspector):
    service = FakeSuggestionService(json.dumps({
        "suggestions": [{"table": "client_mapping", "similarity": 0.9, "reasoning": "closest name"}],
        "foreign_keys": [],
    }))
    template = template_from({"POST /api/clients": {"body": None}})
    summary = TemplateOrchestrator(introspector, service=service, operator=AutoSelectOperator(1), seed=2).run(template)

    body = template.endpoints["POST /api/clients"].body
    result = summary.results[0]
    assert result.status == "success"
    assert result.tables == ["client_mapping", "customer"]
    assert "id" not in body
    assert body["customer_id"] in (1, 2, 3)
    assert len(body["hospital_code"]) == 8

def test_overrides_survive_and_auto_increment_is_omitted(introspector):
    template = template_from({"POST /api/customer": {"body": {"email": "fixed@example.com", "first_name": None, "id": None}}})
    TemplateOrchestrator(introspector, seed=3).run(template)

    body = template.endpoints["POST /api/customer"].body
    assert body["email"] == "fixed@example.com"
    assert body["first_name"] is None or body["first_name"].startswith("John")
    assert "id" not in body

def test_unknown_field_without_suggestions_stays_null(introspector):
    template = template_from({"POST /api/customer": {"body": {"nickname": None, "email": None}}})
    summary = TemplateOrchestrator(introspector, seed=4).run(template)

    body = template.endpoints["POST /api/customer"].body
    assert body["nickname"] is None
    assert body["email"].endswith("@example.com")
    assert summary.results[0].status == "success"
    assert any("nickname" in w for w in summary.results[0].warnings)

def test_unknown_field_with_suggestions(introspector):
    service = FakeSuggestionService(json.dumps({"data_type": "string", "value_range": ["Bob", "Ann"], "reasoning": ""}))
    template = template_from({"POST /api/customer": {"body": {"nickname": None}}})
    TemplateOrchestrator(introspector, service=service, operator=AutoSelectOperator(2), seed=5).run(template)
    assert template.endpoints["POST /api/customer"].body["nickname"] in ("Bob", "Ann")

def test_skipped_endpoints_are_left_unchanged(introspector):
    template = template_from({
        "POST /api/patients": {"body": {"name": None}},
        "PATCH /api/customer": {"body": {"email": None}},
        "GET /api/customer": {"query_params": {"email": None}},
    })
    summary = TemplateOrchestrator(introspector, seed=6).run(template)

    assert [r.status for r in summary.results] == ["skipped", "skipped", "success"]
    assert summary.endpoints_total == 3
    assert summary.endpoints_filled == 1
    assert template.endpoints["POST /api/patients"].body == {"name": None}
    assert template.endpoints["PATCH /api/customer"].body == {"email": None}
    assert "patients" in summary.results[0].error
    assert template.endpoints["GET /api/customer"].query_params["email"].endswith("@example.com")

def test_failed_column_disambiguation_skips_endpoint(introspector):
    service = FakeSuggestionService(json.dumps({"data_type": "string"}))
    template = template_from({"POST /api/customer": {"body": {"email": None, "nickname": None}}})
    summary = TemplateOrchestrator(introspector, service=service, operator=AutoSelectOperator(5), seed=7).run(template)

    assert summary.results[0].status == "skipped"
    assert template.endpoints["POST /api/customer"].body == {"email": None, "nickname": None}

def test_method_policy(introspector):
    template = template_from({
        "GET /api/orders/{id}": {"path_params": {"id": None}, "body": {"total": None}},
        "PUT /api/orders/{id}": {"path_params": {"id": None}, "query_params": {"total": None}, "body": {"total": None}},
        "DELETE /api/orders/{id}": {"path_params": {"id": None}},
    })
    TemplateOrchestrator(introspector, seed=8).run(template)

    get_ep = template.endpoints["GET /api/orders/{id}"]
    assert get_ep.path_params["id"] == 1
    assert get_ep.body == {"total": None}

    put_ep = template.endpoints["PUT /api/orders/{id}"]
    assert put_ep.path_params["id"] == 1
    assert put_ep.query_params == {"total": None}
    assert isinstance(put_ep.body["total"], float)

    assert template.endpoints["DELETE /api/orders/{id}"].path_params["id"] == 1

def test_nested_items_use_related_tables(introspector):
    template = template_from({"POST /api/orders": {"body": {"total": None, "items": [{"quantity": None, "order_id": 1}]}}})
    TemplateOrchestrator(introspector, seed=9).run(template)

    body = template.endpoints["POST /api/orders"].body
    assert isinstance(body["total"], float)
    assert 1 <= len(body["items"]) <= 3
    assert all(isinstance(i["quantity"], int) and i["order_id"] == 1 for i in body["items"])

def test_null_body_becomes_full_record(introspector):
    template = template_from({"POST /api/customer": {"body": None}})
    summary = TemplateOrchestrator(introspector, seed=11).run(template)

    body = template.endpoints["POST /api/customer"].body
    assert summary.results[0].status == "success"
    assert re.fullmatch(r"user_\d+@example\.com", body["email"])
    assert "id" not in body
    assert set(body) <= {"email", "first_name", "is_active", "age"}
    assert body.get("is_active", True) in (True, False)
    assert isinstance(body.get("age", 0), int)

def test_empty_array_body_yields_one_record(introspector):
    template = template_from({"POST /api/order_item": {"body": []}})
    summary = TemplateOrchestrator(introspector, seed=12).run(template)

    body = template.endpoints["POST /api/order_item"].body
    assert summary.results[0].status == "success"
    assert isinstance(body, list) and len(body) == 1
    item = body[0]
    assert "id" not in item
    assert item["order_id"] == 1
    assert isinstance(item["quantity"], int)

def test_empty_table_sample_warning(introspector):
    template = template_from({"POST /api/audit_log": {"body": None}})
    summary = TemplateOrchestrator(introspector, seed=10).run(template)
    assert summary.results[0].status == "success"
    assert any("empty" in w for w in summary.results[0].warnings)
    assert "id" not in (template.endpoints["POST /api/audit_log"].body or {})

def test_generate_round_trip(introspector, tmp_path):
    src = tmp_path / "testdata_template.json"
    src.write_text(json.dumps({
        "endpoints": {
            "GET /api/customer/{id}": {"path_params": {"id": None}},
            "POST /api/customer": {"body": None, "headers": {"Content-Type": "application/json"}},
        },
        "version": 2,
    }))
    summary = TemplateOrchestrator(introspector, seed=11).generate(src)

    written = json.loads(src.read_text())
    assert summary.endpoints_filled == 2
    assert written["version"] == 2
    assert set(written["endpoints"]["GET /api/customer/{id}"]) == {"path_params"}
    assert set(written["endpoints"]["POST /api/customer"]) == {"body", "headers"}
    assert written["endpoints"]["GET /api/customer/{id}"]["path_params"]["id"] in (1, 2, 3)

def test_generate_to_separate_output(introspector, tmp_path):
    src = tmp_path / "in.json"
    src.write_text(json.dumps({"endpoints": {"GET /api/customer/{id}": {"path_params": {"id": None}}}}))
    out = tmp_path / "nested" / "out.json"

    TemplateOrchestrator(introspector, seed=12).generate(src, out)

    assert json.loads(src.read_text())["endpoints"]["GET /api/customer/{id}"]["path_params"]["id"] is None
    assert json.loads(out.read_text())["endpoints"]["GET /api/customer/{id}"]["path_params"]["id"] in (1, 2, 3)

def test_bad_template_is_fatal(tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    with pytest.raises(TemplateError):
        load_template(bad)
    with pytest.raises(TemplateError):
        load_template(tmp_path / "missing.json")
    with pytest.raises(TemplateError):
        parse_template('{"tests": []}')
