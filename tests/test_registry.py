import json

import pytest

from flowcheck.errors import MalformedRegistry
from flowcheck.structural.registry import (
    DEFAULT_NODE_TYPES,
    NodeTypeRegistry,
    NodeTypeSpec,
    load_registry,
    looks_like_trigger,
    registry_from_dict,
    version_key,
)


def test_default_table_knows_conditionals_and_triggers():
    reg = NodeTypeRegistry.default()
    assert reg.lookup("n8n-nodes-base.if").outputs == 2
    assert reg.lookup("n8n-nodes-base.webhook").trigger
    assert reg.lookup("n8n-nodes-base.slack").terminal
    assert reg.lookup("n8n-nodes-base.httpRequest").required == ("url",)


def test_versioned_entry_wins():
    reg = NodeTypeRegistry.default()
    assert reg.lookup("n8n-nodes-base.switch", 1).outputs == 4
    assert reg.lookup("n8n-nodes-base.switch", 2.0).outputs == 4
    assert reg.lookup("n8n-nodes-base.switch", 3).outputs == 1


@pytest.mark.parametrize("v,key", [(1, "1"), (1.0, "1"), ("2", "2"), (2.1, "2.1"), ("beta", "beta")])
def test_version_key(v, key):
    assert version_key(v) == key


@pytest.mark.parametrize("t,expected", [
    ("n8n-nodes-base.manualTrigger", True),
    ("n8n-nodes-acme.orderCreatedTrigger", True),
    ("n8n-nodes-base.webhook", True),
    ("n8n-nodes-base.respondToWebhook", False),
    ("n8n-nodes-base.set", False),
])
def test_unknown_type_trigger_fallback(t, expected):
    assert looks_like_trigger(t) is expected
    assert NodeTypeRegistry().lookup(t).trigger is expected


def test_registry_is_read_only():
    reg = NodeTypeRegistry.default()
    with pytest.raises(TypeError):
        DEFAULT_NODE_TYPES["x"] = NodeTypeSpec()
    merged = reg.merged({"acme.x": NodeTypeSpec(outputs=2)})
    assert "acme.x" in merged
    assert "acme.x" not in reg


def test_code_nodes_declare_their_source_fields():
    reg = NodeTypeRegistry.default()
    assert reg.lookup("n8n-nodes-base.code").code_fields == ("jsCode", "pythonCode")
    assert reg.lookup("n8n-nodes-base.function").code_fields == ("functionCode",)
    assert reg.lookup("n8n-nodes-base.noOp").code_fields == ()


def test_override_code_fields():
    reg = registry_from_dict({"types": {"acme.script": {"code_fields": ["source"]}}})
    assert reg.lookup("acme.script").code_fields == ("source",)


def test_overrides_extend_defaults():
    reg = registry_from_dict({"types": {"acme.approve": {"outputs": 2, "required": ["approver"]}}})
    assert reg.lookup("acme.approve") == NodeTypeSpec(outputs=2, required=("approver",))
    assert reg.lookup("n8n-nodes-base.if").outputs == 2


def test_replace_discards_defaults():
    reg = registry_from_dict({"replace": True, "types": {"acme.approve": {"terminal": True}}})
    assert len(reg) == 1
    assert reg.lookup("n8n-nodes-base.if").outputs == 1


@pytest.mark.parametrize("doc", [
    {},
    {"types": []},
    {"types": {"a.b": {"outputs": -1}}},
    {"types": {"a.b": {"required": "url"}}},
    {"types": {"a.b": {"colour": "red"}}},
    {"types": {"a.b": {"code_fields": "jsCode"}}},
    {"types": {}, "extra": 1},
])
def test_bad_override_documents(doc):
    with pytest.raises(MalformedRegistry):
        registry_from_dict(doc)


def test_load_registry_from_yaml_and_json(tmp_path):
    yp = tmp_path / "types.yaml"
    yp.write_text("types:\n  acme.gate:\n    outputs: 3\n", encoding="utf-8")
    jp = tmp_path / "types.json"
    jp.write_text(json.dumps({"types": {"acme.sink": {"terminal": True}}}), encoding="utf-8")

    assert load_registry(yp).lookup("acme.gate").outputs == 3
    assert load_registry(jp).lookup("acme.sink").terminal


def test_load_registry_errors(tmp_path):
    bad = tmp_path / "types.yaml"
    bad.write_text("types: [unclosed\n", encoding="utf-8")
    with pytest.raises(MalformedRegistry):
        load_registry(bad)
    with pytest.raises(MalformedRegistry):
        load_registry(tmp_path / "nope.json")


def test_to_dict_is_sorted_plain_data():
    d = NodeTypeRegistry({"b.y": NodeTypeSpec(), "a.x": NodeTypeSpec(required=("k",))}).to_dict()
    assert list(d) == ["a.x", "b.y"]
    assert d["a.x"] == {"outputs": 1, "required": ["k"], "trigger": False, "terminal": False, "code_fields": []}
