import json

import pytest

from grantlang.ast.payload import policy_from_payload, policy_to_payload, string_expr_to_payload
from grantlang.ast.policy import Concat, Literal, Var, Variable
from grantlang.errors.base import PayloadError
from grantlang.parser.core import parse_policy


SOURCE = (
    'allow read on table "Orders" where key_equals $pk concat(concat("T#", $caller.id), "#") '
    'where key_like $sk "ORDER#" with attributes []\n'
    'allow update on table "Orders" with attributes ["status"]\n'
    'allow delete on table "Orders"'
)


def test_payload_round_trip_through_json_text() -> None:
    policy = parse_policy(SOURCE)
    text = json.dumps(policy_to_payload(policy))
    assert policy_from_payload(json.loads(text)) == policy


def test_payload_keeps_none_and_empty_attributes_apart() -> None:
    payload = policy_to_payload(parse_policy(SOURCE))
    assert payload["kind"] == "composite"
    assert payload["atoms"][0]["attributes"] == []
    assert payload["atoms"][1]["attributes"] == ["status"]
    assert payload["atoms"][2]["attributes"] is None


def test_payload_keeps_concat_shape() -> None:
    expr = Concat(Concat(Literal("a"), Variable(Var(("x", "y")))), Literal("b"))
    payload = string_expr_to_payload(expr)
    assert payload["kind"] == "concat"
    assert payload["left"]["kind"] == "concat"
    assert payload["right"] == {"kind": "literal", "text": "b"}


def test_single_atom_payload() -> None:
    payload = policy_to_payload(parse_policy('allow create table "Users"'))
    assert payload == {
        "kind": "atom",
        "atoms": [
            {
                "action": "create",
                "resource": {"kind": "table", "name": "Users"},
                "filters": [],
                "attributes": None,
            }
        ],
    }


@pytest.mark.parametrize(
    "payload, message",
    [
        ({"kind": "composite", "atoms": []}, "at least two atoms"),
        ({"kind": "atom", "atoms": "nope"}, "must be a list"),
        ({"kind": "union", "atoms": []}, "Unknown policy kind"),
        (
            {"kind": "atom", "atoms": [{"action": "drop", "resource": {"kind": "table", "name": "T"}}]},
            "atom.action",
        ),
        (
            {"kind": "atom", "atoms": [{"action": "read", "resource": {"kind": "queue", "name": "T"}}]},
            "Unknown resource kind",
        ),
        (
            {
                "kind": "atom",
                "atoms": [
                    {
                        "action": "read",
                        "resource": {"kind": "table", "name": "T"},
                        "filters": [{"kind": "key_equals", "key": "pk", "value": {"kind": "variable", "path": []}}],
                    }
                ],
            },
            "variable.path",
        ),
    ],
)
def test_malformed_payloads_raise_payload_error(payload, message) -> None:
    with pytest.raises(PayloadError) as excinfo:
        policy_from_payload(payload)
    assert message in str(excinfo.value)
