import json

import pytest

from grantlang.compiler.context import CompileContext
from grantlang.compiler.iam import IamPolicyCompiler, IamSettings
from grantlang.config.model import AppConfig
from grantlang.errors.base import CompileError, ResolutionError
from grantlang.parser.core import parse_policy


def test_single_atom_document(compiler: IamPolicyCompiler) -> None:
    document = json.loads(compiler.compile_policy(parse_policy('allow create table "Users"')))
    assert document == {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Sid": "Atom0",
                "Effect": "Allow",
                "Action": ["dynamodb:PutItem"],
                "Resource": ["arn:aws:dynamodb:*:*:table/Users"],
            }
        ],
    }


def test_composite_yields_one_statement_per_atom(compiler: IamPolicyCompiler) -> None:
    policy = parse_policy(
        'allow create table "A"\n'
        'allow read table "B"\n'
        'allow update table "C"\n'
        'allow delete table "D"'
    )
    statements = json.loads(compiler.compile_policy(policy))["Statement"]
    assert len(statements) == 4
    assert [item["Sid"] for item in statements] == ["Atom0", "Atom1", "Atom2", "Atom3"]
    assert [item["Resource"][0].rsplit("/", 1)[1] for item in statements] == ["A", "B", "C", "D"]
    assert statements[1]["Action"] == ["dynamodb:GetItem", "dynamodb:Query", "dynamodb:BatchGetItem"]
    assert all(item["Effect"] == "Allow" for item in statements)


def test_output_is_byte_identical_across_runs(compiler: IamPolicyCompiler) -> None:
    source = 'allow read table "Users" where key_equals $pk concat("USER#", $caller.id) with attributes ["b", "a"]'
    first = compiler.compile_policy(parse_policy(source))
    second = IamPolicyCompiler().compile_policy(parse_policy(source))
    assert first == second
    assert first.endswith("\n")


def test_key_filters_become_conditions(compiler: IamPolicyCompiler) -> None:
    policy = parse_policy('allow read table "Users" where key_equals $pk "USER#123" where key_like $sk "PROFILE#"')
    statement = compiler.compile_document(policy).document["Statement"][0]
    assert statement["Condition"] == {
        "ForAllValues:StringEquals": {"dynamodb:LeadingKeys": ["USER#123"]},
        "ForAllValues:StringLike": {"grantlang:SortKey": ["PROFILE#*"]},
    }


def test_key_like_keeps_explicit_wildcards(compiler: IamPolicyCompiler) -> None:
    policy = parse_policy('allow read table "Users" where key_like $pk "USER#?#*"')
    statement = compiler.compile_document(policy).document["Statement"][0]
    assert statement["Condition"]["ForAllValues:StringLike"]["dynamodb:LeadingKeys"] == ["USER#?#*"]


def test_concat_resolves_left_to_right_into_one_token(compiler: IamPolicyCompiler) -> None:
    policy = parse_policy('allow read table "Users" where key_equals $pk concat(concat("A", $caller.id), "Z")')
    statement = compiler.compile_document(policy).document["Statement"][0]
    assert statement["Condition"]["ForAllValues:StringEquals"]["dynamodb:LeadingKeys"] == ["A${aws:userid}Z"]


def test_static_variables_are_substituted() -> None:
    compiler = IamPolicyCompiler(context=CompileContext.from_mappings(static={"app.tenant": "acme"}))
    policy = parse_policy('allow read table "Users" where key_equals $pk concat($app.tenant, "#")')
    statement = compiler.compile_document(policy).document["Statement"][0]
    assert statement["Condition"]["ForAllValues:StringEquals"]["dynamodb:LeadingKeys"] == ["acme#"]


def test_dollar_in_literal_text_is_not_a_policy_variable(compiler: IamPolicyCompiler) -> None:
    policy = parse_policy('allow read table "Users" where key_equals $pk concat("USER#${aws:username}#", $caller.id)')
    statement = compiler.compile_document(policy).document["Statement"][0]
    assert statement["Condition"]["ForAllValues:StringEquals"]["dynamodb:LeadingKeys"] == [
        "USER#${$}{aws:username}#${aws:userid}"
    ]


def test_dollar_in_static_value_is_escaped_but_dynamic_placeholder_is_not() -> None:
    context = CompileContext.from_mappings(
        static={"app.tenant": "acme$corp"},
        dynamic={"caller.org": "${aws:PrincipalOrgID}"},
    )
    compiler = IamPolicyCompiler(context=context)
    policy = parse_policy('allow read table "Users" where key_equals $pk concat($app.tenant, $caller.org)')
    statement = compiler.compile_document(policy).document["Statement"][0]
    assert statement["Condition"]["ForAllValues:StringEquals"]["dynamodb:LeadingKeys"] == [
        "acme${$}corp${aws:PrincipalOrgID}"
    ]


def test_dollar_in_attribute_name_is_escaped(compiler: IamPolicyCompiler) -> None:
    policy = parse_policy('allow read table "Users" with attributes ["$meta", "email"]')
    condition = compiler.compile_document(policy).document["Statement"][0]["Condition"]
    assert condition["ForAllValues:StringEquals"]["dynamodb:Attributes"] == ["${$}meta", "email"]


def test_read_projection_restricts_attributes_and_select(compiler: IamPolicyCompiler) -> None:
    policy = parse_policy('allow read table "Users" with attributes ["full_name","email"]')
    condition = compiler.compile_document(policy).document["Statement"][0]["Condition"]
    assert condition["ForAllValues:StringEquals"]["dynamodb:Attributes"] == ["full_name", "email"]
    assert condition["StringEqualsIfExists"] == {"dynamodb:Select": ["SPECIFIC_ATTRIBUTES"]}


def test_write_projection_restricts_return_values(compiler: IamPolicyCompiler) -> None:
    policy = parse_policy('allow update table "Users" with attributes ["email"]')
    condition = compiler.compile_document(policy).document["Statement"][0]["Condition"]
    assert condition["StringEqualsIfExists"] == {"dynamodb:ReturnValues": ["NONE", "UPDATED_NEW", "UPDATED_OLD"]}


def test_empty_projection_is_kept_as_empty_list(compiler: IamPolicyCompiler) -> None:
    policy = parse_policy('allow read table "Users" with attributes []')
    condition = compiler.compile_document(policy).document["Statement"][0]["Condition"]
    assert condition["ForAllValues:StringEquals"]["dynamodb:Attributes"] == []


def test_no_projection_means_no_condition(compiler: IamPolicyCompiler) -> None:
    statement = compiler.compile_document(parse_policy('allow read table "Users"')).document["Statement"][0]
    assert "Condition" not in statement


def test_unknown_variable_fails_only_its_atom(compiler: IamPolicyCompiler) -> None:
    policy = parse_policy(
        'allow create table "A"\n'
        'allow read table "B" where key_equals $pk $request.header\n'
        'allow delete table "C"'
    )
    result = compiler.compile_document(policy)
    assert not result.ok
    assert [item["Sid"] for item in result.document["Statement"]] == ["Atom0", "Atom2"]
    assert len(result.errors) == 1
    err = result.errors[0]
    assert isinstance(err, ResolutionError)
    assert err.details["atom_index"] == 1
    assert err.details["variable"] == "request.header"
    assert (err.line, err.column) == (2, 43)


def test_compile_policy_raises_with_every_atom_error(compiler: IamPolicyCompiler) -> None:
    policy = parse_policy(
        'allow read table "A" where key_equals $pk $x.y\n'
        'allow read table "B" where key_equals $pk $z.w'
    )
    with pytest.raises(CompileError) as excinfo:
        compiler.compile_policy(policy)
    assert "2 of 2" in str(excinfo.value)
    assert [err.details["atom_index"] for err in excinfo.value.errors] == [0, 1]


def test_repeated_key_constraint_is_a_resolution_error(compiler: IamPolicyCompiler) -> None:
    policy = parse_policy('allow read table "A" where key_equals $pk "x" where key_equals $pk "y"')
    result = compiler.compile_document(policy)
    assert result.document["Statement"] == []
    assert result.errors[0].details["key"] == "pk"


def test_settings_shape_resource_arn_and_sid() -> None:
    compiler = IamPolicyCompiler(
        settings=IamSettings(partition="aws-cn", region="cn-north-1", account="123456789012", sid_prefix="Orders")
    )
    statement = compiler.compile_document(parse_policy('allow read table "Orders"')).document["Statement"][0]
    assert statement["Resource"] == ["arn:aws-cn:dynamodb:cn-north-1:123456789012:table/Orders"]
    assert statement["Sid"] == "OrdersAtom0"


def test_from_config_uses_variables_and_settings() -> None:
    config = AppConfig()
    config.compiler.region = "eu-west-1"
    config.variables.dynamic = {"caller.org": "${aws:PrincipalOrgID}"}
    compiler = IamPolicyCompiler.from_config(config)
    policy = parse_policy('allow read table "T" where key_equals $pk concat($caller.org, $caller.id)')
    statement = compiler.compile_document(policy).document["Statement"][0]
    assert statement["Resource"] == ["arn:aws:dynamodb:eu-west-1:*:table/T"]
    assert statement["Condition"]["ForAllValues:StringEquals"]["dynamodb:LeadingKeys"] == [
        "${aws:PrincipalOrgID}${aws:userid}"
    ]
