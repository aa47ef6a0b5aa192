from __future__ import annotations

from dataclasses import dataclass, field

from grantlang.ast.policy import Action, Key, KeyEquals, KeyLike, Policy, PolicyAtom, Resource, Table
from grantlang.compiler.base import CompileResult
from grantlang.compiler.context import CompileContext, escape_policy_text
from grantlang.config.model import AppConfig
from grantlang.determinism import canonical_json_dumps
from grantlang.errors.base import CompileError, ResolutionError
from grantlang.errors.guidance import build_guidance_message


IAM_POLICY_VERSION = "2012-10-17"

ACTION_PERMISSIONS = {
    Action.CREATE: ("dynamodb:PutItem",),
    Action.READ: ("dynamodb:GetItem", "dynamodb:Query", "dynamodb:BatchGetItem"),
    Action.UPDATE: ("dynamodb:UpdateItem",),
    Action.DELETE: ("dynamodb:DeleteItem",),
}

KEY_CONDITION_KEYS = {
    Key.PK: "dynamodb:LeadingKeys",
    Key.SK: "grantlang:SortKey",
}

ATTRIBUTES_CONDITION_KEY = "dynamodb:Attributes"
EQUALS_OPERATOR = "ForAllValues:StringEquals"
LIKE_OPERATOR = "ForAllValues:StringLike"
IF_EXISTS_OPERATOR = "StringEqualsIfExists"
WRITE_RETURN_VALUES = ("NONE", "UPDATED_NEW", "UPDATED_OLD")


@dataclass(frozen=True)
class IamSettings:
    partition: str = "aws"
    region: str = "*"
    account: str = "*"
    sid_prefix: str = ""

    def table_arn(self, name: str) -> str:
        return f"arn:{self.partition}:dynamodb:{self.region}:{self.account}:table/{name}"


@dataclass
class IamPolicyCompiler:
    """Lowers policies into IAM-style JSON documents for DynamoDB tables.

    One ``Allow`` statement per atom, in atom order, with ``Sid`` set to
    ``<prefix>Atom<index>``. Atoms are compiled independently; a failing atom
    is reported in ``CompileResult.errors`` and left out of the document.
    """

    context: CompileContext = field(default_factory=CompileContext)
    settings: IamSettings = field(default_factory=IamSettings)
    target: str = "iam"

    @classmethod
    def from_config(cls, config: AppConfig) -> "IamPolicyCompiler":
        context = CompileContext.from_mappings(static=config.variables.static, dynamic=config.variables.dynamic)
        settings = IamSettings(
            partition=config.compiler.partition,
            region=config.compiler.region,
            account=config.compiler.account,
            sid_prefix=config.compiler.sid_prefix,
        )
        return cls(context=context, settings=settings)

    def compile_document(self, policy: Policy) -> CompileResult:
        statements: list[dict] = []
        errors: list[ResolutionError] = []
        for index, atom in enumerate(policy.atoms):
            try:
                statements.append(self.compile_atom(atom, index))
            except ResolutionError as err:
                err.details["atom_index"] = index
                errors.append(err)
        document = {"Version": IAM_POLICY_VERSION, "Statement": statements}
        return CompileResult(document=document, errors=tuple(errors))

    def compile_policy(self, policy: Policy) -> str:
        result = self.compile_document(policy)
        if result.errors:
            total = len(policy.atoms)
            raise CompileError(
                f"{len(result.errors)} of {total} policy atom(s) failed to compile.",
                errors=list(result.errors),
            )
        return canonical_json_dumps(result.document)

    def compile_atom(self, atom: PolicyAtom, index: int) -> dict:
        statement: dict = {
            "Sid": f"{self.settings.sid_prefix}Atom{index}",
            "Effect": "Allow",
            "Action": list(ACTION_PERMISSIONS[atom.action]),
            "Resource": [self._resource_arn(atom.resource)],
        }
        condition = self._condition(atom)
        if condition:
            statement["Condition"] = condition
        return statement

    def _resource_arn(self, resource: Resource) -> str:
        if isinstance(resource, Table):
            return self.settings.table_arn(resource.name)
        raise ResolutionError(
            f"The {self.target} target has no mapping for {type(resource).__name__} resources.",
            line=resource.line,
            column=resource.column,
        )

    def _condition(self, atom: PolicyAtom) -> dict[str, dict[str, list[str]]]:
        condition: dict[str, dict[str, list[str]]] = {}
        for item in atom.filters:
            condition_key = KEY_CONDITION_KEYS[item.key]
            if isinstance(item, KeyEquals):
                operator = EQUALS_OPERATOR
                value = self.context.resolve_string(item.value)
            elif isinstance(item, KeyLike):
                operator = LIKE_OPERATOR
                value = _prefix_pattern(self.context.resolve_string(item.pattern))
            else:
                raise ResolutionError(f"Unsupported filter {type(item).__name__}", line=item.line, column=item.column)
            block = condition.setdefault(operator, {})
            if condition_key in block:
                raise ResolutionError(
                    build_guidance_message(
                        what=f"{item.key.reference} is constrained by {item.operator} more than once.",
                        why="Filters are conjunctive and an IAM condition key holds one value set per operator.",
                        fix="Merge the constraints into a single filter.",
                        example=f'where {item.operator} {item.key.reference} "USER#123"',
                    ),
                    line=item.line,
                    column=item.column,
                    details={"key": item.key.value, "operator": item.operator},
                )
            block[condition_key] = [value]
        if atom.attributes is not None:
            condition.setdefault(EQUALS_OPERATOR, {})[ATTRIBUTES_CONDITION_KEY] = [
                escape_policy_text(name) for name in atom.attributes
            ]
            if atom.action is Action.READ:
                condition.setdefault(IF_EXISTS_OPERATOR, {})["dynamodb:Select"] = ["SPECIFIC_ATTRIBUTES"]
            else:
                condition.setdefault(IF_EXISTS_OPERATOR, {})["dynamodb:ReturnValues"] = list(WRITE_RETURN_VALUES)
        return condition


def _prefix_pattern(pattern: str) -> str:
    if "*" in pattern or "?" in pattern:
        return pattern
    return pattern + "*"


__all__ = [
    "ACTION_PERMISSIONS",
    "IAM_POLICY_VERSION",
    "IamPolicyCompiler",
    "IamSettings",
    "KEY_CONDITION_KEYS",
]
