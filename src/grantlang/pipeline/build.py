from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from grantlang.compiler.base import PolicyCompiler
from grantlang.compiler.iam import IamPolicyCompiler
from grantlang.config.loader import registry_path
from grantlang.config.model import AppConfig
from grantlang.errors.base import GrammarError, GrantlangError, StorageError
from grantlang.errors.guidance import guidance_summary
from grantlang.parser.core import Parser
from grantlang.persistence.registry import PolicyRegistry, RegistryEntry
from grantlang.persistence.store import DirectoryStore
from grantlang.pipeline.annotations import AnnotatedUnit


logger = logging.getLogger(__name__)


@dataclass
class UnitOutcome:
    function_id: str
    ok: bool
    changed: bool = False
    errors: list[GrantlangError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    source: str = ""

    def as_dict(self) -> dict:
        return {
            "function_id": self.function_id,
            "ok": self.ok,
            "changed": self.changed,
            "errors": [_error_payload(err) for err in self.errors],
            "warnings": list(self.warnings),
        }


@dataclass
class BuildReport:
    outcomes: list[UnitOutcome] = field(default_factory=list)
    scan_errors: list[GrantlangError] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    persisted: list[str] = field(default_factory=list)
    diagnostics: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.scan_errors and all(outcome.ok for outcome in self.outcomes)

    @property
    def failed(self) -> list[UnitOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    def as_dict(self) -> dict:
        return {
            "ok": self.ok,
            "units": [outcome.as_dict() for outcome in self.outcomes],
            "scan_errors": [_error_payload(err) for err in self.scan_errors],
            "removed": list(self.removed),
            "persisted": list(self.persisted),
            "diagnostics": list(self.diagnostics),
        }


class BuildPipeline:
    """Parse, compile and register the policy of every annotated unit.

    A failing unit is reported and skipped; its previously persisted record
    is left untouched and the remaining units still build. With ``prune``
    the registry is rebuilt from this run: records of function ids that were
    not seen are removed. Pruning is skipped when scanning itself reported
    errors, since units in unreadable files were not seen.
    """

    def __init__(
        self,
        registry: PolicyRegistry,
        compiler: PolicyCompiler,
        *,
        strict: bool = True,
        prune: bool = False,
    ) -> None:
        self.registry = registry
        self.compiler = compiler
        self.strict = strict
        self.prune = prune

    def build_unit(self, unit: AnnotatedUnit) -> UnitOutcome:
        outcome = UnitOutcome(function_id=unit.function_id, ok=False, source=unit.source)
        try:
            parser = Parser.from_source(unit.source, strict=self.strict)
            policy = parser.parse_policy()
        except GrammarError as err:
            outcome.errors.append(_tag(err, unit))
            return outcome
        if parser.truncated is not None:
            outcome.warnings.append(
                f"Ignored policy text from line {parser.truncated.line}: {guidance_summary(str(parser.truncated))}"
            )
        result = self.compiler.compile_document(policy)
        if not result.ok:
            outcome.errors.extend(_tag(err, unit) for err in result.errors)
            return outcome
        entry = RegistryEntry(
            function_id=unit.function_id,
            policy=policy,
            document=result.document,
            source=unit.source,
        )
        try:
            outcome.changed = self.registry.upsert(unit.function_id, entry)
        except StorageError as err:
            outcome.errors.append(_tag(err, unit))
            return outcome
        outcome.ok = True
        return outcome

    def run(self, units: Iterable[AnnotatedUnit], *, scan_errors: Iterable[GrantlangError] = ()) -> BuildReport:
        report = BuildReport(scan_errors=list(scan_errors), diagnostics=list(self.registry.diagnostics))
        seen: list[str] = []
        for unit in units:
            outcome = self.build_unit(unit)
            report.outcomes.append(outcome)
            seen.append(unit.function_id)
            if outcome.ok:
                logger.info("Built policy for %s", unit.function_id)
            else:
                logger.warning(
                    "Policy for %s failed: %s",
                    unit.function_id,
                    "; ".join(guidance_summary(str(err)) for err in outcome.errors),
                )
        if self.prune:
            if report.scan_errors:
                logger.warning("Skipping registry pruning: %d scan error(s)", len(report.scan_errors))
            else:
                report.removed = self.registry.retain(seen)
        report.persisted = self.registry.persist()
        return report


def pipeline_from_config(
    config: AppConfig,
    *,
    root: Path | None = None,
    prune: bool | None = None,
) -> BuildPipeline:
    store = DirectoryStore(registry_path(config, root))
    registry = PolicyRegistry.load(store)
    return BuildPipeline(
        registry,
        IamPolicyCompiler.from_config(config),
        strict=config.parser.strict,
        prune=config.registry.prune if prune is None else prune,
    )


def _tag(err: GrantlangError, unit: AnnotatedUnit) -> GrantlangError:
    err.details.setdefault("function_id", unit.function_id)
    if unit.file:
        err.details.setdefault("file", unit.file)
    return err


def _error_payload(err: GrantlangError) -> dict:
    return {
        "kind": type(err).__name__,
        "message": str(err),
        "line": err.line,
        "column": err.column,
        "details": {key: value for key, value in err.details.items() if _is_plain(value)},
    }


def _is_plain(value: object) -> bool:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return True
    if isinstance(value, (list, tuple)):
        return all(_is_plain(item) for item in value)
    return False


__all__ = ["BuildPipeline", "BuildReport", "UnitOutcome", "pipeline_from_config"]
