from __future__ import annotations

from grantlang.pipeline.annotations import AnnotatedUnit, declared_policies, policy, units_from_functions
from grantlang.pipeline.build import BuildPipeline, BuildReport, UnitOutcome, pipeline_from_config
from grantlang.pipeline.scan import ScanResult, scan_path, scan_source

__all__ = [
    "AnnotatedUnit",
    "BuildPipeline",
    "BuildReport",
    "ScanResult",
    "UnitOutcome",
    "declared_policies",
    "pipeline_from_config",
    "policy",
    "scan_path",
    "scan_source",
    "units_from_functions",
]
