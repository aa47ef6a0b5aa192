"""
grantlang: a declarative access-policy language compiled to IAM-style policy documents.
"""

from __future__ import annotations

from grantlang.pipeline.annotations import policy

__all__ = ["policy"]
