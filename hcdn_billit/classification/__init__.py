"""
Classification package.

Infers a bill's legislative stage from its dictums, procedures, law number
and creation date.
"""

from .classifier import classify, infer_stage, build_context
from .rules import (
    RULES,
    ChamberRelation,
    ClassificationContext,
    DIRECTIVE_STAGES,
    project_duration,
)

__all__ = [
    "classify",
    "infer_stage",
    "build_context",
    "RULES",
    "ChamberRelation",
    "ClassificationContext",
    "DIRECTIVE_STAGES",
    "project_duration",
]
