"""Validation pipeline and diagnostic parsers."""

from toolkernel.validation.parsers import Diagnostic, parse_build_output, parse_type_check_output
from toolkernel.validation.pipeline import StageReport, ValidationPipeline, ValidationReport

__all__ = [
    "Diagnostic",
    "StageReport",
    "ValidationPipeline",
    "ValidationReport",
    "parse_build_output",
    "parse_type_check_output",
]
