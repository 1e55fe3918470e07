"""
Plain-text summary of a generation result.
"""

from __future__ import annotations

from pathlib import Path

import jinja2

from .analyzer.type_resolver import TypeReference
from .generator import GenerationResult

TEMPLATE_DIR = Path(__file__).parent / "templates"
REPORT_TEMPLATE = "report.txt.jinja2"


def type_label(type_ref: TypeReference | None) -> str:
    """Short human label of a TypeReference, e.g. "array<Pet>?"."""
    if type_ref is None:
        return "any"
    label = type_ref.name
    if type_ref.element is not None:
        label = f"{label}<{type_label(type_ref.element)}>"
    if type_ref.is_nullable:
        label += "?"
    return label


def _environment() -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
        lstrip_blocks=True,
        trim_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["type_label"] = type_label
    return env


def render_report(result: GenerationResult, title: str = "OpenAPI descriptors") -> str:
    """
    Render a generation result as a plain-text report.

    Args:
        result: The generation result
        title: Heading of the report

    Returns:
        The report text
    """
    template = _environment().get_template(REPORT_TEMPLATE)
    return template.render(title=title, result=result)
