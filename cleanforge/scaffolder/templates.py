"""Template model and Jinja2 rendering for scaffolding.

A :class:`TemplateUnit` is one code shape (an entity class, a repository
interface, an endpoint, ...) scoped to one layer and one artifact kind.  Its
body and output path are Jinja2 templates whose markers (``{{ EntityName }}``)
name the unit's declared :class:`TemplateSlot` objects.  Each slot has a
closed fill rule, so a slot that cannot be filled is reported as an error
rather than rendered as an empty string.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

from jinja2 import Environment, StrictUndefined, meta, select_autoescape
from pydantic import BaseModel, ConfigDict, Field, model_validator

from cleanforge.layers.graph import LayerId
from cleanforge.scaffolder import naming


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ArtifactKind(str, Enum):
    """What a template unit produces."""

    ENTITY = "Entity"
    INTERFACE = "Interface"
    IMPLEMENTATION = "Implementation"
    CONFIGURATION = "Configuration"
    ENDPOINT = "Endpoint"
    TEST = "Test"


class FillRule(str, Enum):
    """How a slot's value is derived from its source."""

    VERBATIM = "verbatim"
    PLURALIZE = "pluralize"
    CASE = "case"
    PROPERTY_LIST = "property-list"
    RELATIONSHIP_LIST = "relationship-list"


class SlotSource(str, Enum):
    """Which part of the schema (or generation context) feeds a slot."""

    ENTITY_NAME = "entity-name"
    NAMESPACE = "namespace"
    PROPERTIES = "properties"
    RELATIONSHIPS = "relationships"
    AGGREGATE_ROOT = "aggregate-root"


class CaseStyle(str, Enum):
    """Target casing for the ``case`` rule (and optionally ``pluralize``)."""

    PASCAL = "pascal"
    CAMEL = "camel"
    SNAKE = "snake"
    KEBAB = "kebab"

    def apply(self, value: str) -> str:
        return _CASE_FUNCTIONS[self](value)


_CASE_FUNCTIONS = {
    CaseStyle.PASCAL: naming.to_pascal,
    CaseStyle.CAMEL: naming.to_camel,
    CaseStyle.SNAKE: naming.to_snake,
    CaseStyle.KEBAB: naming.to_kebab,
}

_TEXT_SOURCES = {SlotSource.ENTITY_NAME, SlotSource.NAMESPACE}
_LIST_RULES = {
    FillRule.PROPERTY_LIST: SlotSource.PROPERTIES,
    FillRule.RELATIONSHIP_LIST: SlotSource.RELATIONSHIPS,
}
_SLOT_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


# ---------------------------------------------------------------------------
# Template model
# ---------------------------------------------------------------------------


class TemplateSlot(BaseModel):
    """A named placeholder and the rule that fills it."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Marker name used in the body, e.g. 'EntityName'")
    rule: FillRule = Field(default=FillRule.VERBATIM)
    source: SlotSource = Field(default=SlotSource.ENTITY_NAME)
    case: CaseStyle | None = Field(
        default=None, description="Casing for 'case' (required) and 'pluralize' (optional)"
    )
    line: str | None = Field(
        default=None,
        description="Jinja2 snippet rendered once per item for list rules",
    )

    @model_validator(mode="after")
    def _check_rule(self) -> TemplateSlot:
        if not _SLOT_NAME_RE.match(self.name):
            raise ValueError(f"slot name '{self.name}' is not a valid marker name")

        if self.rule in _LIST_RULES:
            expected = _LIST_RULES[self.rule]
            if self.source != expected:
                raise ValueError(
                    f"slot '{self.name}': rule '{self.rule.value}' requires "
                    f"source '{expected.value}'"
                )
            if not self.line:
                raise ValueError(f"slot '{self.name}': list rules need a 'line' snippet")
            return self

        if self.line is not None:
            raise ValueError(f"slot '{self.name}': 'line' is only valid for list rules")
        if self.rule == FillRule.CASE and self.case is None:
            raise ValueError(f"slot '{self.name}': rule 'case' needs a 'case' style")
        if self.rule == FillRule.VERBATIM:
            if self.case is not None:
                raise ValueError(f"slot '{self.name}': verbatim slots take no 'case'")
            if self.source in _LIST_RULES.values():
                raise ValueError(
                    f"slot '{self.name}': source '{self.source.value}' needs a list rule"
                )
        elif self.source not in _TEXT_SOURCES:
            raise ValueError(
                f"slot '{self.name}': rule '{self.rule.value}' needs a text source, "
                f"got '{self.source.value}'"
            )
        return self


class TemplateUnit(BaseModel):
    """One reusable code shape for one layer and one artifact kind."""

    model_config = ConfigDict(frozen=True)

    layer: LayerId
    kind: ArtifactKind
    path: str = Field(..., description="Jinja2 template for the artifact's relative path")
    slots: tuple[TemplateSlot, ...] = Field(default=())
    body: str = Field(..., description="Jinja2 template with slot markers")

    @model_validator(mode="after")
    def _check_slots(self) -> TemplateUnit:
        names = [slot.name for slot in self.slots]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"duplicate slot names: {', '.join(duplicates)}")
        return self

    @property
    def label(self) -> str:
        """Short human-readable identifier, used in error messages."""
        return f"{self.layer.value}/{self.kind.value} ({self.path})"

    def slot(self, name: str) -> TemplateSlot | None:
        for slot in self.slots:
            if slot.name == name:
                return slot
        return None

    def sources(self) -> set[SlotSource]:
        """Every schema part this unit needs."""
        return {slot.source for slot in self.slots}


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders in-memory Jinja2 templates with the scaffolding filters.

    Undefined names raise instead of rendering empty, so every marker in a
    body must be backed by a slot.
    """

    def __init__(self) -> None:
        self.env = Environment(
            autoescape=select_autoescape([]),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["pluralize"] = naming.pluralize
        self.env.filters["pascal_case"] = naming.to_pascal
        self.env.filters["camel_case"] = naming.to_camel
        self.env.filters["snake_case"] = naming.to_snake
        self.env.filters["kebab_case"] = naming.to_kebab
        self.env.filters["clr_type"] = _clr_type_filter

    def render_string(self, template_string: str, context: dict[str, Any]) -> str:
        """Render an inline template string with the provided context."""
        template = self.env.from_string(template_string)
        return template.render(**context)

    def undeclared_names(self, template_string: str) -> set[str]:
        """Names a template reads from its context (loop variables excluded)."""
        ast = self.env.parse(template_string)
        return set(meta.find_undeclared_variables(ast))


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

_CLR_TYPES: dict[str, str] = {
    "string": "string",
    "int": "int",
    "decimal": "decimal",
    "bool": "bool",
    "date": "DateTime",
    "guid": "Guid",
}


def _clr_type_filter(value: str, nullable: bool = False) -> str:
    """Map a canonical property type to its C# spelling.

    Entity references pass through unchanged.
    """
    clr = _CLR_TYPES.get(value, value)
    return f"{clr}?" if nullable else clr
