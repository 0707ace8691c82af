"""Template variables: schema, value sources, store and resolution.

Quick usage::

    from projgen.variables import ValueSources, VariableStore, parse_schema, resolve_variables

    schema = parse_schema(manifest)
    store = VariableStore({"project_name": "demo"})
    resolve_variables(store, schema, ValueSources(definitions={"license": "MIT"}), silent=True)
"""

from projgen.variables.conditions import ConditionExpr, VisibilityGraph
from projgen.variables.resolver import coerce_value, resolve_variables
from projgen.variables.schema import (
    RESERVED_NAMES,
    ConditionalRules,
    PlaceholderDefinition,
    PlaceholderSchema,
    PromptFn,
    VarKind,
    parse_placeholders,
    parse_schema,
)
from projgen.variables.sources import (
    ValueSources,
    load_environment_values,
    load_values_file,
    parse_definitions,
)
from projgen.variables.store import Value, VariableStore

__all__ = [
    "ConditionExpr",
    "ConditionalRules",
    "PlaceholderDefinition",
    "PlaceholderSchema",
    "PromptFn",
    "RESERVED_NAMES",
    "Value",
    "ValueSources",
    "VarKind",
    "VariableStore",
    "VisibilityGraph",
    "coerce_value",
    "load_environment_values",
    "load_values_file",
    "parse_definitions",
    "parse_placeholders",
    "parse_schema",
    "resolve_variables",
]
