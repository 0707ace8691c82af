"""Give every visible placeholder a value.

Placeholders are resolved in visibility-graph order, so a placeholder's guard
is only evaluated once everything it reads has been settled.  Candidates come
from the provided-value layers first, then the schema default (silent mode)
or an interactive prompt with the default pre-selected.
"""

from __future__ import annotations

from ..errors import ResolutionError, ResolutionErrorCode
from .schema import PlaceholderDefinition, PlaceholderSchema, PromptFn, VarKind, is_reserved
from .sources import ValueSources
from .store import Value, VariableStore, kind_name

_TRUE_STRINGS = frozenset({"true", "yes", "y", "1"})
_FALSE_STRINGS = frozenset({"false", "no", "n", "0"})


def coerce_value(definition: PlaceholderDefinition, value: Value, source: str) -> Value:
    """Convert *value* to the placeholder's kind and validate it.

    Strings such as ``"true"`` or ``"no"`` are accepted for bool placeholders,
    since command-line and environment values are always strings.

    Raises:
        ResolutionError: If the value cannot be converted or is rejected by
            the placeholder's choices or regex.
    """
    if definition.kind is VarKind.BOOL and isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            value = True
        elif lowered in _FALSE_STRINGS:
            value = False
    reason = definition.accepts(value)
    if reason is not None:
        raise ResolutionError(
            ResolutionErrorCode.INVALID_VALUE, definition.name, f"{source} value rejected: {reason}"
        )
    return value


def _resolve_one(
    definition: PlaceholderDefinition,
    sources: ValueSources,
    prompt_fn: PromptFn | None,
    silent: bool,
) -> Value:
    found = sources.lookup(definition.name)
    if found is not None:
        value, source = found
        return coerce_value(definition, value, source)

    if silent or prompt_fn is None:
        if definition.default is not None:
            return definition.default
        raise ResolutionError(
            ResolutionErrorCode.MISSING_VALUE,
            definition.name,
            "no value was provided and the placeholder has no default "
            "(prompting is disabled)",
        )
    return coerce_value(definition, prompt_fn(definition), "prompted")


def resolve_variables(
    store: VariableStore,
    schema: PlaceholderSchema,
    sources: ValueSources,
    prompt_fn: PromptFn | None = None,
    *,
    silent: bool = False,
) -> None:
    """Resolve every visible placeholder of *schema* into *store*.

    Placeholders whose guard is false are skipped entirely: they are neither
    prompted for nor bound.  A placeholder that already has a value (set by
    an init hook, say) keeps it after validation, converted to the
    placeholder's kind (a hook's ``"false"`` becomes ``False``).  Provided
    values that do not name any placeholder are added last so templates can
    still use them.

    Work happens on a copy of *store*; if anything fails, nothing is
    committed.

    Raises:
        ResolutionError: For a missing or invalid value, a missing guard
            dependency, or a cyclic visibility dependency.
    """
    staged = store.copy()
    normalized: dict[str, Value] = {}

    for definition in schema.ordered():
        guard = definition.visible_when
        if guard is not None and not guard.evaluate(staged.bindings()):
            continue
        if definition.name in staged:
            existing = staged[definition.name]
            value = coerce_value(definition, existing, "existing")
            if kind_name(value) != kind_name(existing):
                staged.normalize(definition.name, value)
                normalized[definition.name] = value
            continue
        staged.set(definition.name, _resolve_one(definition, sources, prompt_fn, silent))

    for name, (value, _source) in sources.provided().items():
        if name not in schema.placeholders and not is_reserved(name):
            staged.insert(name, value)

    for name, value in normalized.items():
        store.normalize(name, value)
    store.update(staged)
