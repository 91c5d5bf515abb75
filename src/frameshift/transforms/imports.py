"""Import statement edits shared by the rewriting stages."""

import re
from typing import Any

from frameshift.analyzers.ast_parser import (
    ancestors,
    collect_imports,
    declared_names,
    find_all,
    references,
    statement_span,
)
from frameshift.models import SourceModule, TextEdit


def _named_imports_node(statement: Any) -> Any | None:
    for clause in statement.named_children:
        if clause.type == "import_clause":
            for part in clause.named_children:
                if part.type == "named_imports":
                    return part
    return None


def _import_statement(module: SourceModule, source: str, allow_type_only: bool = False) -> Any:
    for spec in collect_imports(module):
        if spec.source != source or (spec.type_only and not allow_type_only):
            continue
        for statement in module.root.named_children:
            if statement.start_byte == spec.span[0]:
                return statement
    return None


def _local_name(entry: str) -> str:
    return entry.split(" as ")[-1].strip()


def import_local_name(module: SourceModule, source: str, name: str) -> str:
    """Return the identifier to use for `name` imported from `source`.

    `name` itself, unless another import or declaration already binds it; then
    an alias prefixed with the package name, e.g. `remotionRandom`.
    """
    taken = declared_names(module, module.root)
    for spec in collect_imports(module):
        if spec.source == source and not spec.type_only and name in spec.named:
            return name
        taken.update(spec.named)
        taken.update(n for n in (spec.default, spec.namespace) if n)
    if name not in taken:
        return name
    prefix = re.sub(r"\W", "", source.rsplit("/", 1)[-1]) or "imported"
    return prefix + name[:1].upper() + name[1:]


def ensure_named_imports(module: SourceModule, source: str, names: list[str]) -> list[str]:
    """Make sure `names` are imported from `source`, adding them if needed.

    Only imports from `source` count; the same name imported from another
    package does not satisfy the requirement. Entries may be aliased
    (`"random as remotionRandom"`), see `import_local_name`.

    Args:
        module: Module to edit (reparsed when anything changes)
        source: Module specifier, e.g. "remotion"
        names: Named imports required

    Returns:
        Names that were added
    """
    imported: set[str] = set()
    for spec in collect_imports(module):
        if spec.source != source or spec.type_only:
            continue
        imported.update(spec.named)
        if spec.default:
            imported.add(spec.default)
    missing = [name for name in dict.fromkeys(names) if _local_name(name) not in imported]
    if not missing:
        return []

    statement = _import_statement(module, source)
    named = _named_imports_node(statement) if statement is not None else None

    if named is not None:
        specifiers = [c for c in named.named_children if c.type == "import_specifier"]
        if specifiers:
            anchor = specifiers[-1].end_byte
            module.apply_edits([TextEdit(anchor, anchor, "".join(f", {n}" for n in missing))])
        else:
            module.apply_edits(
                [TextEdit(named.start_byte, named.end_byte, "{ " + ", ".join(missing) + " }")]
            )
        return missing

    clause = None
    if statement is not None:
        clause = next((c for c in statement.named_children if c.type == "import_clause"), None)
    if clause is not None and [c.type for c in clause.named_children] == ["identifier"]:
        # `import React from 'react'` style: add a named clause after the default.
        module.apply_edits(
            [TextEdit(clause.end_byte, clause.end_byte, ", { " + ", ".join(missing) + " }")]
        )
        return missing

    line = f"import {{ {', '.join(missing)} }} from '{source}';\n"
    imports = [s for s in module.root.named_children if s.type == "import_statement"]
    if imports:
        anchor = imports[-1].end_byte
        module.apply_edits([TextEdit(anchor, anchor, "\n" + line.rstrip("\n"))])
    else:
        module.apply_edits([TextEdit(0, 0, line)])
    return missing


def remove_unused_named_imports(module: SourceModule, source: str, names: list[str]) -> list[str]:
    """Drop named imports from `source` that nothing references any more.

    An import left with no bindings is removed entirely.

    Args:
        module: Module to edit
        source: Module specifier, e.g. "react"
        names: Candidate names to drop

    Returns:
        Names that were removed
    """
    statement = _import_statement(module, source)
    if statement is None:
        return []
    named = _named_imports_node(statement)
    if named is None:
        return []

    specifiers = [c for c in named.named_children if c.type == "import_specifier"]
    removed: list[str] = []
    kept: list[str] = []
    for specifier in specifiers:
        local_node = specifier.child_by_field_name("alias")
        if local_node is None:
            local_node = specifier.child_by_field_name("name")
        local = module.text_of(local_node)
        if local in names and not references(module, local, exclude=statement):
            removed.append(local)
        else:
            kept.append(module.text_of(specifier))

    if not removed:
        return []

    clause = named.parent
    default = next((c for c in clause.named_children if c.type == "identifier"), None)

    if kept:
        edit = TextEdit(named.start_byte, named.end_byte, "{ " + ", ".join(kept) + " }")
    elif default is not None:
        edit = TextEdit(default.end_byte, named.end_byte, "")
    else:
        start, end = statement_span(module, statement)
        edit = TextEdit(start, end, "")

    module.apply_edits([edit])
    return removed


def ensure_default_import(module: SourceModule, source: str, name: str) -> bool:
    """Make sure `source` has a default (or namespace) import, adding `name` if not.

    Returns:
        True if the import was added
    """
    for spec in collect_imports(module):
        if spec.source == source and not spec.type_only and (spec.default or spec.namespace):
            return False

    statement = _import_statement(module, source)
    named = _named_imports_node(statement) if statement is not None else None
    if named is not None:
        module.apply_edits([TextEdit(named.start_byte, named.start_byte, f"{name}, ")])
    else:
        module.apply_edits([TextEdit(0, 0, f"import {name} from '{source}';\n")])
    return True


# =============================================================================
# Missing API imports
# =============================================================================

REMOTION_APIS: dict[str, str] = {
    # core
    "useCurrentFrame": "remotion",
    "useVideoConfig": "remotion",
    "AbsoluteFill": "remotion",
    "Sequence": "remotion",
    "Series": "remotion",
    "interpolate": "remotion",
    "interpolateColors": "remotion",
    "spring": "remotion",
    "Easing": "remotion",
    "Composition": "remotion",
    "registerRoot": "remotion",
    "staticFile": "remotion",
    "delayRender": "remotion",
    "continueRender": "remotion",
    "cancelRender": "remotion",
    # media
    "Audio": "remotion",
    "Video": "remotion",
    "Img": "remotion",
    "OffthreadVideo": "remotion",
    # companion packages
    "Lottie": "@remotion/lottie",
    "LottieAnimationData": "@remotion/lottie",
    "Player": "@remotion/player",
    "PlayerRef": "@remotion/player",
    "getLength": "@remotion/paths",
    "getPointAtLength": "@remotion/paths",
    "getSubpaths": "@remotion/paths",
    "getTangentAtLength": "@remotion/paths",
    "Trail": "@remotion/motion-blur",
    "zColor": "@remotion/zod-types",
}

_TYPE_DECLARATIONS = (
    "interface_declaration",
    "type_alias_declaration",
    "enum_declaration",
    "class",
    "type_parameter",
)


def _bound_names(module: SourceModule) -> set[str]:
    """Names the module declares or imports itself."""
    names = declared_names(module, module.root)
    for node in find_all(module.root, *_TYPE_DECLARATIONS):
        name = node.child_by_field_name("name")
        if name is not None:
            names.add(module.text_of(name))
    for spec in collect_imports(module):
        names.update(spec.named)
        names.update(n for n in (spec.default, spec.namespace) if n)
    return names


def add_missing_api_imports(module: SourceModule) -> dict[str, list[str]]:
    """Import the Remotion APIs a module uses but never imports.

    Only free references count: names declared or imported under the same
    name, `new Audio()` style constructor calls and anything inside
    import/export specifiers are skipped.

    Args:
        module: Module to edit

    Returns:
        Mapping of package to the names imported from it
    """
    bound = _bound_names(module)
    wanted: dict[str, list[str]] = {}
    for node in find_all(
        module.root, "identifier", "type_identifier", "shorthand_property_identifier"
    ):
        name = module.text_of(node)
        source = REMOTION_APIS.get(name)
        if source is None or name in bound:
            continue
        if node.parent is not None and node.parent.type == "new_expression":
            continue
        if any(a.type in ("import_statement", "export_specifier") for a in ancestors(node)):
            continue
        names = wanted.setdefault(source, [])
        if name not in names:
            names.append(name)

    added: dict[str, list[str]] = {}
    for source, names in wanted.items():
        new = ensure_named_imports(module, source, names)
        if new:
            added[source] = new
    return added
