"""Structure preservation.

Regions that rewriting could corrupt are fenced off before the other stages
run and restored verbatim afterwards:
- contents of inline <style>/<script> expressions
- template literals with ${} interpolation

After the rewrite the timeline wrapper element is unwrapped, interpolation-free
template literals become plain strings, fences are restored and, as a last
resort, missing closing delimiters are appended.
"""

import logging
from typing import Any

from frameshift.analyzers.ast_parser import find_all, unclosed_delimiters
from frameshift.config import FrameshiftConfig
from frameshift.models import NoticeKind, SourceModule, TextEdit
from frameshift.transforms.base import TransformStage
from frameshift.transforms.imports import remove_unused_named_imports
from frameshift.utils.logging import get_logger

_logger = get_logger()

FENCE_PREFIX = "__frameshift_fence_"
RAW_TEXT_ELEMENTS = ("style", "script")
JSX_CHILD_PARENTS = ("jsx_element", "jsx_fragment")


def _element_name(module: SourceModule, node: Any) -> str | None:
    tag = node if node.type == "jsx_self_closing_element" else node.child_by_field_name("open_tag")
    if tag is None:
        return None
    name = tag.child_by_field_name("name")
    return module.text_of(name) if name is not None else None


def _is_tagged(node: Any) -> bool:
    parent = node.parent
    return parent is not None and parent.type == "call_expression" and (
        parent.child_by_field_name("arguments") is not None
        and parent.child_by_field_name("arguments").start_byte == node.start_byte
    )


def to_double_quoted(template: str) -> str:
    """Rewrite the body of a template literal without ${} as a "..." string."""
    out = []
    escaped = False
    for char in template:
        if escaped:
            out.append(char if char in "`$" else "\\" + char)
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == '"':
            out.append('\\"')
        elif char == "\n":
            out.append("\\n")
        elif char == "\r":
            out.append("\\r")
        else:
            out.append(char)
    if escaped:
        out.append("\\\\")
    return '"' + "".join(out) + '"'


class StructurePreserver(TransformStage):
    """Guards fragile regions and repairs the module's outer structure."""

    name = "structure"

    def __init__(self, config: FrameshiftConfig | None = None) -> None:
        self.config = config or FrameshiftConfig()

    # -- before rewriting -----------------------------------------------------

    def guard(self, module: SourceModule) -> int:
        """Replace fragile regions with fence identifiers.

        Returns:
            Number of regions fenced
        """
        regions: list[tuple[int, int]] = []
        for element in find_all(module.root, "jsx_element"):
            if _element_name(module, element) not in RAW_TEXT_ELEMENTS:
                continue
            for child in element.named_children:
                if child.type != "jsx_expression" or not child.named_children:
                    continue
                inner = child.named_children
                regions.append((inner[0].start_byte, inner[-1].end_byte))

        for template in find_all(module.root, "template_string"):
            if _is_tagged(template):
                continue
            if not any(c.type == "template_substitution" for c in template.named_children):
                continue
            if any(start <= template.start_byte < end for start, end in regions):
                continue
            regions.append((template.start_byte, template.end_byte))

        edits = []
        for start, end in sorted(regions):
            if any(s < start and end <= e for s, e in regions if (s, e) != (start, end)):
                continue
            fence = f"{FENCE_PREFIX}{len(module.fences)}__"
            module.fences[fence] = module.slice(start, end)
            edits.append(TextEdit(start, end, fence))
        module.apply_edits(edits)
        if edits:
            _logger.debug(f"Fenced {len(edits)} template/style region(s)")
        return len(edits)

    # -- after rewriting ------------------------------------------------------

    def apply(self, module: SourceModule) -> None:
        """Unwrap the wrapper, downgrade plain templates, restore fences, balance."""
        self.unwrap(module)
        self.downgrade_templates(module)
        self.restore(module)
        self.balance(module)

    def unwrap(self, module: SourceModule) -> int:
        """Replace wrapper elements with their children or component prop."""
        wrapper = self.config.output.wrapper_element
        count = 0
        while True:
            edits = []
            for element in find_all(module.root, "jsx_element", "jsx_self_closing_element"):
                if _element_name(module, element) != wrapper:
                    continue
                replacement = self._unwrapped(module, element)
                edits.append(TextEdit(element.start_byte, element.end_byte, replacement))
            if not edits:
                break
            count += module.apply_edits(edits)

        if count:
            remove_unused_named_imports(module, "remotion", [wrapper])
            _logger.debug(f"Unwrapped {count} <{wrapper}> element(s)")
        return count

    def _unwrapped(self, module: SourceModule, element: Any) -> str:
        in_children = element.parent is not None and element.parent.type in JSX_CHILD_PARENTS

        if element.type == "jsx_element":
            children = [
                c
                for c in element.named_children
                if c.type not in ("jsx_opening_element", "jsx_closing_element")
                and not (c.type == "jsx_text" and not module.text_of(c).strip())
            ]
            if children:
                text = module.slice(children[0].start_byte, children[-1].end_byte)
                if in_children:
                    return text
                if len(children) == 1 and children[0].type in (
                    "jsx_element",
                    "jsx_self_closing_element",
                    "jsx_fragment",
                ):
                    return text
                return f"<>{text}</>"
            tag = element.child_by_field_name("open_tag")
        else:
            tag = element

        component = self._component_prop(module, tag) if tag is not None else None
        if component is None:
            return "" if in_children else "null"
        if in_children and not component.startswith("<"):
            return "{" + component + "}"
        return component

    def _component_prop(self, module: SourceModule, tag: Any) -> str | None:
        for attribute in tag.named_children:
            if attribute.type != "jsx_attribute" or not attribute.named_children:
                continue
            if module.text_of(attribute.named_children[0]) != "component":
                continue
            if len(attribute.named_children) < 2:
                return None
            value = attribute.named_children[1]
            if value.type == "jsx_expression" and value.named_children:
                value = value.named_children[0]
            if value.type in ("identifier", "member_expression"):
                return f"<{module.text_of(value)} />"
            if value.type == "arrow_function":
                body = value.child_by_field_name("body")
                if body is not None and body.type != "statement_block":
                    inner = body
                    while inner.type == "parenthesized_expression" and inner.named_children:
                        inner = inner.named_children[0]
                    return module.text_of(inner)
            return f"({module.text_of(value)})()"
        return None

    def downgrade_templates(self, module: SourceModule) -> int:
        """Turn untagged template literals without ${} into double-quoted strings."""
        edits = []
        for template in find_all(module.root, "template_string"):
            if _is_tagged(template):
                continue
            if any(c.type == "template_substitution" for c in template.named_children):
                continue
            text = module.text_of(template)
            edits.append(
                TextEdit(template.start_byte, template.end_byte, to_double_quoted(text[1:-1]))
            )
        return module.apply_edits(edits)

    def restore(self, module: SourceModule) -> None:
        """Put fenced regions back verbatim."""
        if not module.fences:
            return
        text = module.text
        for fence, original in module.fences.items():
            text = text.replace(fence, original)
        module.fences.clear()
        module.replace_text(text)

    def balance(self, module: SourceModule) -> str:
        """Append missing closing delimiters.

        Returns:
            The closers appended (empty when balanced)
        """
        closers = unclosed_delimiters(module.source, module.tree)
        if not closers:
            return ""
        text = module.text.rstrip("\n") + "\n" + closers + "\n"
        module.replace_text(text)
        self.notify(
            module,
            NoticeKind.STRUCTURAL_REPAIR,
            f"Appended {len(closers)} missing closing delimiter(s): {closers}",
            level=logging.WARNING,
            closers=closers,
        )
        return closers
