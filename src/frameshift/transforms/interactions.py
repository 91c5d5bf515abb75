"""Interaction stripping.

A rendered video has no pointer, keyboard or form input, so:
- event attributes (onClick, onMouseMove, onKeyDown, ...) are removed
- handler functions left without references are deleted, repeatedly, so
  helpers only reachable from a deleted handler go too
- effects that only register interaction listeners are deleted
"""

from typing import Any

from frameshift.analyzers.ast_parser import (
    call_arguments,
    enclosing_statement,
    find_all,
    hook_name,
    identifier_names,
    local_function_statement,
    mentioned_in_fences,
    references,
    statement_span,
)
from frameshift.analyzers.bindings import (
    EFFECT_HOOKS,
    EVENT_ATTRIBUTE,
    INTERACTION_EVENTS,
    BindingCollector,
)
from frameshift.config import FrameshiftConfig
from frameshift.models import SourceModule, TextEdit
from frameshift.transforms.base import TransformStage
from frameshift.utils.logging import get_logger

_logger = get_logger()

RENDER_LOOP_CALLS = frozenset({"requestAnimationFrame", "setInterval", "getContext"})


class InteractionStripper(TransformStage):
    """Removes event wiring that has no meaning in a rendered timeline."""

    name = "interactions"

    def __init__(self, config: FrameshiftConfig | None = None) -> None:
        self.config = config or FrameshiftConfig()
        self.removed_attributes: list[str] = []
        self.removed_handlers: list[str] = []

    def apply(self, module: SourceModule) -> None:
        """Strip event attributes, listener effects and orphaned handlers."""
        BindingCollector(self.config.timing).collect(module)
        candidates = {h.name for h in module.handler_bindings}

        edits: list[TextEdit] = []
        for attribute in self._event_attributes(module):
            for value in attribute.named_children[1:]:
                candidates.update(identifier_names(module, value))
            edits.append(TextEdit(self._leading_space(module, attribute), attribute.end_byte, ""))
            self.removed_attributes.append(module.text_of(attribute.named_children[0]))

        for effect in self._listener_effects(module):
            candidates.update(identifier_names(module, effect))
            start, end = statement_span(module, enclosing_statement(effect))
            edits.append(TextEdit(start, end, ""))

        module.apply_edits(edits)
        self._delete_orphans(module, candidates)

        if self.removed_attributes or self.removed_handlers:
            _logger.info(
                f"Stripped {len(self.removed_attributes)} event attribute(s) and "
                f"{len(self.removed_handlers)} handler(s)"
            )

    def _event_attributes(self, module: SourceModule) -> list[Any]:
        attributes = []
        for attribute in find_all(module.root, "jsx_attribute"):
            if not attribute.named_children:
                continue
            if EVENT_ATTRIBUTE.match(module.text_of(attribute.named_children[0])):
                attributes.append(attribute)
        return attributes

    def _leading_space(self, module: SourceModule, node: Any) -> int:
        start = node.start_byte
        while start > 0 and module.source[start - 1 : start] in (b" ", b"\t", b"\n", b"\r"):
            start -= 1
        return start

    def _listener_effects(self, module: SourceModule) -> list[Any]:
        """Effects that register interaction listeners and nothing that draws."""
        effects = []
        for call in find_all(module.root, "call_expression"):
            if hook_name(module, call) not in EFFECT_HOOKS:
                continue
            calls = find_all(call, "call_expression")
            names = {hook_name(module, c) for c in calls}
            if names & RENDER_LOOP_CALLS:
                continue
            events = []
            for listener in calls:
                if hook_name(module, listener) not in ("addEventListener", "removeEventListener"):
                    continue
                arguments = call_arguments(listener)
                if arguments and arguments[0].type == "string":
                    events.append(module.text_of(arguments[0])[1:-1])
            if events and all(INTERACTION_EVENTS.match(event) for event in events):
                effects.append(call)
        return effects

    def _delete_orphans(self, module: SourceModule, candidates: set[str]) -> None:
        """Delete handler-like functions that nothing references."""
        pending = {
            name
            for name in candidates
            if local_function_statement(module, name) is not None
        }
        while pending:
            edits = []
            released: set[str] = set()
            for name in sorted(pending):
                statement = local_function_statement(module, name)
                if statement is None:
                    continue
                if references(module, name, exclude=statement):
                    continue
                if mentioned_in_fences(module, name):
                    continue
                start, end = statement_span(module, statement)
                edits.append(TextEdit(start, end, ""))
                released.update(identifier_names(module, statement))
                self.removed_handlers.append(name)
            if not edits:
                return
            module.apply_edits(edits)
            pending = {
                name
                for name in (pending | released)
                if local_function_statement(module, name) is not None
            }
