# plangraph/graph/references.py
"""Step reference tokens inside step inputs.

Supports:
- ``{{stepN}}``       bare reference, also a data dependency on stepN
- ``{{stepN.path}}``  reference into stepN's output (dotted path)

Anything that does not match these shapes (unclosed braces, non-step
names) is plain text and is never rewritten or resolved.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Iterable, Iterator
from typing import Any

from plangraph.config.enums import StepStatus
from plangraph.errors import MalformedReferenceError
from plangraph.models import Plan, Step

logger = logging.getLogger(__name__)

BARE_REFERENCE_RE = re.compile(r"\{\{(step\d+)\}\}")
REFERENCE_RE = re.compile(r"\{\{(step\d+)(\.[^{}]*)?\}\}")
STEP_ID_RE = re.compile(r"step\d+")
_STEP_NUMBER_RE = re.compile(r"^step(\d+)$")

# Leading path segments that name the whole output rather than a field
_WHOLE_OUTPUT_ALIASES = ("output", "result", "tool_result")


def step_sort_key(step_id: str) -> tuple[int, int, str]:
    """Natural order: step2 < step10, non-conforming ids last by name."""
    match = _STEP_NUMBER_RE.match(step_id)
    if match:
        return (0, int(match.group(1)), "")
    return (1, 0, step_id)


def sort_step_ids(step_ids: Iterable[str]) -> list[str]:
    return sorted(step_ids, key=step_sort_key)


def iter_strings(value: Any) -> Iterator[str]:
    """Yield every string leaf of a nested dict/list structure."""
    if isinstance(value, str):
        yield value
    elif isinstance(value, dict):
        for item in value.values():
            yield from iter_strings(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from iter_strings(item)


def map_strings(value: Any, fn: Callable[[str], Any]) -> Any:
    """Return a copy of ``value`` with ``fn`` applied to every string leaf."""
    if isinstance(value, str):
        return fn(value)
    if isinstance(value, dict):
        return {k: map_strings(v, fn) for k, v in value.items()}
    if isinstance(value, list):
        return [map_strings(v, fn) for v in value]
    if isinstance(value, tuple):
        return tuple(map_strings(v, fn) for v in value)
    return value


# ── Dependency extraction ─────────────────────────────────────────────────


def extract_data_dependencies(input_data: dict[str, Any] | None) -> list[str]:
    """Step ids referenced by bare ``{{stepN}}`` tokens in a step input.

    Path references (``{{stepN.content}}``) are not counted. The result
    is de-duplicated and naturally sorted (step2 before step10).
    """
    if not input_data:
        return []

    found: set[str] = set()
    for text in iter_strings(input_data):
        found.update(BARE_REFERENCE_RE.findall(text))
    return sort_step_ids(found)


def display_dependencies(step: Step) -> list[str]:
    """Dependencies to draw for a step.

    Data dependencies explain why a step waits, so they win when present;
    otherwise fall back to the declared (scheduling) dependencies.
    """
    data_deps = extract_data_dependencies(step.input)
    if data_deps:
        return data_deps
    return sort_step_ids(dict.fromkeys(step.dependencies))


# ── Rewriting ─────────────────────────────────────────────────────────────


def rewrite_references(value: Any, id_map: dict[str, str]) -> Any:
    """Rename the step id of every ``{{stepN...}}`` token via ``id_map``.

    The ``.path`` suffix is preserved. Ids missing from the map are left
    untouched.
    """
    if not id_map:
        return value

    def _replace(match: re.Match[str]) -> str:
        new_id = id_map.get(match.group(1))
        if new_id is None:
            return match.group(0)
        return "{{" + new_id + (match.group(2) or "") + "}}"

    return map_strings(value, lambda text: REFERENCE_RE.sub(_replace, text))


def rewrite_step_mentions(text: str, id_map: dict[str, str]) -> str:
    """Rename every literal ``stepN`` in free text via ``id_map``."""
    if not text or not id_map:
        return text
    return STEP_ID_RE.sub(lambda m: id_map.get(m.group(0), m.group(0)), text)


# ── Resolution ────────────────────────────────────────────────────────────


_MISSING = object()


def resolve_references(value: Any, plan: Plan) -> Any:
    """Substitute step reference tokens with outputs of completed steps.

    A string made of exactly one token resolves to the raw value (type
    preserved). Tokens inside longer text are interpolated as strings.
    Tokens pointing at unknown, unfinished, or missing output stay as
    literal text.
    """
    steps = plan.step_map()

    def _lookup(step_id: str, path: str | None) -> Any:
        step = steps.get(step_id)
        if step is None or step.status != StepStatus.COMPLETED:
            return _MISSING
        return _resolve_path(step.result, path)

    def _resolve_string(text: str) -> Any:
        if "{{" not in text:
            return text

        whole = REFERENCE_RE.fullmatch(text)
        if whole:
            resolved = _lookup(whole.group(1), whole.group(2))
            if resolved is _MISSING:
                logger.debug("%s; left as text", MalformedReferenceError(text))
                return text
            return resolved

        def _replace(match: re.Match[str]) -> str:
            resolved = _lookup(match.group(1), match.group(2))
            if resolved is _MISSING:
                logger.debug("%s; left as text", MalformedReferenceError(match.group(0)))
                return match.group(0)
            return _to_text(resolved)

        return REFERENCE_RE.sub(_replace, text)

    return map_strings(value, _resolve_string)


def _resolve_path(result: Any, path: str | None) -> Any:
    """Walk a ``.a.b.0`` path into a step result."""
    if not path:
        return result

    parts = [part for part in path.lstrip(".").split(".") if part]
    if not parts:
        return result

    if parts[0] in _WHOLE_OUTPUT_ALIASES and not (
        isinstance(result, dict) and parts[0] in result
    ):
        parts = parts[1:]

    current = result
    for part in parts:
        if isinstance(current, dict) and part in current:
            current = current[part]
        elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            return _MISSING
    return current


def _to_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)
