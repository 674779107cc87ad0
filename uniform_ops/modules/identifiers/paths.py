"""Dotted field-path access into loosely-typed documents.

A path such as ``items.uniformId`` walks sub-documents by key and fans out
over arrays: every element of ``items`` contributes its own ``uniformId``.
A path whose last segment is an array yields one slot per element.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from uniform_ops.exceptions import ConfigurationException, MalformedDocumentException

Address = tuple[str | int, ...]


@dataclass(frozen=True)
class ReferenceSlot:
    """One concrete location reached by a field path, and its value."""

    address: Address
    value: Any

    @property
    def in_array(self) -> bool:
        return any(isinstance(part, int) for part in self.address)


def render_address(address: Address) -> str:
    rendered = ""
    for part in address:
        if isinstance(part, int):
            rendered += f"[{part}]"
        else:
            rendered += f".{part}" if rendered else part
    return rendered


def update_key(address: Address) -> str:
    """Dotted key to ``$set`` for a change at ``address``.

    Changes inside an array rewrite the whole array field; changes inside
    plain sub-documents are set by their dotted path.
    """
    parts: list[str] = []
    for part in address:
        if isinstance(part, int):
            break
        parts.append(part)
    return ".".join(parts)


def value_at(document: dict[str, Any], dotted: str) -> Any:
    node: Any = document
    for part in dotted.split("."):
        node = node[part]
    return node


def assign(document: dict[str, Any], address: Address, value: Any) -> None:
    node: Any = document
    for part in address[:-1]:
        node = node[part]
    node[address[-1]] = value


class FieldPath:
    """Parsed dotted path with slot enumeration and by-address assignment."""

    def __init__(self, raw: str) -> None:
        segments = tuple(raw.split(".")) if raw else ()
        if not segments or any(not segment for segment in segments):
            raise ConfigurationException(f"Invalid field path '{raw}'")
        self.raw = raw
        self.segments = segments

    def __repr__(self) -> str:
        return f"FieldPath({self.raw!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, FieldPath) and other.raw == self.raw

    def __hash__(self) -> int:
        return hash(self.raw)

    @property
    def is_nested(self) -> bool:
        return len(self.segments) > 1

    def slots(self, document: dict[str, Any]) -> list[ReferenceSlot]:
        """Enumerate every location the path reaches in ``document``.

        Missing keys and ``None`` intermediates yield nothing; scalar
        intermediates are a malformed shape and raise.
        """
        current: list[tuple[Address, Any]] = [((), document)]
        for segment in self.segments:
            reached: list[tuple[Address, Any]] = []
            for address, node in current:
                if node is None:
                    continue
                if not isinstance(node, dict):
                    raise MalformedDocumentException(
                        f"Expected a sub-document at '{render_address(address) or '<root>'}' "
                        f"while reading '{self.raw}', got {type(node).__name__}"
                    )
                if segment not in node:
                    continue
                child = node[segment]
                child_address = address + (segment,)
                if isinstance(child, list):
                    reached.extend(
                        (child_address + (index,), element)
                        for index, element in enumerate(child)
                    )
                else:
                    reached.append((child_address, child))
            current = reached
        return [ReferenceSlot(address, value) for address, value in current]

    def get(self, document: dict[str, Any], default: Any = None) -> Any:
        """Value at the path: a scalar, a list when the path fans out, or ``default``."""
        found = self.slots(document)
        if not found:
            return default
        if len(found) == 1 and not found[0].in_array:
            return found[0].value
        return [slot.value for slot in found]
