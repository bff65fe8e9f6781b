from collections.abc import Generator, Iterable, Mapping
from typing import Any, Protocol

from .spec import SpecRowGroup, SpecRowLeaf, SpecRowNode


class RowAccessor(Protocol):
    """Resolve the value of ``key`` on one record; ``None`` when absent."""

    def get(self, record: Any, key: str) -> Any: ...


class MappingRowAccessor:
    def get(self, record: Any, key: str) -> Any:
        return record.get(key)


class AttributeRowAccessor:
    def get(self, record: Any, key: str) -> Any:
        # only public attributes are addressable as fields
        if not key or key.startswith("_"):
            return None
        return getattr(record, key, None)


def generate_leaf_records(
    nodes: Iterable[SpecRowNode],
) -> Generator[Any, None, None]:
    """Yield leaf records depth-first, in input order."""
    for _node in nodes:
        if isinstance(_node, SpecRowGroup):
            yield from generate_leaf_records(_node.nodes)
        else:
            yield _node.record


def select_row_accessor(nodes: Iterable[SpecRowNode]) -> RowAccessor:
    """Pick the accessor for a whole collection from its first leaf record.

    Mapping records get key lookup; anything else (dataclasses, named tuples,
    plain objects) gets attribute lookup.
    """
    for _record in generate_leaf_records(nodes):
        if isinstance(_record, Mapping):
            return MappingRowAccessor()
        return AttributeRowAccessor()
    return MappingRowAccessor()


def build_row_nodes(items: Iterable[Any]) -> tuple[SpecRowNode, ...]:
    """Turn plain nested input into row nodes.

    A ``list`` or ``tuple`` item becomes a group (rendered one outline level
    deeper); row nodes pass through; every other item becomes a leaf.
    """
    l_nodes: list[SpecRowNode] = []
    for _item in items:
        if isinstance(_item, (SpecRowLeaf, SpecRowGroup)):
            l_nodes.append(_item)
        elif isinstance(_item, (list, tuple)) and not _is_named_tuple(_item):
            l_nodes.append(SpecRowGroup(nodes=build_row_nodes(_item)))
        else:
            l_nodes.append(SpecRowLeaf(record=_item))
    return tuple(l_nodes)


def _is_named_tuple(value: Any) -> bool:
    return isinstance(value, tuple) and hasattr(value, "_fields")
