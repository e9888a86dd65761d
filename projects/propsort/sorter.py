from __future__ import annotations

import re
from dataclasses import dataclass, replace
from functools import cmp_to_key
from typing import Any, Callable, Sequence

from .model import Property

# Grammar-agnostic ordering engine.
# Comparator chain, first difference wins:
#   custom priority index, grammar group rank, required before optional, type bucket,
#   name comparison (asc/desc), grammar tie-break.
# Sorting is stable, so ties keep their source order. Markers never move; the other members are sorted together
# and dealt back into the remaining slots.

TYPE_BUCKETS = ('method', 'getter', 'setter', 'property')

_DIGITS = re.compile(r'(\d+)')
_NUMBER = re.compile(r'^-?\d+(\.\d+)?$')


def _marker(prop: Property) -> bool:
    return prop.is_marker


def _names(prop: Property) -> tuple[str, ...]:
    return (prop.name,)


def _values(prop: Property) -> tuple[str, ...]:
    return (prop.value,)


@dataclass(frozen=True)
class SortSpec:
    descending: bool = False
    case_sensitive: bool = False
    natural: bool = False
    custom_order: tuple[str, ...] = ()
    prioritize_required: bool = False
    group_by_type: bool = False
    sort_nested: bool = True
    reorder: bool = True  # False keeps the level as written while nested levels may still sort
    reorder_arrays: bool = False
    group: Callable[[Property], Any] | None = None
    tiebreak: Callable[[Property], Any] | None = None
    names: Callable[[Property], tuple[str, ...]] = _names
    is_anchor: Callable[[Property], bool] = _marker
    # Applied to every sorted level, e.g. hoisting YAML anchors above their aliases
    after: Callable[[list[Property]], list[Property]] | None = None


def strip_quotes(name: str) -> str:
    if len(name) >= 2 and name[0] == name[-1] and name[0] in '"\'`':
        return name[1:-1]
    return name


def type_bucket(prop: Property) -> int:
    if prop.is_method:
        modifiers = prop.modifiers.split()
        if 'get' in modifiers:
            return TYPE_BUCKETS.index('getter')
        if 'set' in modifiers:
            return TYPE_BUCKETS.index('setter')
        return TYPE_BUCKETS.index('method')
    return TYPE_BUCKETS.index('property')


def compare_text(a: str, b: str, case_sensitive: bool, natural: bool) -> int:
    a, b = strip_quotes(a), strip_quotes(b)
    a_num, b_num = _NUMBER.match(a) is not None, _NUMBER.match(b) is not None
    if a_num and b_num:
        diff = float(a) - float(b)
        if diff:
            return -1 if diff < 0 else 1
    elif a_num != b_num:
        # Numeric names before the rest
        return -1 if a_num else 1
    if not case_sensitive:
        folded = _cmp(a.casefold(), b.casefold()) if not natural else _natural(a.casefold(), b.casefold())
        if folded:
            return folded
    return _natural(a, b) if natural else _cmp(a, b)


def _cmp(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def _natural(a: str, b: str) -> int:
    # "item2" < "item10": digit runs compare by value, ties on value fall back to the text
    ka = _DIGITS.split(a)
    kb = _DIGITS.split(b)
    for pa, pb in zip(ka, kb):
        if pa == pb:
            continue
        if pa.isdigit() and pb.isdigit():
            diff = _cmp(int(pa), int(pb))
            if diff:
                return diff
        return _cmp(pa, pb)
    return _cmp(len(ka), len(kb)) or _cmp(a, b)


def make_comparator(spec: SortSpec) -> Callable[[Property, Property], int]:
    custom: dict[str, int] = {}
    for i, name in enumerate(spec.custom_order):
        custom.setdefault(strip_quotes(name), i)
    missing = len(custom)

    def compare(a: Property, b: Property) -> int:
        if custom:
            diff = _cmp(custom.get(strip_quotes(a.name), missing), custom.get(strip_quotes(b.name), missing))
            if diff:
                return diff
        if spec.group is not None:
            diff = _cmp(spec.group(a), spec.group(b))
            if diff:
                return diff
        if spec.prioritize_required:
            diff = _cmp(a.optional, b.optional)
            if diff:
                return diff
        if spec.group_by_type:
            diff = _cmp(type_bucket(a), type_bucket(b))
            if diff:
                return diff
        for na, nb in zip(spec.names(a), spec.names(b)):
            diff = compare_text(na, nb, spec.case_sensitive, spec.natural)
            if diff:
                return -diff if spec.descending else diff
        if spec.tiebreak is not None:
            return _cmp(spec.tiebreak(a), spec.tiebreak(b))
        return 0

    return compare


def fill_slots(props: Sequence[Property], spec: SortSpec) -> list[Property]:
    # [...A, z, ...B, a] -> [...A, a, ...B, z]: markers keep their index, sorted members fill the gaps in order
    ordered = iter(sorted((p for p in props if not spec.is_anchor(p)), key=cmp_to_key(make_comparator(spec))))
    return [p if spec.is_anchor(p) else next(ordered) for p in props]


def sort_properties(props: Sequence[Property], spec: SortSpec, positional: bool = False) -> list[Property]:
    # Pure: returns new Property objects, input untouched; positional lists are arrays whose order is data
    children = [_sort_nested(p, spec) if spec.sort_nested else p for p in props]
    if positional:
        if not spec.reorder_arrays:
            return children
        # Array elements compare by their text
        ordered = fill_slots(children, replace(spec, names=_values, custom_order=()))
    elif not spec.reorder:
        ordered = children
    else:
        ordered = fill_slots(children, spec)
    if spec.after is not None:
        ordered = spec.after(ordered)
    return ordered


def _sort_nested(prop: Property, spec: SortSpec) -> Property:
    if prop.nested_properties is None:
        return prop
    nested = sort_properties(prop.nested_properties, spec, positional=prop.is_array)
    return replace(prop, nested_properties=tuple(nested))


def group_key(spec: SortSpec) -> Callable[[Property], tuple] | None:
    # Everything the comparator ranks before names; None when no grouping is active
    custom = {strip_quotes(n) for n in spec.custom_order}
    if not (custom or spec.group or spec.prioritize_required or spec.group_by_type):
        return None

    def key(prop: Property) -> tuple:
        parts: list[Any] = []
        if custom:
            parts.append(strip_quotes(prop.name) in custom)
        if spec.group is not None:
            parts.append(spec.group(prop))
        if spec.prioritize_required:
            parts.append(prop.optional)
        if spec.group_by_type:
            parts.append(type_bucket(prop))
        return tuple(parts)

    return key
