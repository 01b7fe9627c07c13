"""
Field key grammar used for flat contact records.

Keys follow the pattern ``PROP[INDEX:TYPE].SUBFIELD`` where every part
except PROP is optional:

    FN                  plain property
    TEL[CELL]           property with a type tag
    TEL[1:CELL]         second TEL[CELL] occurrence
    EMAIL[1:]           second EMAIL occurrence, no type
    ADR[HOME].STREET    subfield of a composite property
    ADR[1:].STREET      subfield of the second untyped ADR

Parsing never fails: anything that does not fit the grammar simply ends up
in the base name or the type.
"""

from dataclasses import dataclass, replace
from typing import Optional, Union, Iterable, Container


@dataclass(frozen=True)
class FieldKey:
    """Parsed components of a record key."""
    base: str
    index: Optional[str] = None
    type: Optional[str] = None
    subfield: Optional[str] = None

    def with_index(self, index: Union[int, str, None]) -> "FieldKey":
        return replace(self, index=None if index is None else str(index))

    def without_index(self) -> "FieldKey":
        return replace(self, index=None)

    def __str__(self) -> str:
        return build_key(self.base, self.index, self.type, self.subfield)


def parse_key(key: str) -> FieldKey:
    """
    Split a record key into base, index, type and subfield.

    The bracket segment is located first so a type may contain dots; the
    subfield is whatever follows the first dot after the closing bracket.
    A bracket segment with a colon yields index and type; without a colon
    the whole segment is the type. Empty parts come back as None.
    """
    open_at = key.find("[")
    dot_at = key.find(".")
    if open_at == -1 or (dot_at != -1 and dot_at < open_at):
        main, _, subfield = key.partition(".")
        return FieldKey(base=main, subfield=subfield or None)

    base = key[:open_at]
    close_at = key.find("]", open_at)
    if close_at == -1:
        content, subfield = key[open_at + 1:], ""
    else:
        content = key[open_at + 1:close_at]
        _, _, subfield = key[close_at + 1:].partition(".")

    index: Optional[str] = None
    if ":" in content:
        index, _, type_ = content.partition(":")
    else:
        type_ = content

    return FieldKey(
        base=base,
        index=index or None,
        type=type_ or None,
        subfield=subfield or None,
    )


def build_key(
    base: str,
    index: Union[int, str, None] = None,
    type: Optional[str] = None,
    subfield: Optional[str] = None,
) -> str:
    """Inverse of parse_key; the index segment appears only when given."""
    key = base
    if index is not None and str(index) != "":
        key += f"[{index}:{type or ''}]"
    elif type:
        key += f"[{type}]"
    if subfield:
        key += f".{subfield}"
    return key


def base_of(key: str) -> str:
    """Property name of a key, ignoring brackets and subfields."""
    return parse_key(key).base


def next_free_index(keys: Iterable[FieldKey], taken: Container[str]) -> Optional[int]:
    """
    Pick the index for a group of keys that must share one occurrence.

    Returns None when none of the keys are taken yet, otherwise the smallest
    index starting at 1 for which none of the indexed keys collide.
    """
    keys = list(keys)
    if not any(str(k) in taken for k in keys):
        return None

    index = 1
    while any(str(k.with_index(index)) in taken for k in keys):
        index += 1
    return index


def indexed_key(key: str, taken: Container[str]) -> str:
    """
    Rewrite a single key so it does not collide with ``taken``.

        TEL[CELL]   -> TEL[1:CELL]
        ADR.STREET  -> ADR[1:].STREET
        EMAIL       -> EMAIL[1:]
    """
    parsed = parse_key(key).without_index()
    index = next_free_index([parsed], taken)
    if index is None:
        return str(parsed)
    return str(parsed.with_index(index))
