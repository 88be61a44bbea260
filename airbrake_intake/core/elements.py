"""
Generic Element Converter - schema-free XML to value conversion.

Turns an arbitrary notice element into a GenericValue without a fixed
schema. The shape of the result is decided by a few structural rules:

1. Text-only element            -> Scalar
2. Childless element            -> ObjectValue of its attributes
3. Element made only of <var>s  -> ObjectValue keyed by each var's "key"
4. Anything else                -> ObjectValue of converted children,
                                   repeated tags collected into a ListValue
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union
from xml.etree.ElementTree import Element

VAR_TAG = "var"


@dataclass(frozen=True)
class Scalar:
    """A text value."""
    value: str

    def is_blank(self) -> bool:
        return not self.value.strip()

    def to_python(self) -> str:
        return self.value


@dataclass(frozen=True)
class ListValue:
    """An ordered sequence of values, produced by repeated sibling tags."""
    items: tuple["GenericValue", ...] = ()

    def is_blank(self) -> bool:
        return not self.items

    def to_python(self) -> list:
        return [item.to_python() for item in self.items]

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class ObjectValue:
    """A read-only mapping of normalized keys to values."""
    fields: Mapping[str, "GenericValue"] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def __hash__(self) -> int:
        return hash(frozenset(self.fields.items()))

    def is_blank(self) -> bool:
        return not self.fields

    def to_python(self) -> dict[str, Any]:
        return {key: value.to_python() for key, value in self.fields.items()}

    def get(self, key: str, default: Optional["GenericValue"] = None) -> Optional["GenericValue"]:
        return self.fields.get(key, default)

    def text(self, key: str) -> Optional[str]:
        """Return the Scalar text stored under key, or None when absent or not a Scalar."""
        value = self.fields.get(key)
        if isinstance(value, Scalar):
            return value.value
        return None

    def without(self, *keys: str) -> "ObjectValue":
        return ObjectValue({k: v for k, v in self.fields.items() if k not in keys})

    def __contains__(self, key: str) -> bool:
        return key in self.fields

    def __getitem__(self, key: str) -> "GenericValue":
        return self.fields[key]

    def __len__(self) -> int:
        return len(self.fields)


GenericValue = Union[Scalar, ListValue, ObjectValue]


def is_blank(value: Optional[GenericValue]) -> bool:
    """Treat None, whitespace strings, empty lists and empty objects alike."""
    return value is None or value.is_blank()


def format_key(key: Optional[str]) -> str:
    """Normalize a tag or attribute name into a key (dashes become underscores)."""
    return (key or "").replace("-", "_")


def convert_element(elem: Optional[Element]) -> Optional[GenericValue]:
    """Convert one element into a GenericValue.

    Returns None only when no element is given.
    """
    if elem is None:
        return None

    children = list(elem)

    if not children:
        text = elem.text or ""
        if text.strip():
            return Scalar(text)
        return _convert_attributes(elem)

    if all(child.tag == VAR_TAG for child in children):
        return _convert_var_elements(children)

    return _convert_children(children)


def _convert_attributes(elem: Element) -> ObjectValue:
    return ObjectValue({
        format_key(name): Scalar(value)
        for name, value in elem.attrib.items()
        if format_key(name).strip()
    })


def _convert_var_elements(elements: list[Element]) -> ObjectValue:
    fields: dict[str, GenericValue] = {}
    for elem in elements:
        key = format_key(elem.get("key"))
        if not key.strip():
            continue
        fields[key] = Scalar("".join(elem.itertext()))
    return ObjectValue(fields)


def _convert_children(elements: list[Element]) -> ObjectValue:
    collected: dict[str, list[GenericValue]] = {}
    for elem in elements:
        if not isinstance(elem.tag, str):
            # Comments and processing instructions
            continue
        key = format_key(elem.tag)
        if not key.strip():
            continue
        collected.setdefault(key, []).append(convert_element(elem))

    fields: dict[str, GenericValue] = {}
    for key, values in collected.items():
        fields[key] = values[0] if len(values) == 1 else ListValue(tuple(values))
    return ObjectValue(fields)
