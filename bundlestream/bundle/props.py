import json
import typing
from collections import OrderedDict

from bundlestream.error import ParseError, InvalidPropertyValueError

PropertyValue = typing.Union[str, int, float, bool]

PROPERTY_TYPES = ('string', 'int', 'double', 'bool')


def property_type(value: PropertyValue) -> str:
    # bool is checked first, it is a subclass of int
    if isinstance(value, bool):
        return 'bool'
    if isinstance(value, str):
        return 'string'
    if isinstance(value, int):
        return 'int'
    if isinstance(value, float):
        return 'int' if value.is_integer() else 'double'
    raise TypeError(f"unsupported property value {value!r}")


def _coerce(key: str, type_name: str, value) -> PropertyValue:
    if type_name == 'string' and isinstance(value, str):
        return value
    if type_name == 'bool' and isinstance(value, bool):
        return value
    if type_name in ('int', 'double') and isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value) if type_name == 'int' else float(value)
    raise ParseError("bundle properties", f"member '{key}' does not hold a valid '{type_name}' value")


class BundleProps:
    """
    Ordered, typed key/value metadata of a bundle or of a single bundle file.

    The canonical text is a compact JSON object where every value is wrapped as
    {"type": "string"|"int"|"double"|"bool", "value": ...}. Two instances are
    equal when their canonical text is equal.
    """

    __slots__ = [
        '_values'
    ]

    def __init__(self, values: typing.Optional[typing.Mapping[str, PropertyValue]] = None):
        self._values: typing.Dict[str, PropertyValue] = OrderedDict()
        for key, value in (values or {}).items():
            self.set(key, value)

    @classmethod
    def from_mapping(cls, mapping: typing.Union['BundleProps', typing.Mapping[str, PropertyValue]]) -> 'BundleProps':
        if isinstance(mapping, BundleProps):
            return cls(mapping.to_dict())
        if not isinstance(mapping, typing.Mapping):
            raise TypeError('Argument must be "BundleProps" or a mapping')
        return cls(mapping)

    @classmethod
    def from_json(cls, text: typing.Union[str, bytes]) -> 'BundleProps':
        if isinstance(text, (bytes, bytearray)):
            try:
                text = bytes(text).decode('utf-8')
            except UnicodeDecodeError:
                raise ParseError("bundle properties", "not valid UTF-8")
        try:
            decoded = json.loads(text, object_pairs_hook=OrderedDict)
        except json.JSONDecodeError as e:
            raise ParseError("bundle properties", f"does not decode as valid JSON ({e})")
        if not isinstance(decoded, dict):
            raise ParseError("bundle properties", "top level value is not an object")
        props = cls()
        for key, member in decoded.items():
            if not isinstance(member, dict) or 'value' not in member:
                raise ParseError("bundle properties", f"member '{key}' is not a typed value")
            type_name = member.get('type')
            if type_name not in PROPERTY_TYPES:
                raise ParseError("bundle properties", f"member '{key}' has unknown type {type_name!r}")
            props._values[key] = _coerce(key, type_name, member['value'])
        return props

    def to_json(self) -> str:
        serialized = OrderedDict()
        for key, value in self._values.items():
            type_name = property_type(value)
            if type_name == 'int':
                value = int(value)
            serialized[key] = OrderedDict([('type', type_name), ('value', value)])
        return json.dumps(serialized, separators=(',', ':'), ensure_ascii=False)

    def to_bytes(self) -> bytes:
        return self.to_json().encode('utf-8')

    def to_dict(self) -> typing.Dict[str, PropertyValue]:
        return OrderedDict(self._values)

    def merge(self, other: typing.Optional[typing.Mapping[str, PropertyValue]]) -> 'BundleProps':
        """ New instance holding these properties overridden by the ones in `other`. """
        merged = self.to_dict()
        if other:
            merged.update(other.to_dict() if isinstance(other, BundleProps) else other)
        return BundleProps(merged)

    def get(self, key: str, default=None) -> typing.Optional[PropertyValue]:
        return self._values.get(key, default)

    def set(self, key: str, value: PropertyValue) -> None:
        if not isinstance(key, str):
            raise InvalidPropertyValueError(key, value)
        try:
            property_type(value)
        except TypeError:
            raise InvalidPropertyValueError(key, value)
        self._values[key] = value

    def keys(self):
        return self._values.keys()

    def items(self):
        return self._values.items()

    def __contains__(self, key):
        return key in self._values

    def __getitem__(self, key):
        return self._values[key]

    def __iter__(self):
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def __eq__(self, other):
        if not isinstance(other, BundleProps):
            return NotImplemented
        return self.to_json() == other.to_json()

    def __repr__(self):
        return f"BundleProps({self.to_json()})"
