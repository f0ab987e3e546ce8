"""NDN names - URI parsing and probe name construction."""

import re
from typing import Iterable, Tuple, Union
from urllib.parse import quote_from_bytes, unquote_to_bytes

from .errors import InvalidNameError

PING_COMPONENT = "ping"

_SCHEMES = ("ndnx:", "ndn:", "ccnx:")
_DIGITS = re.compile(rb"[0-9]+")
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")

Component = bytes


class Name:
    """Immutable sequence of name components."""

    __slots__ = ("_components",)

    def __init__(self, components: Iterable[Union[bytes, str]] = ()):
        self._components: Tuple[bytes, ...] = tuple(
            c.encode("utf-8") if isinstance(c, str) else bytes(c)
            for c in components
        )

    @classmethod
    def from_uri(cls, uri: str) -> "Name":
        """Parse ``ndnx:/a/b``, ``ndn:/a/b`` or ``/a/b``."""
        text = uri.strip()
        for scheme in _SCHEMES:
            if text.lower().startswith(scheme):
                text = text[len(scheme):]
                break

        if not text.startswith("/"):
            raise InvalidNameError(f"name must be absolute: {uri!r}")
        if text.startswith("//"):
            raise InvalidNameError(f"authority not supported: {uri!r}")
        if _BAD_ESCAPE.search(text):
            raise InvalidNameError(f"bad percent escape: {uri!r}")

        text = text.split("?", 1)[0].split("#", 1)[0]
        components = []
        for part in text.split("/")[1:]:
            if not part:
                continue
            value = unquote_to_bytes(part)
            # "." and ".." are relative path segments, "..." and longer
            # runs of dots spell a component with three fewer dots.
            if value in (b".", b".."):
                raise InvalidNameError(f"relative component in {uri!r}")
            if value and value.strip(b".") == b"":
                value = value[3:]
            components.append(value)
        return cls(components)

    def append(self, component: Union[bytes, str, int]) -> "Name":
        if isinstance(component, int):
            component = str(component)
        return Name(self._components + Name([component])._components)

    def is_prefix_of(self, other: "Name") -> bool:
        return other._components[:len(self._components)] == self._components

    def suffix(self, prefix_len: int) -> Tuple[bytes, ...]:
        return self._components[prefix_len:]

    @property
    def components(self) -> Tuple[bytes, ...]:
        return self._components

    def to_uri(self) -> str:
        if not self._components:
            return "/"
        parts = []
        for c in self._components:
            if c.strip(b".") == b"":
                c = b"..." + c
            parts.append(quote_from_bytes(c, safe="-._~+=,:@!$&'()*;"))
        return "/" + "/".join(parts)

    def __len__(self):
        return len(self._components)

    def __getitem__(self, index):
        return self._components[index]

    def __iter__(self):
        return iter(self._components)

    def __eq__(self, other):
        if not isinstance(other, Name):
            return NotImplemented
        return self._components == other._components

    def __hash__(self):
        return hash(self._components)

    def __str__(self):
        return self.to_uri()

    def __repr__(self):
        return f"Name({self.to_uri()!r})"


def ping_prefix(uri: str) -> Name:
    """Parse a user prefix and append the ``ping`` component."""
    return Name.from_uri(uri).append(PING_COMPONENT)


def build_ping_name(prefix: Name, number: int) -> Name:
    """Probe name ``<prefix>/<number>`` with a canonical decimal token."""
    if number < 0:
        raise ValueError(f"ping number must be non-negative: {number}")
    return prefix.append(str(number))


def parse_token(component: bytes) -> int:
    """Decode a decimal token component, -1 if it is not one."""
    if not _DIGITS.fullmatch(component):
        return -1
    return int(component)
