"""
Per-type commander configuration.

Every ``Commander`` subclass gets a frozen ``CommanderSpec`` built once, when
the class is defined, from its ``argument_types`` and ``errors`` class
attributes (merged down the class hierarchy). The lifecycle looks the spec
up by type identity instead of reading mutable class-level dictionaries.
"""

import importlib
import logging
import re
import weakref
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any


logger = logging.getLogger(__name__)

# Shared error messages available to all commanders
BASE_ERRORS: Mapping[str, str] = MappingProxyType(
    {
        "invalid_state_transition": "You cannot transition to this state",
        "action_already_performed": "This action has already been performed",
    }
)

TypeDescriptor = type | str | tuple | list


def snake_case(name: str) -> str:
    """``ReserveInventory`` -> ``reserve_inventory``"""
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z\d])([A-Z])", r"\1_\2", name).lower()


def resolve_type(descriptor: type | str) -> type:
    """
    Resolve a type descriptor.

    Strings are either builtin names (``"int"``) or dotted import paths
    (``"decimal.Decimal"``).
    """
    if isinstance(descriptor, type):
        return descriptor

    module_name, _, attr = descriptor.rpartition(".")
    module = importlib.import_module(module_name or "builtins")
    resolved = getattr(module, attr)
    if not isinstance(resolved, type):
        msg = f"{descriptor!r} does not name a type"
        raise TypeError(msg)
    return resolved


def describe(types: tuple[type, ...]) -> str:
    """Human-readable descriptor for one or more types."""
    names = [t.__name__ for t in types]
    return names[0] if len(names) == 1 else " or ".join(names)


@dataclass(frozen=True)
class ArgumentConstraint:
    """Accepted types for one declared option"""

    name: str
    types: tuple[type, ...]

    @property
    def expected(self) -> str:
        return describe(self.types)

    def accepts(self, value: Any) -> bool:
        # bool is an int subclass, but True is not an integer argument
        if isinstance(value, bool):
            return any(t is not int and issubclass(bool, t) for t in self.types)
        return isinstance(value, self.types)


@dataclass(frozen=True)
class CommanderSpec:
    """
    Immutable configuration of one commander type.

    Attributes:
        name: Type name
        prefix: snake_case prefix applied to error codes
        arguments: Declared argument constraints, in declaration order
        errors: Merged error catalog (code -> default message)
    """

    name: str
    prefix: str
    arguments: tuple[ArgumentConstraint, ...]
    errors: Mapping[str, str]

    def message_for(self, code: str) -> str | None:
        return self.errors.get(code)

    def prefixed(self, code: str) -> str:
        return f"{self.prefix}-{code}"

    def possible_errors(self, with_prefix: bool = False) -> dict[str, str]:
        if with_prefix:
            return {self.prefixed(k): v for k, v in self.errors.items()}
        return dict(self.errors)


def _constraint(name: str, descriptor: TypeDescriptor) -> ArgumentConstraint:
    descriptors = descriptor if isinstance(descriptor, (tuple, list)) else (descriptor,)
    return ArgumentConstraint(name=name, types=tuple(resolve_type(d) for d in descriptors))


def build_spec(cls: type, argument_types: Mapping[str, TypeDescriptor] | None, errors: Mapping[str, str]) -> CommanderSpec:
    """Build a ``CommanderSpec`` for ``cls``."""
    arguments = tuple(_constraint(name, d) for name, d in (argument_types or {}).items())
    return CommanderSpec(
        name=cls.__name__,
        prefix=snake_case(cls.__name__),
        arguments=arguments,
        errors=MappingProxyType({**BASE_ERRORS, **errors}),
    )


class CommanderRegistry:
    """
    Global registry of commander types.

    Maps each commander class to its ``CommanderSpec``. Classes are held
    weakly, so commanders defined on the fly are dropped once collected.
    """

    _registry: weakref.WeakKeyDictionary[type, CommanderSpec] = weakref.WeakKeyDictionary()

    @classmethod
    def register(cls, commander_cls: type, spec: CommanderSpec) -> None:
        """Register the CommanderSpec for a commander class."""
        cls._registry[commander_cls] = spec
        logger.debug(f"Registered commander {spec.name} ({len(spec.arguments)} argument constraint(s))")

    @classmethod
    def spec_for(cls, commander_cls: type) -> CommanderSpec:
        """Look up the CommanderSpec of a commander class."""
        try:
            return cls._registry[commander_cls]
        except KeyError:
            msg = f"{commander_cls.__name__} is not a registered commander"
            raise LookupError(msg) from None

    @classmethod
    def get_all(cls) -> dict[type, CommanderSpec]:
        """Get the entire registry."""
        return dict(cls._registry.items())

    @classmethod
    def find(cls, name: str) -> list[type]:
        """All registered classes whose name (or qualified name) matches."""
        return [
            c for c in list(cls._registry.keys())
            if c.__name__ == name or f"{c.__module__}.{c.__qualname__}" == name
        ]
