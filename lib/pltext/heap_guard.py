"""
Single-owner box for AST nodes.

The parser builds every subtree into a list of ``HeapGuard`` objects. When a
container's closing tag is found, each guard is released into the container's
child tuple; when it is not, the guards are destroyed together with everything
they own. Either way each node is handed on or torn down exactly once.

Example:
    >>> guard = HeapGuard(Space)
    >>> node = guard.release()
    >>> guard.isEmpty()
    True
"""

import copy
from typing import Any, Generic, Optional, Type, TypeVar

from .errors import HeapGuardError

T = TypeVar("T")
U = TypeVar("U")


class HeapGuard(Generic[T]):
    """
    Owns exactly one value and destroys it exactly once.

    Construction builds the value in place from a class and its arguments.
    Ownership can be moved into another guard with ``fromGuard`` (optionally
    viewed through a base class), handed out with ``release`` or ended with
    ``destroy``. Reassigning an owner that already holds a value is not
    supported.
    """

    __slots__ = ("_value", "_valueType", "_destroyed")

    def __init__(self, valueType: Type[T], *args: Any, **kwargs: Any):
        """
        Construct a value of ``valueType`` in place.

        Args:
            valueType: Class to instantiate
            *args: Positional constructor arguments
            **kwargs: Keyword constructor arguments

        Raises:
            HeapGuardError: If an argument is itself a HeapGuard
            MemoryError: Propagated unchanged, allocation failure is fatal
        """
        for arg in (*args, *kwargs.values()):
            if isinstance(arg, HeapGuard):
                raise HeapGuardError("Cannot construct a value from a HeapGuard, use HeapGuard.fromGuard()")

        object.__setattr__(self, "_valueType", valueType)
        object.__setattr__(self, "_destroyed", False)
        object.__setattr__(self, "_value", valueType(*args, **kwargs))

    @classmethod
    def fromGuard(cls, other: "HeapGuard[U]", baseType: Optional[Type[T]] = None) -> "HeapGuard[T]":
        """
        Move ownership out of ``other`` into a new guard.

        Args:
            other: Guard to move from, it is left empty
            baseType: Optional base class the new guard is typed as

        Returns:
            New guard owning the same value, no copy is made

        Raises:
            HeapGuardError: If ``other`` is empty or its type does not derive from ``baseType``
        """
        targetType = baseType if baseType is not None else other._valueType
        if not issubclass(other._valueType, targetType):
            raise HeapGuardError(f"{other._valueType.__name__} is not derived from {targetType.__name__}")

        value = other.release()
        guard = cls.__new__(cls)
        object.__setattr__(guard, "_valueType", targetType)
        object.__setattr__(guard, "_destroyed", False)
        object.__setattr__(guard, "_value", value)
        return guard

    def copy(self) -> "HeapGuard[T]":
        """
        Allocate a new guard holding a deep copy of the owned value.

        Raises:
            HeapGuardError: If the guard is empty
        """
        value = self.get()

        guard = type(self).__new__(type(self))
        object.__setattr__(guard, "_valueType", self._valueType)
        object.__setattr__(guard, "_destroyed", False)
        object.__setattr__(guard, "_value", copy.deepcopy(value))
        return guard

    def get(self) -> T:
        """
        Borrow the owned value without giving up ownership.

        Raises:
            HeapGuardError: If the value was released or destroyed
        """
        if self._value is None:
            state = "destroyed" if self._destroyed else "released"
            raise HeapGuardError(f"HeapGuard value already {state}")
        return self._value

    def release(self) -> T:
        """
        Hand the owned value to the caller and disarm destruction.

        Raises:
            HeapGuardError: If the value was already released or destroyed
        """
        value = self.get()
        object.__setattr__(self, "_value", None)
        return value

    def destroy(self) -> None:
        """Tear down the owned value. Safe to call on an empty guard."""
        value = self._value
        if value is None:
            return

        object.__setattr__(self, "_value", None)
        object.__setattr__(self, "_destroyed", True)
        dispose = getattr(value, "dispose", None)
        if dispose is not None:
            dispose()

    def isEmpty(self) -> bool:
        """Return True once the value was released or destroyed."""
        return self._value is None

    @property
    def valueType(self) -> Type[T]:
        return self._valueType

    def swap(self, other: "HeapGuard[T]") -> None:
        """Exchange owned values and destroyed state with another guard of the same type."""
        if self._valueType is not other._valueType:
            raise HeapGuardError("Cannot swap guards of different value types")

        for slot in ("_value", "_destroyed"):
            mine = getattr(self, slot)
            object.__setattr__(self, slot, getattr(other, slot))
            object.__setattr__(other, slot, mine)

    def __setattr__(self, name: str, value: Any) -> None:
        raise HeapGuardError("HeapGuard does not support assignment, move with HeapGuard.fromGuard() instead")

    def __enter__(self) -> "HeapGuard[T]":
        return self

    def __exit__(self, excType, excValue, traceback) -> None:
        self.destroy()

    def __repr__(self) -> str:
        if self._value is None:
            return f"HeapGuard[{self._valueType.__name__}](empty)"
        return f"HeapGuard[{self._valueType.__name__}]({self._value!r})"
