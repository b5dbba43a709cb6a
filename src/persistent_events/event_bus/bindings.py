"""Handler bindings and their persistable form.

A binding wraps whatever was handed to ``bind``. There are three variants:

- ``FunctionBinding``: a module-level function, canonical form ``"pkg.mod:func"``
- ``StaticMethodBinding``: a method reached through its class (classmethod,
  staticmethod or an explicit ``(Class, "method")`` pair), canonical form
  ``"pkg.mod:Class::method"``
- ``CallableBinding``: everything else, i.e. lambdas, nested functions,
  partials, bound instance methods and callable instances

Only the first two can be written to the key-value store, since only they
can be found again by name in a later, unrelated process run. Canonical
forms resolve through ``pkgutil.resolve_name``.
"""

import functools
import hashlib
import inspect
import pkgutil
import types
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from persistent_events.constants import KEY_BIND_SEGMENT, KEY_DELIMITER, KEY_NAMESPACE, METHOD_SEPARATOR

from .core import (
    BindingResolutionError,
    CannotPersistClosureBinding,
    CannotPersistInstanceBinding,
    EventContext,
    HandlerRegistrationError,
)

Handler = Callable[[EventContext], Any]


class Binding(ABC):
    """A handler registered against an event key."""

    @property
    @abstractmethod
    def persistable(self) -> bool:
        """Whether the binding can be written to the store."""

    @abstractmethod
    def serialize(self) -> str:
        """Return the canonical string form.

        Raises:
            NotPersistableError: If the binding has no stable name
        """

    @abstractmethod
    def resolve(self) -> Handler:
        """Return the callable to invoke."""

    def invoke(self, context: EventContext) -> Any:
        """Call the handler with the context as its sole argument."""
        return self.resolve()(context)


def _resolve_reference(reference: str) -> Any:
    try:
        return pkgutil.resolve_name(reference)
    except (ImportError, AttributeError, ValueError) as e:
        raise BindingResolutionError(reference, str(e)) from e


class FunctionBinding(Binding):
    """Reference to a module-level function."""

    def __init__(self, reference: str, func: Handler | None = None) -> None:
        self.reference = reference
        self._func = func

    @property
    def persistable(self) -> bool:
        return True

    def serialize(self) -> str:
        return self.reference

    def resolve(self) -> Handler:
        if self._func is None:
            func = _resolve_reference(self.reference)
            if not callable(func):
                raise BindingResolutionError(self.reference, "not callable")
            self._func = func
        return self._func

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FunctionBinding):
            return NotImplemented
        return self.reference == other.reference

    def __hash__(self) -> int:
        return hash((FunctionBinding, self.reference))

    def __repr__(self) -> str:
        return f"FunctionBinding({self.reference!r})"


class StaticMethodBinding(Binding):
    """Reference to a method looked up on a class rather than an instance."""

    def __init__(self, type_name: str, method_name: str, target: Handler | None = None) -> None:
        self.type_name = type_name
        self.method_name = method_name
        self._target = target

    @property
    def persistable(self) -> bool:
        return True

    def serialize(self) -> str:
        return f"{self.type_name}{METHOD_SEPARATOR}{self.method_name}"

    def resolve(self) -> Handler:
        if self._target is None:
            owner = _resolve_reference(self.type_name)
            method = getattr(owner, self.method_name, None)
            if method is None or not callable(method):
                raise BindingResolutionError(self.serialize(), f"{self.type_name} has no callable {self.method_name!r}")
            self._target = method
        return self._target

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StaticMethodBinding):
            return NotImplemented
        return (self.type_name, self.method_name) == (other.type_name, other.method_name)

    def __hash__(self) -> int:
        return hash((StaticMethodBinding, self.type_name, self.method_name))

    def __repr__(self) -> str:
        return f"StaticMethodBinding({self.type_name!r}, {self.method_name!r})"


class CallableBinding(Binding):
    """A callable that only means something inside the current process.

    ``instance_bound`` distinguishes handlers tied to a live object (bound
    methods, callable instances) from closures; it decides which error a
    persist attempt raises.
    """

    __hash__ = None  # type: ignore[assignment]

    def __init__(self, callback: Handler, instance_bound: bool = False) -> None:
        self.callback = callback
        self.instance_bound = instance_bound

    @property
    def persistable(self) -> bool:
        return False

    def serialize(self) -> str:
        if self.instance_bound:
            raise CannotPersistInstanceBinding(self.callback)
        raise CannotPersistClosureBinding(self.callback)

    def resolve(self) -> Handler:
        return self.callback

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CallableBinding):
            return NotImplemented
        return self.callback is other.callback or self.callback == other.callback

    def __repr__(self) -> str:
        kind = "instance" if self.instance_bound else "closure"
        return f"CallableBinding({self.callback!r}, {kind})"


def _type_reference(cls: type) -> str:
    return f"{cls.__module__}:{cls.__qualname__}"


def _is_closure(qualname: str) -> bool:
    return "<lambda>" in qualname or "<locals>" in qualname


def binding_for(handler: Any) -> Binding:
    """Wrap a handler in the matching binding variant.

    Accepted handlers:
        - an existing ``Binding`` (returned as is)
        - a string reference such as ``"myapp.hooks:on_login"`` or
          ``"myapp.hooks.on_login"``, normalized by ``canonical_binding``
        - a ``(Class, "method")`` or ``(instance, "method")`` pair
        - any callable

    Raises:
        HandlerRegistrationError: If the handler is not callable
    """
    if isinstance(handler, Binding):
        return handler

    if isinstance(handler, str):
        return canonical_binding(handler)

    if isinstance(handler, tuple) and len(handler) == 2 and isinstance(handler[1], str):
        owner, method_name = handler
        if inspect.isclass(owner):
            return StaticMethodBinding(_type_reference(owner), method_name)
        method = getattr(owner, method_name, None)
        if not callable(method):
            raise HandlerRegistrationError(f"{owner!r} has no callable {method_name!r}")
        return CallableBinding(method, instance_bound=True)

    if not callable(handler):
        raise HandlerRegistrationError(f"Handler must be callable: {handler!r}")

    if inspect.ismethod(handler):
        owner = handler.__self__
        if inspect.isclass(owner):
            # classmethod
            return StaticMethodBinding(_type_reference(owner), handler.__name__, target=handler)
        return CallableBinding(handler, instance_bound=True)

    if inspect.isfunction(handler):
        qualname = handler.__qualname__
        if _is_closure(qualname):
            return CallableBinding(handler)
        if "." in qualname:
            # staticmethod (or plain function attribute) looked up through its class
            owner_name, _, method_name = qualname.rpartition(".")
            return StaticMethodBinding(f"{handler.__module__}:{owner_name}", method_name, target=handler)
        return FunctionBinding(f"{handler.__module__}:{qualname}", func=handler)

    if inspect.isbuiltin(handler):
        if isinstance(handler.__self__, types.ModuleType | None) and handler.__module__:
            return FunctionBinding(f"{handler.__module__}:{handler.__qualname__}", func=handler)
        return CallableBinding(handler, instance_bound=True)

    if isinstance(handler, functools.partial):
        return CallableBinding(handler)

    if inspect.isclass(handler):
        if _is_closure(handler.__qualname__):
            return CallableBinding(handler)
        return FunctionBinding(_type_reference(handler), func=handler)

    # Instance with __call__
    return CallableBinding(handler, instance_bound=True)


def serialize_binding(binding: Binding) -> str:
    """Return the canonical form of a persistable binding.

    Raises:
        CannotPersistClosureBinding: For closures, lambdas and partials
        CannotPersistInstanceBinding: For handlers bound to a live object
    """
    return binding.serialize()


def deserialize_binding(form: str) -> Binding:
    """Rebuild a binding from its canonical form.

    ``"Type::method"`` forms become a ``StaticMethodBinding``; anything else is
    taken as a function reference. Nothing is imported until the binding is
    invoked.
    """
    if METHOD_SEPARATOR in form:
        type_name, _, method_name = form.rpartition(METHOD_SEPARATOR)
        return StaticMethodBinding(type_name, method_name)
    return FunctionBinding(form)


def canonical_binding(reference: str) -> Binding:
    """Build a binding from a string reference written by a caller.

    ``pkgutil.resolve_name`` accepts both ``"pkg.mod.func"`` and
    ``"pkg.mod:func"``, so the reference is resolved and its binding derived
    from the target itself. Every spelling of one handler then serializes to
    the same form and the same store record. References that do not resolve,
    or that name something without a canonical form (a module-level lambda),
    are kept as written.
    """
    binding = deserialize_binding(reference)
    try:
        target = binding.resolve()
    except BindingResolutionError:
        return binding

    canonical = binding_for(target)
    return canonical if canonical.persistable else binding


def storage_key(event_name: str, form: str) -> str:
    """Return the store key of a persisted binding.

    The key is content addressed, so persisting the same handler for the same
    event twice overwrites a single record.
    """
    digest = hashlib.md5(form.encode("utf-8"), usedforsecurity=False).hexdigest()
    return KEY_DELIMITER.join((KEY_NAMESPACE, KEY_BIND_SEGMENT, event_name, digest))


def storage_pattern(event_name: str) -> str:
    """Return the glob pattern matching every persisted binding of an event.

    Only names accepted by ``validate_event_name`` are embedded, so the
    pattern has a single wildcard and matches that one event.
    """
    return KEY_DELIMITER.join((KEY_NAMESPACE, KEY_BIND_SEGMENT, event_name, "*"))
