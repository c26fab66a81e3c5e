from __future__ import annotations

from typing import Callable, Dict, List, Tuple


class CallSpyMixin:
    """Collects (method_name, args, kwargs) for assertions."""

    def __init__(self) -> None:
        self.received_calls: List[Tuple[str, tuple, dict]] = []

    def _touch(self, method: Callable, /, *args, **kwargs) -> str:
        name = method.__name__
        self.received_calls.append((name, args, kwargs))
        return name

    def call_count(self, method: Callable) -> int:
        return sum(1 for name, _, _ in self.received_calls if name == method.__name__)


class ExceptionPlanMixin:
    """Lets you pre-wire exceptions per method name."""

    def __init__(self) -> None:
        self._exceptions: Dict[str, Exception] = {}

    def set_exception(self, method: Callable, exc: Exception) -> None:
        self._exceptions[method.__name__] = exc

    def clear_exception(self, method: Callable) -> None:
        self._exceptions.pop(method.__name__, None)

    def _maybe_raise(self, method_name: str) -> None:
        exc = self._exceptions.get(method_name)
        if exc:
            raise exc


class FakeBase(CallSpyMixin, ExceptionPlanMixin):
    """
    For fakes: call tracking + planned exceptions.
    Your class keeps its own store and accessors.
    """

    def __init__(self) -> None:
        CallSpyMixin.__init__(self)
        ExceptionPlanMixin.__init__(self)

    def _before(self, method: Callable, /, *args, **kwargs) -> str:
        name = self._touch(method, *args, **kwargs)
        self._maybe_raise(name)
        return name
