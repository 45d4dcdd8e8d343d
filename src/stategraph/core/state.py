# state.py - State schema and per-field reducers
#
# A schema maps every state field to a reducer that knows:
#   - the field's initial value
#   - how to merge a proposed value into the current one
#
# Built-in reducers:
#   Replace  -> merge(old, new) = new
#   Append   -> merge(old, new) = old + new      (conversation history etc.)
#   Custom   -> merge(old, new) = fn(old, new)

import copy
from abc import ABC, abstractmethod
from typing import Any, Callable, Mapping, Optional

from .errors import InvalidUpdateError, ReducerError


class Reducer(ABC):
    """Field descriptor: initial value + merge policy."""

    def __init__(self, default: Any = None):
        self.default = default

    def initial(self) -> Any:
        # Fresh copy so mutable defaults are never shared between runs
        return copy.deepcopy(self.default)

    @abstractmethod
    def merge(self, old: Any, new: Any) -> Any:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(default={self.default!r})"


class Replace(Reducer):
    """Last write wins."""

    def merge(self, old: Any, new: Any) -> Any:
        return new


class Append(Reducer):
    """
    Concatenate lists. A single non-list value is appended as one item.

    Usage:
        schema = {"messages": Append()}
        # old = [m1], node returns {"messages": [m2]}  ->  [m1, m2]
    """

    def __init__(self, default: Optional[list] = None):
        super().__init__(default if default is not None else [])

    def merge(self, old: Any, new: Any) -> Any:
        current = list(old) if old is not None else []
        if isinstance(new, (list, tuple)):
            return current + list(new)
        return current + [new]


class Custom(Reducer):
    """User supplied merge function `fn(old, new) -> merged`."""

    def __init__(self, fn: Callable[[Any, Any], Any], default: Any = None):
        if not callable(fn):
            raise TypeError(f"Custom reducer expects a callable, got {type(fn).__name__}")
        super().__init__(default)
        self.fn = fn

    def merge(self, old: Any, new: Any) -> Any:
        return self.fn(old, new)

    def __repr__(self) -> str:
        name = getattr(self.fn, "__name__", repr(self.fn))
        return f"Custom({name}, default={self.default!r})"


class StateSchema:
    """
    The set of declared state fields and their reducers.

    Usage:
        schema = StateSchema({
            "score": Replace(0),
            "history": Append(),
        })
        state = schema.initial()                        # {"score": 0, "history": []}
        state = schema.merge(state, {"history": ["a"]}) # {"score": 0, "history": ["a"]}
    """

    def __init__(self, fields: Mapping[str, Reducer]):
        if not fields:
            raise ValueError("State schema must declare at least one field.")
        for name, reducer in fields.items():
            if not isinstance(name, str) or not name:
                raise ValueError(f"Invalid state field name: {name!r}")
            if not isinstance(reducer, Reducer):
                raise TypeError(
                    f"Field '{name}' must be declared with a Reducer "
                    f"(Replace, Append, Custom), got {type(reducer).__name__}."
                )
        self._fields: dict[str, Reducer] = dict(fields)

    @classmethod
    def coerce(cls, schema: "StateSchema | Mapping[str, Reducer]") -> "StateSchema":
        if isinstance(schema, StateSchema):
            return schema
        return cls(schema)

    @property
    def fields(self) -> list[str]:
        return list(self._fields.keys())

    def reducer(self, name: str) -> Reducer:
        return self._fields[name]

    def initial(self) -> dict[str, Any]:
        return {name: reducer.initial() for name, reducer in self._fields.items()}

    def validate_update(self, update: Any, source: str) -> dict[str, Any]:
        """Check that `update` is a mapping over declared fields. None means no update."""
        if update is None:
            return {}
        if not isinstance(update, Mapping):
            raise InvalidUpdateError(
                f"{source} must return a mapping of state fields, "
                f"got {type(update).__name__}."
            )
        unknown = [key for key in update if key not in self._fields]
        if unknown:
            raise InvalidUpdateError(
                f"{source} returned unknown state field(s): {', '.join(map(str, unknown))}. "
                f"Declared fields: {', '.join(self._fields)}"
            )
        return dict(update)

    def merge(self, state: Mapping[str, Any], update: Mapping[str, Any], source: str = "Update") -> dict[str, Any]:
        """
        Return a new state with `update` merged field by field. Absent fields are untouched.

        Raises:
            ReducerError: A reducer raised; the original exception is __cause__
        """
        merged = dict(state)
        for name, value in update.items():
            try:
                merged[name] = self._fields[name].merge(merged.get(name), value)
            except Exception as e:
                raise ReducerError(name, source, e) from e
        return merged

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v!r}" for k, v in self._fields.items())
        return f"StateSchema({inner})"
