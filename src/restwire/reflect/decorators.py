# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

from typing import Any, Callable, Self, TypeVar, cast

DECORATED_T = TypeVar("DECORATED_T", bound="Callable[..., Any] | type")


class StackableDecorator:
    """
    Base for decorators that only attach metadata to a function or class.

    Several decorators of the same kind may be stacked on one subject; they are
    stored in application order (innermost first) under the subject's own
    ``__dict__`` so subclasses never see the metadata of their parents.
    """

    _ATTR_NAME: str = "__restwire_decorators__"

    def __call__(self, subject: DECORATED_T) -> DECORATED_T:
        self.register(subject, self)
        return subject

    @classmethod
    def decorator_key(cls) -> Any:
        return cls

    @classmethod
    def _registry(cls, subject: Any) -> "dict[Any, list[StackableDecorator]]":
        if cls._ATTR_NAME not in subject.__dict__:
            setattr(subject, cls._ATTR_NAME, {})
        return cast("dict[Any, list[StackableDecorator]]", subject.__dict__[cls._ATTR_NAME])

    @classmethod
    def register(cls, subject: Any, decorator: "StackableDecorator") -> None:
        cls._registry(subject).setdefault(cls.decorator_key(), []).append(decorator)

    @classmethod
    def get(cls, subject: Any) -> list[Self]:
        registry = getattr(subject, "__dict__", {}).get(cls._ATTR_NAME)
        if registry is None:
            return []
        return cast(list[Self], list(registry.get(cls.decorator_key(), [])))

    @classmethod
    def get_last(cls, subject: Any) -> Self | None:
        decorators = cls.get(subject)
        if decorators:
            return decorators[-1]
        return None
