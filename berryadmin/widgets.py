"""Widget identifiers.

Widgets are the UI units bound to fields. Rendering happens elsewhere; this
package only needs to *name* them, so a widget is a class deriving from
:class:`Widget`. Custom widgets subclass one of the built-ins (or ``Widget``)::

    class MoneyWidget(NumberWidget):
        pass
"""
from __future__ import annotations
from typing import Any


class Widget:
    """Base class for all widgets."""

    #: Short identifier exposed in UI metadata (defaults to the class name)
    name: str = 'Widget'

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if 'name' not in cls.__dict__:
            cls.name = cls.__name__


class TextWidget(Widget):
    pass


class TextareaWidget(TextWidget):
    pass


class NumberWidget(Widget):
    pass


class BooleanWidget(Widget):
    pass


class SelectWidget(Widget):
    pass


class MultiSelectWidget(Widget):
    pass


class DateWidget(Widget):
    pass


class TimeWidget(Widget):
    pass


class DateTimeWidget(Widget):
    pass


class BelongsToWidget(Widget):
    pass


class HasManyWidget(Widget):
    pass


def is_widget(value: Any) -> bool:
    return isinstance(value, type) and issubclass(value, Widget)


def is_text_widget(value: Any) -> bool:
    return is_widget(value) and issubclass(value, TextWidget)


def widget_name(value: Any) -> str:
    return getattr(value, 'name', None) or getattr(value, '__name__', repr(value))
