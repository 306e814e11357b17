"""Operator notifications raised by hooks."""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from insura_ops.utils.errors import FriendlyError, Severity
from insura_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)


class ToastVariant(str, Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass
class Toast:
    title: str
    description: Optional[str] = None
    variant: ToastVariant = ToastVariant.DEFAULT


class Notifier:
    """Collects toasts and forwards them to subscribers."""

    def __init__(self):
        self.toasts: List[Toast] = []
        self._listeners: List[Callable[[Toast], None]] = []

    def subscribe(self, listener: Callable[[Toast], None]) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None

    def notify(self, toast: Toast) -> Toast:
        if toast.variant == ToastVariant.DESTRUCTIVE:
            LOGGER.warning(f"{toast.title}: {toast.description}")
        else:
            LOGGER.info(f"{toast.title}{': ' + toast.description if toast.description else ''}")
        self.toasts.append(toast)
        for listener in list(self._listeners):
            listener(toast)
        return toast

    def success(self, title: str, description: Optional[str] = None) -> Toast:
        return self.notify(Toast(title=title, description=description))

    def error(self, error: FriendlyError) -> Toast:
        variant = ToastVariant.DESTRUCTIVE if error.type == Severity.ERROR else ToastVariant.DEFAULT
        return self.notify(Toast(title=error.title, description=error.message, variant=variant))

    def clear(self) -> None:
        self.toasts.clear()
