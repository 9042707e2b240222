"""Keypad-style input events and a small publish/subscribe bus."""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable


class InputKind(Enum):
    DIGIT = "digit"
    DELETE = "delete"
    SUBMIT = "submit"


@dataclass(frozen=True)
class InputEvent:
    kind: InputKind
    value: str = ""


def digit(ch: str) -> InputEvent:
    return InputEvent(InputKind.DIGIT, ch)


def delete() -> InputEvent:
    return InputEvent(InputKind.DELETE)


def submit() -> InputEvent:
    return InputEvent(InputKind.SUBMIT)


Handler = Callable[[InputEvent], None]


class Subscription:
    def __init__(self, bus: "InputBus", handler: Handler):
        self.bus = bus
        self.handler = handler

    @property
    def active(self) -> bool:
        return self.bus.is_subscribed(self)

    def unsubscribe(self) -> None:
        self.bus._remove(self)


class InputBus:
    """Delivers input events to every current subscriber."""

    def __init__(self):
        self.lock = threading.Lock()
        self._subscriptions: list[Subscription] = []

    def subscribe(self, handler: Handler) -> Subscription:
        sub = Subscription(self, handler)
        with self.lock:
            self._subscriptions.append(sub)
        return sub

    def is_subscribed(self, sub: Subscription) -> bool:
        with self.lock:
            return sub in self._subscriptions

    def _remove(self, sub: Subscription) -> None:
        with self.lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)

    @property
    def subscriber_count(self) -> int:
        with self.lock:
            return len(self._subscriptions)

    def publish(self, event: InputEvent) -> None:
        with self.lock:
            subs = list(self._subscriptions)
        for sub in subs:
            sub.handler(event)
