"""Clocked request/response controller around the iteration engine."""

from __future__ import annotations

import enum
import logging
import threading
from typing import Optional

from .coordinates import ComplexConstant, ViewParameters, map_request
from .engine import IterationState, has_escaped, next_iterate

logger = logging.getLogger(__name__)


class ControllerState(enum.Enum):
    IDLE = "idle"
    BUSY = "busy"
    DONE = "done"


class RequestController:
    """Accept one request at a time and iterate it one step per ``tick()``.

    The handshake follows the register interface: ``start`` is only sampled
    while idle and enabled, ``busy`` is high until the escape test fires, and
    ``done`` is high for exactly one tick before the controller falls back to
    idle. ``reset`` (or dropping ``enable``) abandons whatever is in flight.
    """

    def __init__(self, enable: bool = True) -> None:
        self._lock = threading.Lock()
        self._enable = enable
        self._state = ControllerState.IDLE
        self._params: Optional[ViewParameters] = None
        self._constant: Optional[ComplexConstant] = None
        self._iterate: Optional[IterationState] = None
        self._result: Optional[int] = None
        self._cycles = 0

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._state is ControllerState.BUSY

    @property
    def done(self) -> bool:
        return self._state is ControllerState.DONE

    @property
    def ready(self) -> bool:
        return self._state is ControllerState.IDLE and self._enable

    @property
    def result(self) -> Optional[int]:
        return self._result

    @property
    def cycles(self) -> int:
        """Ticks spent in the busy state by the current or last request."""
        return self._cycles

    @property
    def enable(self) -> bool:
        return self._enable

    @enable.setter
    def enable(self, value: bool) -> None:
        with self._lock:
            self._enable = bool(value)
            if not self._enable and self._state is not ControllerState.IDLE:
                logger.debug("enable dropped in %s state, aborting request", self._state.value)
                self._clear()

    def reset(self) -> None:
        with self._lock:
            if self._state is not ControllerState.IDLE:
                logger.debug("reset in %s state, discarding request", self._state.value)
            self._clear()

    def _clear(self) -> None:
        self._state = ControllerState.IDLE
        self._params = None
        self._constant = None
        self._iterate = None
        self._result = None
        self._cycles = 0

    def start(self, params: ViewParameters) -> bool:
        """Submit ``params``; returns ``False`` if the request was ignored."""

        with self._lock:
            if not self._enable or self._state is not ControllerState.IDLE:
                logger.debug("start ignored (enable=%s, state=%s)", self._enable, self._state.value)
                return False
            self._params = params
            self._constant = map_request(params)
            self._iterate = IterationState()
            self._cycles = 0
            self._state = ControllerState.BUSY
            logger.debug("accepted request %s -> c=%s", params, self._constant)
            return True

    def tick(self) -> None:
        """Advance one clock."""

        with self._lock:
            if self._state is ControllerState.BUSY:
                self._cycles += 1
                if has_escaped(self._iterate, self._params.max_iter_limit):
                    self._result = self._iterate.iteration
                    self._state = ControllerState.DONE
                else:
                    self._iterate = next_iterate(self._iterate, self._constant.c_real, self._constant.c_imag)
            elif self._state is ControllerState.DONE:
                self._state = ControllerState.IDLE
                self._params = None
                self._constant = None
                self._iterate = None

    def run(self, params: ViewParameters, max_ticks: Optional[int] = None) -> int:
        """Submit ``params``, clock until ``done`` and return the count."""

        if not self.start(params):
            raise RuntimeError(f"request not accepted in {self._state.value} state (enable={self._enable})")
        ticks = 0
        while not self.done:
            if max_ticks is not None and ticks >= max_ticks:
                raise TimeoutError(f"no result after {max_ticks} ticks")
            self.tick()
            ticks += 1
            if self._state is ControllerState.IDLE:
                raise RuntimeError("request aborted before completion")
        return self._result
