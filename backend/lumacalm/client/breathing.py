"""Breathing exercise panel state.

Alternates between inhale and exhale on one timer and rotates a
motivational message on another. Both timers are asyncio callbacks that
`stop()` cancels; use the exercise as an async context manager so they
are cancelled on every exit path.
"""
import asyncio
import enum
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

BREATH_INTERVAL = 4.0  # seconds per inhale or exhale
MESSAGE_INTERVAL = 8.0  # seconds per motivational message

MOTIVATIONAL_MESSAGES = (
    "You're doing great! 🌸",
    "Breathe in peace, breathe out stress 🌊",
    "You are worthy of calm 💜",
    "Take your time, you're safe here 🦋",
    "One breath at a time 🌟",
    "You've got this 💙",
    "Healing takes time, be patient 🌺",
    "You are stronger than you know 🌈",
)


class BreathingPhase(str, enum.Enum):
    INHALE = "inhale"
    EXHALE = "exhale"

    @property
    def instruction(self) -> str:
        return "Breathe in..." if self is BreathingPhase.INHALE else "Breathe out..."


class BreathingExercise:
    """Timer-driven inhale/exhale cycle with rotating encouragement."""

    def __init__(
        self,
        breath_interval: float = BREATH_INTERVAL,
        message_interval: float = MESSAGE_INTERVAL,
        on_change: Callable[["BreathingExercise"], None] | None = None,
    ):
        self.breath_interval = breath_interval
        self.message_interval = message_interval
        self.on_change = on_change
        self.phase = BreathingPhase.INHALE
        self.message_index = 0
        self._loop: asyncio.AbstractEventLoop | None = None
        self._breath_timer: asyncio.TimerHandle | None = None
        self._message_timer: asyncio.TimerHandle | None = None

    @property
    def running(self) -> bool:
        return self._breath_timer is not None

    @property
    def instruction(self) -> str:
        return self.phase.instruction

    @property
    def message(self) -> str:
        return MOTIVATIONAL_MESSAGES[self.message_index]

    def toggle_phase(self) -> None:
        if self.phase is BreathingPhase.INHALE:
            self.phase = BreathingPhase.EXHALE
        else:
            self.phase = BreathingPhase.INHALE
        self._notify()

    def next_message(self) -> None:
        self.message_index = (self.message_index + 1) % len(MOTIVATIONAL_MESSAGES)
        self._notify()

    def start(self) -> None:
        """Schedule both timers on the running event loop."""
        if self.running:
            return
        self._loop = asyncio.get_running_loop()
        self._schedule_breath()
        self._schedule_message()
        logger.debug("Breathing exercise started")

    def stop(self) -> None:
        """Cancel both timers. Safe to call more than once."""
        if not self.running:
            return
        for timer in (self._breath_timer, self._message_timer):
            if timer is not None:
                timer.cancel()
        self._breath_timer = None
        self._message_timer = None
        self._loop = None
        logger.debug("Breathing exercise stopped")

    async def __aenter__(self) -> "BreathingExercise":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def _schedule_breath(self) -> None:
        self._breath_timer = self._loop.call_later(self.breath_interval, self._on_breath_timer)

    def _schedule_message(self) -> None:
        self._message_timer = self._loop.call_later(self.message_interval, self._on_message_timer)

    def _on_breath_timer(self) -> None:
        self._schedule_breath()
        self.toggle_phase()

    def _on_message_timer(self) -> None:
        self._schedule_message()
        self.next_message()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self)
