"""
Chord keyboard: touch events in, output commands out.

Ties the zone tracker, the pattern resolver and the delete repeater
together. The host feeds it touch events and control presses and gets
OutputCommands back through the emit callback.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Dict, FrozenSet, Mapping, Optional

from .commands import OutputCommand
from .patterns import PatternResolver, pattern_for_dots
from .repeat import DEFAULT_INITIAL_DELAY, DEFAULT_INTERVAL, DeleteRepeater, Scheduler
from .tracker import ZoneTracker
from .zones import ZoneLayout

log = logging.getLogger(__name__)


class TouchPhase(Enum):
    BEGIN = auto()
    MOVE = auto()
    END = auto()
    CANCEL = auto()


@dataclass(frozen=True)
class TouchEvent:
    """One touch sample delivered by the host."""
    phase: TouchPhase
    x: float = 0.0
    y: float = 0.0
    timestamp: float = 0.0


@dataclass(frozen=True)
class Chord:
    """A finished gesture."""
    dots: FrozenSet[int]
    pattern: str
    char: Optional[str]


# Controls the host can bind to keys or buttons
CONTROLS = ('delete', 'newline', 'space', 'blank_cell')


class BrailleKeyboard:
    """
    Turns gestures and control presses into output commands.

    Gesture handling is synchronous; the only deferred work is the delete
    repeat, which calls emit from its timer.
    """

    def __init__(
        self,
        table: Mapping[str, str],
        layout: Optional[ZoneLayout] = None,
        emit: Optional[Callable[[OutputCommand], None]] = None,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        repeat_interval: float = DEFAULT_INTERVAL,
        scheduler: Optional[Scheduler] = None
    ):
        self.tracker = ZoneTracker(layout)
        self.resolver = PatternResolver(table)
        self.repeater = DeleteRepeater(
            self._emit_delete,
            initial_delay=initial_delay,
            interval=repeat_interval,
            scheduler=scheduler
        )
        self._emit = emit
        self._last_chord: Optional[Chord] = None
        self._chord_listeners = []

        self._taps: Dict[str, Callable[[], OutputCommand]] = {
            'newline': self.newline,
            'space': self.space,
            'blank_cell': self.blank_cell,
        }

    @property
    def last_chord(self) -> Optional[Chord]:
        """The most recently finished gesture, if any."""
        return self._last_chord

    def set_emit(self, emit: Optional[Callable[[OutputCommand], None]]):
        """Set the callback receiving output commands."""
        self._emit = emit

    def add_chord_listener(self, callback: Callable[[Chord], None]):
        """Add a listener called after every finished gesture."""
        self._chord_listeners.append(callback)

    def _send(self, command: OutputCommand) -> OutputCommand:
        log.debug(f"Emit {command.kind.name} {command.text!r}")
        if self._emit:
            try:
                self._emit(command)
            except Exception as e:
                log.error(f"Error emitting {command.kind.name}: {e}")
        return command

    def _emit_delete(self):
        self._send(OutputCommand.delete_backward())

    # Gesture surface

    def handle_touch(self, event: TouchEvent) -> Optional[OutputCommand]:
        """Feed one touch event. Returns the command emitted, if any."""
        if event.phase == TouchPhase.BEGIN:
            self.tracker.begin(event.x, event.y)
        elif event.phase == TouchPhase.MOVE:
            self.tracker.extend(event.x, event.y)
        elif event.phase == TouchPhase.END:
            return self._finish_gesture()
        elif event.phase == TouchPhase.CANCEL:
            self.tracker.cancel()
        return None

    def _finish_gesture(self) -> Optional[OutputCommand]:
        dots = self.tracker.end()
        if not dots:
            return None

        char = self.resolver.resolve(dots)
        chord = Chord(dots=dots, pattern=pattern_for_dots(dots), char=char)
        self._last_chord = chord
        log.info(f"Chord {chord.pattern} -> {char!r}")

        for listener in self._chord_listeners:
            try:
                listener(chord)
            except Exception as e:
                log.error(f"Error in chord listener: {e}")

        if char is None:
            return None
        return self._send(OutputCommand.insert_character(char))

    # Dedicated controls

    def press_delete(self):
        self.repeater.press()

    def release_delete(self):
        self.repeater.release()

    def newline(self) -> OutputCommand:
        return self._send(OutputCommand.insert_newline())

    def space(self) -> OutputCommand:
        return self._send(OutputCommand.insert_space())

    def blank_cell(self) -> OutputCommand:
        return self._send(OutputCommand.insert_blank_cell())

    def press_control(self, name: str):
        """A control went down. Delete acts on press, the others on release."""
        if name == 'delete':
            self.press_delete()
        elif name not in self._taps:
            log.warning(f"Unknown control {name!r}")

    def release_control(self, name: str):
        """A control went up."""
        if name == 'delete':
            self.release_delete()
        elif name in self._taps:
            self._taps[name]()
        else:
            log.warning(f"Unknown control {name!r}")

    def close(self):
        """Tear down: stop the delete repeat and drop any open gesture."""
        self.repeater.cancel()
        self.tracker.cancel()
