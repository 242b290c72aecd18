"""
Desktop host for the chord keyboard.

Uses pynput to turn left-button mouse drags into touch events, to bind
the dedicated controls to keys, and to type the output into whatever
application has focus. Bound control keys are swallowed on Windows and
macOS so they never reach that application.
"""

import logging
import queue
import sys
import threading
from typing import Dict, Optional

from pynput import keyboard, mouse
from pynput.keyboard import Key, KeyCode
from pynput.mouse import Button

from .commands import OutputCommand, TextTarget, apply_command
from .keyboard import BrailleKeyboard, TouchEvent, TouchPhase

if sys.platform == 'darwin':
    import Quartz

log = logging.getLogger(__name__)

# Windows low-level keyboard hook messages
WM_KEYDOWN = 0x0100
WM_KEYUP = 0x0101
WM_SYSKEYDOWN = 0x0104
WM_SYSKEYUP = 0x0105


def parse_key(name: str):
    """Convert a config key name ('f9', 'x') to a pynput key."""
    name = name.strip().lower()
    if len(name) == 1:
        return KeyCode.from_char(name)
    try:
        return Key[name]
    except KeyError:
        raise ValueError(f"Unknown key name {name!r}") from None


def key_to_string(key) -> Optional[str]:
    """Convert a pynput key to its string representation."""
    if isinstance(key, KeyCode):
        if key.char:
            return key.char.lower()
        return None
    elif isinstance(key, Key):
        return key.name
    return None


def key_vk(key, platform: str = sys.platform) -> Optional[int]:
    """Virtual key code the OS keyboard hook reports for a pynput key."""
    if isinstance(key, Key):
        key = key.value
    if key.vk is not None:
        return key.vk
    # Windows reports letters and digits by their upper-case ASCII code
    char = key.char or ''
    if platform == 'win32' and len(char) == 1 and char.isascii() and char.isalnum():
        return ord(char.upper())
    return None


class PynputTextTarget:
    """TextTarget that types into the focused application."""

    def __init__(self):
        self._controller = keyboard.Controller()

    def insert_text(self, text: str):
        if text == "\n":
            self._controller.tap(Key.enter)
        else:
            self._controller.type(text)

    def delete_backward(self):
        self._controller.tap(Key.backspace)


class DesktopHost:
    """
    Feeds pynput mouse and key events to a BrailleKeyboard.

    pynput hooks must return quickly, so they only enqueue. A worker
    thread drains the queue, which keeps gesture handling and text
    output on one thread.
    """

    def __init__(
        self,
        chord_keyboard: BrailleKeyboard,
        target: TextTarget,
        controls: Dict[str, str],
        platform: str = sys.platform
    ):
        self._keyboard = chord_keyboard
        self._target = target
        self._platform = platform
        self._key_controls: Dict[str, str] = {}  # key string -> control name
        self._vk_controls: Dict[int, str] = {}   # virtual key code -> control name
        for control, key_name in controls.items():
            try:
                key = parse_key(key_name)
            except ValueError as e:
                log.warning(f"Control '{control}' not bound: {e}")
                continue
            self._key_controls[key_to_string(key)] = control
            vk = key_vk(key, platform)
            if vk is not None:
                self._vk_controls[vk] = control
            log.debug(f"Bound {key_name} -> {control} (vk={vk})")

        self._keyboard_listener: Optional[keyboard.Listener] = None
        self._mouse_listener: Optional[mouse.Listener] = None
        self._held_controls = set()
        self._dragging = False

        self._event_queue: queue.Queue = queue.Queue()
        self._worker_thread: Optional[threading.Thread] = None
        self._running = False

        self._keyboard.set_emit(self._enqueue_command)

    def _enqueue_command(self, command: OutputCommand):
        # Called from the worker thread and from the delete repeat timer
        self._event_queue.put(('command', command))

    # Mouse hooks

    def _on_mouse_click(self, x, y, button, pressed):
        if button != Button.left:
            return
        self._dragging = pressed
        phase = TouchPhase.BEGIN if pressed else TouchPhase.END
        self._event_queue.put(('touch', TouchEvent(phase, x, y)))

    def _on_mouse_move(self, x, y):
        if self._dragging:
            self._event_queue.put(('touch', TouchEvent(TouchPhase.MOVE, x, y)))

    # Key hooks

    def _control_down(self, control: str):
        if control not in self._held_controls:
            self._held_controls.add(control)
            self._event_queue.put(('press', control))

    def _control_up(self, control: str):
        self._held_controls.discard(control)
        self._event_queue.put(('release', control))

    def _on_key_press(self, key):
        try:
            control = self._key_controls.get(key_to_string(key))
            if control is not None:
                self._control_down(control)
        except Exception as e:
            log.error(f"Error in key press handler: {e}")

    def _on_key_release(self, key):
        try:
            control = self._key_controls.get(key_to_string(key))
            if control is not None:
                self._control_up(control)
        except Exception as e:
            log.error(f"Error in key release handler: {e}")

    def _win32_event_filter(self, msg, data):
        """
        Windows hook filter, called before the pynput callbacks.

        A suppressed event never reaches the callbacks, so bound keys are
        handled here. suppress_event() raises to abort the hook chain.
        """
        control = self._vk_controls.get(data.vkCode)
        if control is None:
            return True

        try:
            if msg in (WM_KEYDOWN, WM_SYSKEYDOWN):
                self._control_down(control)
            elif msg in (WM_KEYUP, WM_SYSKEYUP):
                self._control_up(control)
        except Exception as e:
            log.error(f"Error in key filter: {e}")

        listener = self._keyboard_listener
        if listener is not None:
            listener.suppress_event()

    def _swallows_keycode(self, keycode: int) -> bool:
        return keycode in self._vk_controls

    def _darwin_intercept(self, event_type, event):
        """macOS event tap, called after the pynput callbacks. None drops the event."""
        keycode = Quartz.CGEventGetIntegerValueField(event, Quartz.kCGKeyboardEventKeycode)
        if self._swallows_keycode(keycode):
            return None
        return event

    def _process(self, item):
        kind = item[0]
        if kind == 'touch':
            self._keyboard.handle_touch(item[1])
        elif kind == 'press':
            self._keyboard.press_control(item[1])
        elif kind == 'release':
            self._keyboard.release_control(item[1])
        elif kind == 'command':
            apply_command(item[1], self._target)

    def _worker_loop(self):
        """Worker thread that processes touch events, controls and output."""
        log.info("Host worker thread started")
        while self._running:
            try:
                item = self._event_queue.get(timeout=0.1)
            except queue.Empty:
                continue

            try:
                self._process(item)
            except Exception as e:
                log.error(f"Error in worker loop: {e}")
            finally:
                self._event_queue.task_done()

        log.info("Host worker thread stopped")

    def start(self):
        """Start mouse and keyboard listeners."""
        self._running = True

        self._worker_thread = threading.Thread(target=self._worker_loop, daemon=True)
        self._worker_thread.start()

        # Only the options for the running platform are used by pynput
        self._keyboard_listener = keyboard.Listener(
            on_press=self._on_key_press,
            on_release=self._on_key_release,
            win32_event_filter=self._win32_event_filter,
            darwin_intercept=self._darwin_intercept
        )
        self._keyboard_listener.start()
        if self._platform not in ('win32', 'darwin') and self._key_controls:
            log.warning("Control keys cannot be suppressed on this platform; "
                        "they also reach the focused application")
        log.info("Keyboard listener started")

        self._mouse_listener = mouse.Listener(
            on_move=self._on_mouse_move,
            on_click=self._on_mouse_click
        )
        self._mouse_listener.start()
        log.info("Mouse listener started")

    def stop(self):
        """Stop listeners and tear down the keyboard."""
        log.info("Stopping listeners")

        if self._keyboard_listener:
            self._keyboard_listener.stop()
            self._keyboard_listener = None

        if self._mouse_listener:
            self._mouse_listener.stop()
            self._mouse_listener = None

        if self._dragging:
            self._dragging = False
            self._event_queue.put(('touch', TouchEvent(TouchPhase.CANCEL)))

        self._held_controls.clear()
        self._keyboard.repeater.cancel()

        # Let the worker drain what is already queued
        if self._worker_thread:
            self._event_queue.join()
        self._running = False
        if self._worker_thread:
            self._worker_thread.join(timeout=1.0)
            self._worker_thread = None

        self._keyboard.close()
        log.info("Listeners stopped")
