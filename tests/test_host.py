from types import SimpleNamespace

import pytest

# pynput needs a display or an input backend
host_module = pytest.importorskip('braillechord.host')

from pynput.keyboard import Key, KeyCode
from pynput.mouse import Button

from braillechord.commands import TextBuffer
from braillechord.keyboard import BrailleKeyboard, TouchPhase

DesktopHost = host_module.DesktopHost
key_vk = host_module.key_vk
WM_KEYDOWN = host_module.WM_KEYDOWN
WM_KEYUP = host_module.WM_KEYUP
WM_SYSKEYDOWN = host_module.WM_SYSKEYDOWN


class FakeListener:
    def __init__(self):
        self.suppressed = 0

    def suppress_event(self):
        self.suppressed += 1


@pytest.fixture
def buffer():
    return TextBuffer()


@pytest.fixture
def host(letters, layout, scheduler, buffer):
    kb = BrailleKeyboard(letters, layout=layout, scheduler=scheduler)
    h = DesktopHost(kb, buffer, {'delete': 'f9', 'space': 'x'}, platform='win32')
    h._keyboard_listener = FakeListener()
    return h


def queued(host):
    items = []
    while not host._event_queue.empty():
        items.append(host._event_queue.get_nowait())
        host._event_queue.task_done()
    return items


def drain(host):
    while not host._event_queue.empty():
        host._process(host._event_queue.get_nowait())
        host._event_queue.task_done()


def hook_data(key):
    return SimpleNamespace(vkCode=key_vk(key, 'win32'))


def test_key_vk_for_letters_on_windows():
    assert key_vk(KeyCode.from_char('x'), 'win32') == ord('X')
    assert key_vk(KeyCode.from_char('7'), 'win32') == ord('7')


def test_key_vk_for_special_keys():
    assert key_vk(Key.f9) == Key.f9.value.vk


def test_bound_key_is_suppressed(host):
    host._win32_event_filter(WM_KEYDOWN, hook_data(Key.f9))
    host._win32_event_filter(WM_KEYUP, hook_data(Key.f9))
    assert host._keyboard_listener.suppressed == 2
    assert queued(host) == [('press', 'delete'), ('release', 'delete')]


def test_bound_letter_is_suppressed(host):
    host._win32_event_filter(WM_KEYDOWN, hook_data(KeyCode.from_char('x')))
    assert host._keyboard_listener.suppressed == 1
    assert queued(host) == [('press', 'space')]


def test_unbound_key_passes_through(host):
    assert host._win32_event_filter(WM_KEYDOWN, hook_data(Key.f1)) is True
    assert host._keyboard_listener.suppressed == 0
    assert queued(host) == []


def test_held_key_presses_once(host):
    for _ in range(3):
        host._win32_event_filter(WM_KEYDOWN, hook_data(Key.f9))
    host._win32_event_filter(WM_SYSKEYDOWN, hook_data(Key.f9))
    assert host._keyboard_listener.suppressed == 4
    assert queued(host) == [('press', 'delete')]


def test_filter_after_stop_does_not_raise(host):
    host._keyboard_listener = None
    host._win32_event_filter(WM_KEYDOWN, hook_data(Key.f9))
    assert queued(host) == [('press', 'delete')]


def test_darwin_swallows_bound_keycodes(host):
    assert host._swallows_keycode(key_vk(Key.f9))
    assert not host._swallows_keycode(key_vk(Key.f1))


def test_callbacks_map_controls(host):
    host._on_key_press(Key.f9)
    host._on_key_press(Key.f9)
    host._on_key_release(Key.f9)
    host._on_key_press(Key.f1)
    assert queued(host) == [('press', 'delete'), ('release', 'delete')]


def test_unknown_key_name_is_not_bound(letters, scheduler, caplog):
    kb = BrailleKeyboard(letters, scheduler=scheduler)
    h = DesktopHost(kb, TextBuffer(), {'delete': 'nosuchkey'}, platform='win32')
    assert h._key_controls == {}
    assert h._vk_controls == {}
    assert "not bound" in caplog.text


def test_left_drag_becomes_touch_events(host, layout):
    x, y = layout.center(3)
    host._on_mouse_move(x, y)  # Not dragging yet
    host._on_mouse_click(x, y, Button.left, True)
    host._on_mouse_move(x + 1, y)
    host._on_mouse_click(x + 1, y, Button.left, False)
    host._on_mouse_click(x, y, Button.right, True)

    phases = [item[1].phase for item in queued(host)]
    assert phases == [TouchPhase.BEGIN, TouchPhase.MOVE, TouchPhase.END]


def test_tap_types_character(host, layout, buffer):
    x, y = layout.center(3)
    host._on_mouse_click(x, y, Button.left, True)
    host._on_mouse_click(x, y, Button.left, False)
    drain(host)
    assert buffer.text == 'a'


def test_controls_reach_target(host, buffer, scheduler):
    buffer.insert_text('abc')
    host._win32_event_filter(WM_KEYDOWN, hook_data(KeyCode.from_char('x')))
    host._win32_event_filter(WM_KEYUP, hook_data(KeyCode.from_char('x')))
    host._win32_event_filter(WM_KEYDOWN, hook_data(Key.f9))
    drain(host)
    assert buffer.text == 'abc'

    host._win32_event_filter(WM_KEYUP, hook_data(Key.f9))
    drain(host)
    scheduler.advance(1.0)
    drain(host)
    assert buffer.text == 'abc'
