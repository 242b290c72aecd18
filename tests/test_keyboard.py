import pytest

from braillechord.commands import BLANK_CELL, CommandKind, OutputCommand, TextBuffer, apply_command
from braillechord.keyboard import BrailleKeyboard, TouchEvent, TouchPhase
from braillechord.mapping import MappingTable
from braillechord.repeat import RepeatState


@pytest.fixture
def emitted():
    return []


@pytest.fixture
def kb(letters, layout, scheduler, emitted):
    return BrailleKeyboard(letters, layout=layout, emit=emitted.append, scheduler=scheduler)


def gesture(kb, zones, end=TouchPhase.END):
    layout = kb.tracker.layout
    kb.handle_touch(TouchEvent(TouchPhase.BEGIN, *layout.center(zones[0])))
    for zone in zones[1:]:
        kb.handle_touch(TouchEvent(TouchPhase.MOVE, *layout.center(zone)))
    return kb.handle_touch(TouchEvent(end))


def test_tap_inserts_character(kb, emitted):
    command = gesture(kb, [3])
    assert command == OutputCommand.insert_character('a')
    assert emitted == [command]


def test_drag_inserts_character(kb, emitted):
    gesture(kb, [3, 5])
    assert emitted == [OutputCommand.insert_character('b')]


def test_aliased_zones_resolve_the_same(kb, emitted):
    gesture(kb, [1])
    gesture(kb, [7])
    assert emitted == [OutputCommand.insert_character("'")] * 2


def test_unmapped_chord_emits_nothing(kb, emitted):
    assert gesture(kb, [5, 6]) is None
    assert emitted == []
    assert kb.last_chord.pattern == '010010'
    assert kb.last_chord.char is None


def test_no_zone_gesture_emits_nothing(kb, emitted):
    kb.handle_touch(TouchEvent(TouchPhase.BEGIN, 500, 500))
    kb.handle_touch(TouchEvent(TouchPhase.MOVE, 600, 600))
    assert kb.handle_touch(TouchEvent(TouchPhase.END)) is None
    assert emitted == []
    assert kb.last_chord is None


def test_cancelled_gesture_emits_nothing(kb, emitted):
    gesture(kb, [3, 5], end=TouchPhase.CANCEL)
    assert emitted == []
    assert not kb.tracker.is_tracking


def test_move_without_begin_is_ignored(kb, emitted):
    layout = kb.tracker.layout
    kb.handle_touch(TouchEvent(TouchPhase.MOVE, *layout.center(3)))
    kb.handle_touch(TouchEvent(TouchPhase.END))
    assert emitted == []


def test_empty_table_still_has_controls(layout, scheduler):
    buffer = TextBuffer()
    kb = BrailleKeyboard(
        MappingTable(), layout=layout, scheduler=scheduler,
        emit=lambda c: apply_command(c, buffer)
    )
    gesture(kb, [3])
    kb.space()
    kb.blank_cell()
    kb.newline()
    kb.press_delete()
    kb.release_delete()
    assert buffer.text == ' ' + BLANK_CELL


def test_chord_listener(kb):
    chords = []
    kb.add_chord_listener(chords.append)
    gesture(kb, [3, 4])
    assert [c.dots for c in chords] == [frozenset({1, 4})]
    assert chords[0].char == 'c'


def test_tap_controls(kb, emitted):
    kb.release_control('space')
    kb.release_control('newline')
    kb.release_control('blank_cell')
    assert [c.kind for c in emitted] == [
        CommandKind.INSERT_SPACE,
        CommandKind.INSERT_NEWLINE,
        CommandKind.INSERT_BLANK_CELL,
    ]


def test_tap_controls_act_on_release(kb, emitted):
    kb.press_control('space')
    assert emitted == []


def test_unknown_control_is_ignored(kb, emitted):
    kb.press_control('shift')
    kb.release_control('shift')
    assert emitted == []


def test_delete_hold(kb, scheduler, emitted):
    kb.press_control('delete')
    assert emitted == [OutputCommand.delete_backward()]
    scheduler.advance(0.5 + 0.1 * 3)
    kb.release_control('delete')
    scheduler.advance(1)
    assert len(emitted) == 5
    assert all(c.kind == CommandKind.DELETE_BACKWARD for c in emitted)


def test_delete_tap(kb, scheduler, emitted):
    kb.press_delete()
    scheduler.advance(0.2)
    kb.release_delete()
    scheduler.advance(1)
    assert emitted == [OutputCommand.delete_backward()]


def test_close_stops_repeat_and_gesture(kb, scheduler, emitted):
    layout = kb.tracker.layout
    kb.handle_touch(TouchEvent(TouchPhase.BEGIN, *layout.center(3)))
    kb.press_delete()
    kb.close()
    scheduler.advance(2)
    assert kb.repeater.state == RepeatState.IDLE
    assert not kb.tracker.is_tracking
    assert emitted == [OutputCommand.delete_backward()]


def test_emit_errors_are_contained(letters, layout, scheduler):
    def broken(command):
        raise RuntimeError("host went away")

    kb = BrailleKeyboard(letters, layout=layout, emit=broken, scheduler=scheduler)
    assert gesture(kb, [3]) == OutputCommand.insert_character('a')


def test_typing_a_word(kb, scheduler):
    buffer = TextBuffer()
    kb.set_emit(lambda c: apply_command(c, buffer))
    gesture(kb, [4, 3])       # c
    gesture(kb, [3])          # a
    gesture(kb, [5, 3])       # b
    kb.press_delete()
    kb.release_delete()
    gesture(kb, [3])          # a
    kb.space()
    assert buffer.text == 'ca a'
