#!/usr/bin/env python3
"""
user_action.py - Classify raw key events into user actions
キーイベントをユーザー操作に分類する

================================================================================
OVERVIEW / 概要
================================================================================

IBus hands the engine a keyval (an X11 keysym) and a modifier mask. This
module turns the pair into one abstract UserAction that the composition
state machine understands:

IBusはエンジンにkeyval（X11 keysym）と修飾キーのマスクを渡す。このモジュールは
それを状態マシンが理解する抽象的な UserAction に変換する:

    (0xff08, 0)                    → Backspace()
    (0x0020, CONTROL_MASK)         → ToggleInputMode()   (if enabled / 有効時)
    (0xff51, SHIFT_MASK)           → AdjustClauseBoundary(-1)
    (0xffb1, 0)                    → Number(1, is_numpad=True)
    (0x0061, 0)                    → Input('a')          (via keyboard state)
    (0xffbe, 0)                    → Function(6)         (F6)

classify() is total: an unmapped key yields Unknown(), and a key that must
be left to the application (a disabled shortcut, other control chords)
yields None. Only a missing keyboard-state snapshot is an error.

classify() は全域関数: 対応のないキーは Unknown()、アプリケーションに任せるべき
キー（無効なショートカット、その他のCtrl組み合わせ）は None を返す。
キーボード状態のスナップショットが無い場合のみエラーとなる。

================================================================================
"""

import dataclasses
import logging

logger = logging.getLogger(__name__)

# IBus.ModifierType bits
SHIFT_MASK = 1 << 0
LOCK_MASK = 1 << 1
CONTROL_MASK = 1 << 2
MOD1_MASK = 1 << 3  # Alt
SUPER_MASK = 1 << 26
RELEASE_MASK = 1 << 30

# keysyms (same values as IBus.BackSpace, IBus.Return, ...)
KEY_SPACE = 0x0020
KEY_GRAVE = 0x0060
KEY_BACKSPACE = 0xff08
KEY_TAB = 0xff09
KEY_RETURN = 0xff0d
KEY_ESCAPE = 0xff1b
KEY_LEFT = 0xff51
KEY_UP = 0xff52
KEY_RIGHT = 0xff53
KEY_DOWN = 0xff54
KEY_KP_ENTER = 0xff8d
KEY_KP_LEFT = 0xff96
KEY_KP_UP = 0xff97
KEY_KP_RIGHT = 0xff98
KEY_KP_DOWN = 0xff99
KEY_KP_MULTIPLY = 0xffaa
KEY_KP_ADD = 0xffab
KEY_KP_SEPARATOR = 0xffac
KEY_KP_SUBTRACT = 0xffad
KEY_KP_DECIMAL = 0xffae
KEY_KP_DIVIDE = 0xffaf
KEY_KP_0 = 0xffb0
KEY_KP_9 = 0xffb9
KEY_F6 = 0xffc3
KEY_F10 = 0xffc7
KEY_KANJI = 0xff21
KEY_MUHENKAN = 0xff22
KEY_HENKAN = 0xff23
KEY_HIRAGANA_KATAKANA = 0xff27
KEY_ZENKAKU = 0xff28
KEY_HANKAKU = 0xff29
KEY_ZENKAKU_HANKAKU = 0xff2a
KEY_EISU_TOGGLE = 0xff30

NUMPAD_SYMBOLS = {
    KEY_KP_MULTIPLY: '*',
    KEY_KP_ADD: '+',
    KEY_KP_SEPARATOR: ',',
    KEY_KP_SUBTRACT: '-',
    KEY_KP_DECIMAL: '.',
    KEY_KP_DIVIDE: '/',
}

TOGGLE_KEYS = frozenset([KEY_ZENKAKU_HANKAKU, KEY_ZENKAKU, KEY_HANKAKU, KEY_KANJI])
INPUT_MODE_ON_KEYS = frozenset([KEY_HENKAN, KEY_HIRAGANA_KATAKANA])
INPUT_MODE_OFF_KEYS = frozenset([KEY_MUHENKAN, KEY_EISU_TOGGLE])


class KeyboardStateError(Exception):
    """The keyboard-state snapshot could not be read."""


class Direction:
    UP = 'up'
    DOWN = 'down'
    LEFT = 'left'
    RIGHT = 'right'


@dataclasses.dataclass(frozen=True)
class Input:
    char: str


@dataclasses.dataclass(frozen=True)
class Backspace:
    pass


@dataclasses.dataclass(frozen=True)
class Enter:
    pass


@dataclasses.dataclass(frozen=True)
class Space:
    shift: bool = False


@dataclasses.dataclass(frozen=True)
class Tab:
    pass


@dataclasses.dataclass(frozen=True)
class Escape:
    pass


@dataclasses.dataclass(frozen=True)
class Unknown:
    pass


@dataclasses.dataclass(frozen=True)
class Navigation:
    direction: str


@dataclasses.dataclass(frozen=True)
class Function:
    number: int  # 6..10


@dataclasses.dataclass(frozen=True)
class Number:
    value: int
    is_numpad: bool = False
    shift: bool = False


@dataclasses.dataclass(frozen=True)
class NumpadSymbol:
    char: str


@dataclasses.dataclass(frozen=True)
class ToggleInputMode:
    pass


@dataclasses.dataclass(frozen=True)
class InputModeOn:
    pass


@dataclasses.dataclass(frozen=True)
class InputModeOff:
    pass


@dataclasses.dataclass(frozen=True)
class CommitFirstClause:
    pass


@dataclasses.dataclass(frozen=True)
class CommitAndNextClause:
    pass


@dataclasses.dataclass(frozen=True)
class AdjustClauseBoundary:
    offset: int


_NAVIGATION_KEYS = {
    KEY_LEFT: Direction.LEFT,
    KEY_UP: Direction.UP,
    KEY_RIGHT: Direction.RIGHT,
    KEY_DOWN: Direction.DOWN,
    KEY_KP_LEFT: Direction.LEFT,
    KEY_KP_UP: Direction.UP,
    KEY_KP_RIGHT: Direction.RIGHT,
    KEY_KP_DOWN: Direction.DOWN,
}


def _resolve_unicode(keyval, keyboard_state):
    if keyboard_state is None:
        raise KeyboardStateError('no keyboard state snapshot available')
    to_unicode = getattr(keyboard_state, 'to_unicode', None)
    if not callable(to_unicode):
        raise KeyboardStateError(f'malformed keyboard state snapshot: {keyboard_state!r}')
    return to_unicode(keyval)


def classify(keyval, modifiers, shortcuts, keyboard_state):
    """
    Map a key press to a UserAction.

    Args:
        keyval: IBus keyval (X11 keysym)
        modifiers: IBus modifier mask of the event
        shortcuts: config.ShortcutConfig gating the composite toggles
        keyboard_state: snapshot with to_unicode(keyval) -> str ('' if none)

    Returns:
        UserAction, or None when the key must pass through untouched

    Raises:
        KeyboardStateError: the snapshot is missing or malformed
    """
    is_shift = bool(modifiers & SHIFT_MASK)
    is_ctrl = bool(modifiers & CONTROL_MASK)
    is_alt = bool(modifiers & MOD1_MASK)

    if is_alt and keyval == KEY_GRAVE:
        if not shortcuts.alt_backquote_toggle:
            logger.debug('alt+` toggle is disabled')
            return None
        return ToggleInputMode()

    if is_ctrl:
        if keyval == KEY_SPACE:
            if not shortcuts.ctrl_space_toggle:
                logger.debug('ctrl+space toggle is disabled')
                return None
            return ToggleInputMode()
        if keyval in (KEY_RETURN, KEY_KP_ENTER):
            return CommitFirstClause()
        if keyval == KEY_DOWN:
            return CommitAndNextClause()
        # every other control chord belongs to the application
        return None

    if is_alt or modifiers & SUPER_MASK:
        return None

    if is_shift and keyval == KEY_LEFT:
        return AdjustClauseBoundary(-1)
    if is_shift and keyval == KEY_RIGHT:
        return AdjustClauseBoundary(1)

    if keyval == KEY_BACKSPACE:
        return Backspace()
    if keyval == KEY_TAB:
        return Tab()
    if keyval in (KEY_RETURN, KEY_KP_ENTER):
        return Enter()
    if keyval == KEY_SPACE:
        return Space(shift=is_shift)
    if keyval == KEY_ESCAPE:
        return Escape()
    if keyval in _NAVIGATION_KEYS:
        return Navigation(_NAVIGATION_KEYS[keyval])

    if ord('0') <= keyval <= ord('9') and not is_shift:
        return Number(keyval - ord('0'), is_numpad=False, shift=False)
    if KEY_KP_0 <= keyval <= KEY_KP_9:
        return Number(keyval - KEY_KP_0, is_numpad=True, shift=is_shift)
    if keyval in NUMPAD_SYMBOLS:
        return NumpadSymbol(NUMPAD_SYMBOLS[keyval])

    if KEY_F6 <= keyval <= KEY_F10:
        return Function(6 + keyval - KEY_F6)

    if keyval in TOGGLE_KEYS:
        return ToggleInputMode()
    if keyval in INPUT_MODE_ON_KEYS:
        return InputModeOn()
    if keyval in INPUT_MODE_OFF_KEYS:
        return InputModeOff()

    char = _resolve_unicode(keyval, keyboard_state)
    if char and char.isprintable():
        return Input(char)
    return Unknown()
