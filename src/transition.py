#!/usr/bin/env python3
"""
transition.py - The composition state machine
変換状態の状態遷移表

================================================================================
OVERVIEW / 概要
================================================================================

transition() decides what a user action means in the current situation. It
looks at the composition state, the input mode and the action, and returns
the next state together with the ordered client actions the executor has
to apply. It has no side effects and talks to nobody.

transition() はユーザー操作が現在の状況で何を意味するかを決める。変換状態・
入力モード・操作から、次の状態と実行すべきクライアント操作の列を返す。
副作用は無い。

The rules live in one table keyed by (state, action type, mode). A row
registered with ANY_MODE matches both modes; a mode-specific row wins over
it. A combination without a row (or a rule returning None) is a no-op: the
key is not handled and flows on to the application.

規則は (状態, 操作の型, モード) をキーとする表に置かれる。ANY_MODE の行は
両モードに一致し、モード指定の行が優先される。行が無い組み合わせは
何もしない（キーはアプリケーションへ渡る）。

    state        action                mode     next        actions
    -----------  --------------------  -------  ----------  ------------------------------
    NONE         Input('a')            KANA     COMPOSING   StartComposition, AppendText('a')
    NONE         Input('a')            LATIN    (no-op)
    COMPOSING    Escape                *        NONE        RemoveText, EndComposition
    COMPOSING    Navigation(RIGHT)     *        COMPOSING   MoveClause(1)
    PREVIEWING   Input('k')            *        COMPOSING   ShrinkText('k')

================================================================================
"""

import dataclasses
import logging
import string

import client_action
import user_action
from composition import CompositionState
from config import NumpadInputMode, SpaceInputMode
from input_mode import InputMode

logger = logging.getLogger(__name__)

ANY_MODE = None

FUNCTION_KEY_TEXT_TYPES = {
    6: client_action.SetTextType.HIRAGANA,
    7: client_action.SetTextType.KATAKANA,
    8: client_action.SetTextType.HALF_KATAKANA,
    9: client_action.SetTextType.FULL_LATIN,
    10: client_action.SetTextType.HALF_LATIN,
}


@dataclasses.dataclass(frozen=True)
class Transition:
    next_state: CompositionState
    actions: tuple

    def __post_init__(self):
        object.__setattr__(self, 'actions', tuple(self.actions))


def to_fullwidth_ascii_char(c):
    if c == ' ':
        return '　'
    if c in string.punctuation or c in string.digits:
        return chr(ord(c) + 0xFEE0)
    return c


def to_halfwidth_ascii_char(c):
    if c == '　':
        return ' '
    if '！' <= c <= '～':
        return chr(ord(c) - 0xFEE0)
    return c


def numpad_text_for_mode(c, numpad_input, allow_direct_passthrough):
    """
    Text for a numeric keypad key.

    Returns:
        the text to append, or None when the key should go straight to the
        application (direct input while no composition is active)
    """
    if numpad_input == NumpadInputMode.DIRECT_INPUT:
        if allow_direct_passthrough:
            return None
        return to_halfwidth_ascii_char(c)
    if numpad_input == NumpadInputMode.ALWAYS_HALF:
        return to_halfwidth_ascii_char(c)
    return to_fullwidth_ascii_char(c)


_rules = {}


def _rule(states, action_type, mode=ANY_MODE):
    def register(handler):
        for state in states:
            key = (state, action_type, mode)
            assert key not in _rules, f'duplicate transition rule {key}'
            _rules[key] = handler
        return handler
    return register


def transition(state, mode, action, composition, config):
    """
    Look up the rule for (state, type(action), mode).

    Args:
        state: CompositionState of the session
        mode: current InputMode
        action: a user_action value (None is accepted and yields None)
        composition: read-only view of the current Composition
        config: AppConfig snapshot of this key-handling cycle

    Returns:
        Transition, or None when the input is not handled
    """
    if action is None:
        return None
    handler = _rules.get((state, type(action), mode))
    if handler is None:
        handler = _rules.get((state, type(action), ANY_MODE))
    if handler is None:
        logger.debug(f'no transition for ({state}, {action}, {mode})')
        return None
    result = handler(action, mode, composition, config)
    if result is not None:
        logger.debug(f'transition ({state}, {action}, {mode}) -> {result.next_state} {list(result.actions)}')
    return result


def _commit_current_clause(composition):
    if not composition.suffix:
        return Transition(CompositionState.NONE, [client_action.EndComposition()])
    return Transition(CompositionState.COMPOSING, [client_action.ShrinkText('')])


def _commit_first_clause(composition):
    snapshots = composition.clause_snapshots
    actions = [client_action.MoveClause(-1) for _ in snapshots]
    first_suffix = snapshots[0].suffix if snapshots else composition.suffix
    if not first_suffix:
        actions.append(client_action.EndComposition())
        return Transition(CompositionState.NONE, actions)
    actions.append(client_action.ShrinkText(''))
    return Transition(CompositionState.COMPOSING, actions)


#
# NONE
#

@_rule([CompositionState.NONE], user_action.Input, InputMode.KANA)
def _start_with_input(action, mode, composition, config):
    return Transition(CompositionState.COMPOSING, [
        client_action.StartComposition(),
        client_action.AppendText(action.char),
    ])


def _start_with_numpad(c, config):
    text = numpad_text_for_mode(c, config.general.numpad_input, True)
    if text is None:
        return None
    return Transition(CompositionState.COMPOSING, [
        client_action.StartComposition(),
        client_action.AppendTextRaw(text),
    ])


@_rule([CompositionState.NONE], user_action.NumpadSymbol, InputMode.KANA)
def _start_with_numpad_symbol(action, mode, composition, config):
    return _start_with_numpad(action.char, config)


@_rule([CompositionState.NONE], user_action.Number, InputMode.KANA)
def _start_with_number(action, mode, composition, config):
    if action.is_numpad:
        return _start_with_numpad(str(action.value), config)
    return Transition(CompositionState.COMPOSING, [
        client_action.StartComposition(),
        client_action.AppendText(str(action.value)),
    ])


@_rule([CompositionState.NONE], user_action.Space, InputMode.KANA)
def _insert_space(action, mode, composition, config):
    use_halfwidth = config.general.space_input == SpaceInputMode.ALWAYS_HALF
    if action.shift:
        use_halfwidth = not use_halfwidth
    space = ' ' if use_halfwidth else '　'
    return Transition(CompositionState.NONE, [
        client_action.StartComposition(),
        client_action.AppendText(space),
        client_action.EndComposition(),
    ])


@_rule([CompositionState.NONE], user_action.ToggleInputMode)
def _toggle_mode(action, mode, composition, config):
    return Transition(CompositionState.NONE, [client_action.SetIMEMode(mode.toggled())])


@_rule([CompositionState.NONE], user_action.InputModeOn)
def _mode_on(action, mode, composition, config):
    return Transition(CompositionState.NONE, [client_action.SetIMEMode(InputMode.KANA)])


@_rule([CompositionState.NONE], user_action.InputModeOff)
def _mode_off(action, mode, composition, config):
    return Transition(CompositionState.NONE, [client_action.SetIMEMode(InputMode.LATIN)])


#
# COMPOSING / PREVIEWING
#
# Typing in PREVIEWING commits the previewed clause first (ShrinkText) and
# goes back to COMPOSING.

_ACTIVE = [CompositionState.COMPOSING, CompositionState.PREVIEWING]


def _append(state, text, raw=False):
    if state == CompositionState.PREVIEWING:
        action = client_action.ShrinkTextRaw(text) if raw else client_action.ShrinkText(text)
    else:
        action = client_action.AppendTextRaw(text) if raw else client_action.AppendText(text)
    return Transition(CompositionState.COMPOSING, [action])


def _numpad_text(c, config):
    # never None here: direct input is only passed through outside a composition
    return numpad_text_for_mode(c, config.general.numpad_input, False)


def _active_rule(action_type, mode=ANY_MODE):
    """Register a handler for COMPOSING and PREVIEWING; the handler gets the state first."""
    def register(handler):
        for state in _ACTIVE:
            _rule([state], action_type, mode)(
                lambda action, mode, composition, config, state=state:
                    handler(state, action, mode, composition, config))
        return handler
    return register


@_active_rule(user_action.Input)
def _type_char(state, action, mode, composition, config):
    return _append(state, action.char)


@_active_rule(user_action.NumpadSymbol, InputMode.KANA)
def _type_numpad_symbol(state, action, mode, composition, config):
    return _append(state, _numpad_text(action.char, config), raw=True)


@_active_rule(user_action.Number, InputMode.KANA)
def _type_number_kana(state, action, mode, composition, config):
    if action.is_numpad:
        return _append(state, _numpad_text(str(action.value), config), raw=True)
    return _append(state, str(action.value))


@_active_rule(user_action.Number)
def _type_number(state, action, mode, composition, config):
    return _append(state, str(action.value))


@_active_rule(user_action.Backspace)
def _backspace(state, action, mode, composition, config):
    # The preview can be shorter than the raw input (れい → 例), so the
    # remaining raw input decides whether the composition ends.
    if len(composition.raw_input) <= 1:
        return Transition(CompositionState.NONE, [
            client_action.RemoveText(),
            client_action.EndComposition(),
        ])
    return Transition(CompositionState.COMPOSING, [client_action.RemoveText()])


@_active_rule(user_action.Enter)
@_active_rule(user_action.CommitAndNextClause)
def _commit(state, action, mode, composition, config):
    return _commit_current_clause(composition)


@_active_rule(user_action.CommitFirstClause)
def _commit_first(state, action, mode, composition, config):
    return _commit_first_clause(composition)


@_active_rule(user_action.AdjustClauseBoundary)
def _adjust_boundary(state, action, mode, composition, config):
    return Transition(state, [client_action.AdjustBoundary(action.offset)])


@_active_rule(user_action.Escape)
def _escape(state, action, mode, composition, config):
    return Transition(CompositionState.NONE, [
        client_action.RemoveText(),
        client_action.EndComposition(),
    ])


@_active_rule(user_action.Navigation)
def _navigate(state, action, mode, composition, config):
    if action.direction == user_action.Direction.RIGHT:
        return Transition(CompositionState.COMPOSING, [client_action.MoveClause(1)])
    if action.direction == user_action.Direction.LEFT:
        return Transition(CompositionState.COMPOSING, [client_action.MoveClause(-1)])
    if action.direction == user_action.Direction.UP:
        return Transition(CompositionState.PREVIEWING, [client_action.SetSelection.up()])
    return Transition(CompositionState.PREVIEWING, [client_action.SetSelection.down()])


def _end_and_set_mode(new_mode):
    return Transition(CompositionState.NONE, [
        client_action.EndComposition(),
        client_action.SetIMEMode(new_mode),
    ])


@_active_rule(user_action.ToggleInputMode)
def _toggle_mode_while_composing(state, action, mode, composition, config):
    return _end_and_set_mode(mode.toggled())


@_active_rule(user_action.InputModeOn)
def _mode_on_while_composing(state, action, mode, composition, config):
    return _end_and_set_mode(InputMode.KANA)


@_active_rule(user_action.InputModeOff)
def _mode_off_while_composing(state, action, mode, composition, config):
    return _end_and_set_mode(InputMode.LATIN)


@_active_rule(user_action.Space)
@_active_rule(user_action.Tab)
def _next_candidate(state, action, mode, composition, config):
    return Transition(CompositionState.PREVIEWING, [client_action.SetSelection.down()])


@_active_rule(user_action.Function)
def _set_text_type(state, action, mode, composition, config):
    kind = FUNCTION_KEY_TEXT_TYPES.get(action.number)
    if kind is None:
        return None
    return Transition(CompositionState.PREVIEWING, [client_action.SetTextWithType(kind)])
