#!/usr/bin/env python3
# tests/test_transition.py - Unit tests for transition.py

import pytest
import os
import sys

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import client_action
import user_action
from client_action import SetSelectionType, SetTextType
from composition import Composition, CompositionState
from config import AppConfig, GeneralConfig, NumpadInputMode, SpaceInputMode
from input_mode import InputMode
from transition import (
    Transition,
    numpad_text_for_mode,
    to_fullwidth_ascii_char,
    to_halfwidth_ascii_char,
    transition,
)

NONE = CompositionState.NONE
COMPOSING = CompositionState.COMPOSING
PREVIEWING = CompositionState.PREVIEWING
KANA = InputMode.KANA
LATIN = InputMode.LATIN


@pytest.fixture
def config():
    return AppConfig()


def config_with(**general):
    return AppConfig(general=GeneralConfig(**general))


def composing(raw_input='nihongo', suffix='', state=COMPOSING, **fields):
    return Composition(raw_input=raw_input, suffix=suffix, state=state, **fields)


class TestNoneState:
    """Test suite for transitions out of NONE"""

    def test_kana_input_starts_composition(self, config):
        """Test the basic scenario: typing 'a' in kana mode"""
        result = transition(NONE, KANA, user_action.Input('a'), Composition(), config)

        assert result == Transition(COMPOSING, [
            client_action.StartComposition(),
            client_action.AppendText('a'),
        ])

    def test_latin_input_is_not_handled(self, config):
        assert transition(NONE, LATIN, user_action.Input('a'), Composition(), config) is None

    @pytest.mark.parametrize('action', [
        user_action.Backspace(),
        user_action.Enter(),
        user_action.Escape(),
        user_action.Tab(),
        user_action.Navigation(user_action.Direction.LEFT),
        user_action.Function(7),
        user_action.AdjustClauseBoundary(-1),
        user_action.CommitFirstClause(),
        user_action.Unknown(),
    ])
    def test_other_actions_are_rejected(self, action, config):
        assert transition(NONE, KANA, action, Composition(), config) is None

    def test_none_action(self, config):
        assert transition(NONE, KANA, None, Composition(), config) is None

    def test_main_row_number_is_normalized_later(self, config):
        result = transition(NONE, KANA, user_action.Number(4), Composition(), config)

        assert result.actions == (client_action.StartComposition(), client_action.AppendText('4'))

    def test_numpad_number_is_appended_raw(self):
        config = config_with(numpad_input=NumpadInputMode.FOLLOW_INPUT_MODE)

        result = transition(NONE, KANA, user_action.Number(4, is_numpad=True), Composition(), config)

        assert result == Transition(COMPOSING, [
            client_action.StartComposition(),
            client_action.AppendTextRaw('４'),
        ])

    def test_numpad_direct_input_passes_through(self):
        config = config_with(numpad_input=NumpadInputMode.DIRECT_INPUT)

        assert transition(NONE, KANA, user_action.Number(4, is_numpad=True), Composition(), config) is None
        assert transition(NONE, KANA, user_action.NumpadSymbol('+'), Composition(), config) is None

    def test_numpad_symbol_always_half(self, config):
        result = transition(NONE, KANA, user_action.NumpadSymbol('*'), Composition(), config)

        assert result.actions[-1] == client_action.AppendTextRaw('*')

    @pytest.mark.parametrize('space_input, shift, expected', [
        (SpaceInputMode.ALWAYS_HALF, False, ' '),
        (SpaceInputMode.ALWAYS_HALF, True, '　'),
        (SpaceInputMode.FOLLOW_INPUT_MODE, False, '　'),
        (SpaceInputMode.FOLLOW_INPUT_MODE, True, ' '),
    ])
    def test_space_is_committed_immediately(self, space_input, shift, expected):
        config = config_with(space_input=space_input)

        result = transition(NONE, KANA, user_action.Space(shift=shift), Composition(), config)

        assert result == Transition(NONE, [
            client_action.StartComposition(),
            client_action.AppendText(expected),
            client_action.EndComposition(),
        ])

    def test_space_in_latin_mode_is_not_handled(self, config):
        assert transition(NONE, LATIN, user_action.Space(), Composition(), config) is None

    @pytest.mark.parametrize('mode, action, expected_mode', [
        (KANA, user_action.ToggleInputMode(), LATIN),
        (LATIN, user_action.ToggleInputMode(), KANA),
        (LATIN, user_action.InputModeOn(), KANA),
        (KANA, user_action.InputModeOn(), KANA),
        (KANA, user_action.InputModeOff(), LATIN),
    ])
    def test_mode_changes(self, mode, action, expected_mode, config):
        result = transition(NONE, mode, action, Composition(), config)

        assert result == Transition(NONE, [client_action.SetIMEMode(expected_mode)])


class TestActiveStates:
    """Test suite for transitions out of COMPOSING / PREVIEWING"""

    @pytest.mark.parametrize('state', [COMPOSING, PREVIEWING])
    def test_backspace_on_last_character_ends_composition(self, state, config):
        """Test that a single remaining raw character ends the composition"""
        result = transition(state, KANA, user_action.Backspace(), composing('n', state=state), config)

        assert result == Transition(NONE, [client_action.RemoveText(), client_action.EndComposition()])

    @pytest.mark.parametrize('state', [COMPOSING, PREVIEWING])
    def test_backspace_keeps_composing(self, state, config):
        result = transition(state, KANA, user_action.Backspace(), composing('ni', state=state), config)

        assert result == Transition(COMPOSING, [client_action.RemoveText()])

    def test_escape(self, config):
        """Test the scenario: Escape while composing 'nihongo'"""
        result = transition(COMPOSING, KANA, user_action.Escape(), composing('nihongo'), config)

        assert result == Transition(NONE, [client_action.RemoveText(), client_action.EndComposition()])

    def test_input_appends_while_composing(self, config):
        result = transition(COMPOSING, KANA, user_action.Input('k'), composing(), config)

        assert result == Transition(COMPOSING, [client_action.AppendText('k')])

    def test_input_shrinks_while_previewing(self, config):
        """Test that typing after a preview commits the previewed clause"""
        result = transition(PREVIEWING, KANA, user_action.Input('k'), composing(state=PREVIEWING), config)

        assert result == Transition(COMPOSING, [client_action.ShrinkText('k')])

    def test_numpad_while_previewing_is_raw(self, config):
        result = transition(PREVIEWING, KANA, user_action.Number(2, is_numpad=True), composing(state=PREVIEWING), config)

        assert result == Transition(COMPOSING, [client_action.ShrinkTextRaw('2')])

    def test_numpad_direct_input_inside_composition_is_half(self):
        config = config_with(numpad_input=NumpadInputMode.DIRECT_INPUT)

        result = transition(COMPOSING, KANA, user_action.NumpadSymbol('-'), composing(), config)

        assert result == Transition(COMPOSING, [client_action.AppendTextRaw('-')])

    @pytest.mark.parametrize('state', [COMPOSING, PREVIEWING])
    @pytest.mark.parametrize('action', [user_action.Enter(), user_action.CommitAndNextClause()])
    def test_commit_without_suffix_ends(self, state, action, config):
        result = transition(state, KANA, action, composing(suffix='', state=state), config)

        assert result == Transition(NONE, [client_action.EndComposition()])

    @pytest.mark.parametrize('state', [COMPOSING, PREVIEWING])
    @pytest.mark.parametrize('action', [user_action.Enter(), user_action.CommitAndNextClause()])
    def test_commit_with_suffix_shrinks(self, state, action, config):
        result = transition(state, KANA, action, composing(suffix='語', state=state), config)

        assert result == Transition(COMPOSING, [client_action.ShrinkText('')])

    def test_commit_first_clause_walks_back(self, config):
        """Test that ctrl+Enter moves back once per snapshot and checks the first clause"""
        first = composing(suffix='は良い天気').take_snapshot()
        second = composing(suffix='天気').take_snapshot()
        composition = composing(suffix='', clause_snapshots=[first, second])

        result = transition(COMPOSING, KANA, user_action.CommitFirstClause(), composition, config)

        assert result == Transition(COMPOSING, [
            client_action.MoveClause(-1),
            client_action.MoveClause(-1),
            client_action.ShrinkText(''),
        ])

    def test_commit_first_clause_without_snapshots(self, config):
        result = transition(COMPOSING, KANA, user_action.CommitFirstClause(), composing(suffix=''), config)

        assert result == Transition(NONE, [client_action.EndComposition()])

    @pytest.mark.parametrize('state', [COMPOSING, PREVIEWING])
    def test_adjust_boundary_keeps_state(self, state, config):
        result = transition(state, KANA, user_action.AdjustClauseBoundary(-1), composing(state=state), config)

        assert result == Transition(state, [client_action.AdjustBoundary(-1)])

    @pytest.mark.parametrize('direction, expected', [
        (user_action.Direction.RIGHT, Transition(COMPOSING, [client_action.MoveClause(1)])),
        (user_action.Direction.LEFT, Transition(COMPOSING, [client_action.MoveClause(-1)])),
        (user_action.Direction.UP, Transition(PREVIEWING, [client_action.SetSelection(SetSelectionType.UP)])),
        (user_action.Direction.DOWN, Transition(PREVIEWING, [client_action.SetSelection(SetSelectionType.DOWN)])),
    ])
    def test_navigation(self, direction, expected, config):
        assert transition(COMPOSING, KANA, user_action.Navigation(direction), composing(), config) == expected

    @pytest.mark.parametrize('action', [user_action.Space(), user_action.Space(shift=True), user_action.Tab()])
    def test_space_and_tab_select_next_candidate(self, action, config):
        result = transition(COMPOSING, KANA, action, composing(), config)

        assert result == Transition(PREVIEWING, [client_action.SetSelection.down()])

    @pytest.mark.parametrize('number, kind', [
        (6, SetTextType.HIRAGANA),
        (7, SetTextType.KATAKANA),
        (8, SetTextType.HALF_KATAKANA),
        (9, SetTextType.FULL_LATIN),
        (10, SetTextType.HALF_LATIN),
    ])
    def test_function_keys(self, number, kind, config):
        result = transition(COMPOSING, KANA, user_action.Function(number), composing(), config)

        assert result == Transition(PREVIEWING, [client_action.SetTextWithType(kind)])

    def test_toggle_ends_composition_first(self, config):
        result = transition(COMPOSING, KANA, user_action.ToggleInputMode(), composing(), config)

        assert result == Transition(NONE, [
            client_action.EndComposition(),
            client_action.SetIMEMode(LATIN),
        ])

    def test_unknown_is_not_handled(self, config):
        assert transition(COMPOSING, KANA, user_action.Unknown(), composing(), config) is None


class TestAsciiWidth:
    """Test suite for the numpad width helpers"""

    def test_fullwidth(self):
        assert to_fullwidth_ascii_char(' ') == '　'
        assert to_fullwidth_ascii_char('7') == '７'
        assert to_fullwidth_ascii_char('/') == '／'
        assert to_fullwidth_ascii_char('a') == 'a'

    def test_halfwidth(self):
        assert to_halfwidth_ascii_char('　') == ' '
        assert to_halfwidth_ascii_char('７') == '7'
        assert to_halfwidth_ascii_char('あ') == 'あ'

    def test_numpad_text_for_mode(self):
        assert numpad_text_for_mode('5', NumpadInputMode.ALWAYS_HALF, True) == '5'
        assert numpad_text_for_mode('5', NumpadInputMode.FOLLOW_INPUT_MODE, True) == '５'
        assert numpad_text_for_mode('5', NumpadInputMode.DIRECT_INPUT, True) is None
        assert numpad_text_for_mode('5', NumpadInputMode.DIRECT_INPUT, False) == '5'
