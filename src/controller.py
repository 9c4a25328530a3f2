#!/usr/bin/env python3
# controller.py - One input session: classify, decide, execute

import logging

import client_action
from composition import Composition, CompositionState
from executor import ActionExecutor
from input_mode import InputMode
from rendering import RenderingError
from transition import transition
from user_action import classify

logger = logging.getLogger(__name__)


class SessionController:
    """
    Owns the composition and the input mode of one input session.

    Every key goes through the same pipeline:

        classify() → transition() → ActionExecutor.execute() → commit

    The new composition replaces the old one only after the whole batch ran;
    a failed batch raises executor.ActionBatchError and leaves both the
    composition and the mode untouched.
    """

    def __init__(self, candidate_service, rendering_sink, mode=InputMode.KANA):
        self._executor = ActionExecutor(candidate_service, rendering_sink)
        self._sink = rendering_sink
        self._composition = Composition()
        self._mode = mode

    @property
    def composition(self):
        # callers get a copy; the controller stays the only writer
        return self._composition.copy()

    @property
    def mode(self):
        return self._mode

    @property
    def state(self):
        return self._composition.state

    def process_key(self, action, config):
        """
        Decide what action means right now, without running anything.

        Returns:
            transition.Transition, or None when the key is not handled
        """
        return transition(self._composition.state, self._mode, action, self._composition, config)

    def handle_key(self, keyval, modifiers, config, keyboard_state):
        """
        Returns:
            True if the key was consumed, False if it should reach the
            application

        Raises:
            user_action.KeyboardStateError: keyboard_state is unusable
            executor.ActionBatchError: the action batch failed
        """
        action = classify(keyval, modifiers, config.shortcuts, keyboard_state)
        if action is None:
            return False
        result = self.process_key(action, config)
        if result is None:
            return False
        self.handle_actions(result.actions, result.next_state, config)
        return True

    def handle_actions(self, actions, next_state, config):
        result = self._executor.execute(self._composition, self._mode, actions, next_state, config)
        self._composition = result.composition
        if result.mode == self._mode:
            return
        logger.info(f'input mode {self._mode.label} -> {result.mode.label}')
        self._mode = result.mode
        # only a committed mode reaches the indicator
        try:
            self._sink.update_mode_indicator(result.mode)
        except RenderingError as e:
            logger.error(f'mode indicator could not be updated: {e}')

    def terminate(self, config):
        """The host ended the composition (focus out, reset, ...)."""
        if self._composition.state == CompositionState.NONE:
            return
        logger.debug('terminate()')
        self.handle_actions([client_action.EndComposition()], CompositionState.NONE, config)

    def set_mode(self, mode, config):
        """Switch the input mode, e.g. from the property menu."""
        if mode == self._mode:
            return
        actions = []
        if self._composition.state != CompositionState.NONE:
            actions.append(client_action.EndComposition())
        actions.append(client_action.SetIMEMode(mode))
        self.handle_actions(actions, CompositionState.NONE, config)

    def abandon(self):
        """
        Forget the composition after a failed batch.
        The input mode is kept.
        """
        logger.warning(f'abandoning composition in state {self._composition.state}')
        self._composition = Composition()
