#!/usr/bin/env python3
# rendering.py - The composition display of the host

import abc
import logging

logger = logging.getLogger(__name__)


class RenderingError(Exception):
    """Raised when the host fails to display or commit the composition."""


class RenderingSink(abc.ABC):
    """
    What the executor needs from the host to show the composition.

    The composition text is rendered as preview followed by suffix;
    end_composition() commits whatever is currently rendered.
    """

    @abc.abstractmethod
    def start_composition(self):
        pass

    @abc.abstractmethod
    def end_composition(self):
        pass

    @abc.abstractmethod
    def set_text(self, preview, suffix):
        pass

    @abc.abstractmethod
    def update_caret_position(self):
        pass

    @abc.abstractmethod
    def update_mode_indicator(self, mode):
        pass

    def shift_start(self, committed, preview, suffix):
        """
        Commit a finished clause and keep composing the remainder.
        """
        logger.debug(f'shift_start("{committed}", "{preview}", "{suffix}")')
        self.set_text(committed, '')
        self.end_composition()
        self.start_composition()
        self.set_text(preview, suffix)
