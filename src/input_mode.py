#!/usr/bin/env python3
# input_mode.py - The two input modes of the engine

import enum


class InputMode(enum.Enum):
    """
    Only the direct input- and Hiragana-mode are supported.

    The value is the label shown in the IBus property menu and sent to the
    candidate service.
    """
    KANA = 'あ'
    LATIN = 'A'

    @property
    def label(self):
        return self.value

    def toggled(self):
        return InputMode.LATIN if self is InputMode.KANA else InputMode.KANA
