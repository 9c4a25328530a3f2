#!/usr/bin/env python3
# client_action.py - Edits the executor applies to the composition

import dataclasses
import enum

from input_mode import InputMode


class SetSelectionType(enum.Enum):
    UP = 'up'
    DOWN = 'down'
    NUMBER = 'number'


class SetTextType(enum.Enum):
    HIRAGANA = 'hiragana'            # F6
    KATAKANA = 'katakana'            # F7
    HALF_KATAKANA = 'half_katakana'  # F8
    FULL_LATIN = 'full_latin'        # F9
    HALF_LATIN = 'half_latin'        # F10


@dataclasses.dataclass(frozen=True)
class StartComposition:
    pass


@dataclasses.dataclass(frozen=True)
class EndComposition:
    pass


@dataclasses.dataclass(frozen=True)
class AppendText:
    text: str


@dataclasses.dataclass(frozen=True)
class AppendTextRaw:
    """Like AppendText, but the text is sent without normalization."""
    text: str


@dataclasses.dataclass(frozen=True)
class RemoveText:
    pass


@dataclasses.dataclass(frozen=True)
class ShrinkText:
    """Commit the current clause, then continue composing with text."""
    text: str


@dataclasses.dataclass(frozen=True)
class ShrinkTextRaw:
    text: str


@dataclasses.dataclass(frozen=True)
class SetTextWithType:
    kind: SetTextType


@dataclasses.dataclass(frozen=True)
class MoveCursor:
    offset: int


@dataclasses.dataclass(frozen=True)
class MoveClause:
    direction: int


@dataclasses.dataclass(frozen=True)
class AdjustBoundary:
    direction: int


@dataclasses.dataclass(frozen=True)
class SetSelection:
    kind: SetSelectionType
    number: int = 0

    @classmethod
    def up(cls):
        return cls(SetSelectionType.UP)

    @classmethod
    def down(cls):
        return cls(SetSelectionType.DOWN)

    @classmethod
    def at(cls, number):
        return cls(SetSelectionType.NUMBER, number)


@dataclasses.dataclass(frozen=True)
class SetIMEMode:
    mode: InputMode
