#!/usr/bin/env python3
"""
composition.py - The in-progress composition buffer
変換中の入力バッファ

================================================================================
OVERVIEW / 概要
================================================================================

A Composition holds everything the engine knows about the text the user is
typing and converting but has not committed yet:

Composition は、ユーザーが入力・変換中でまだ確定していないテキストに関する
情報をすべて保持する:

    rendered:   今日は 良い | 天気
                └─ preview ─┘ └suffix┘
                └fixed_prefix┘ (the part of preview before the active clause)

    fixed_prefix  clauses passed with the right arrow key
                  右矢印キーで通過した文節
    preview       fixed_prefix + the selected candidate of the active clause
                  fixed_prefix + 現在の文節で選択中の候補
    suffix        the rest of the reading after the active clause
                  現在の文節より後ろの読み
    raw_input     keystrokes not consumed by passed clauses
                  通過済みの文節に消費されていないキー入力

Moving to the next clause pushes a ClauseSnapshot (everything except state
and the snapshot stack). Moving back pops it and restores every field as
it was, so a push followed by a pop is a no-op.

次の文節に移る時は ClauseSnapshot（state とスタック以外の全フィールド）を
積み、戻る時に取り出して全フィールドを元通りに復元する。

================================================================================
"""

import dataclasses
import enum
import logging

from candidate_service import Candidates

logger = logging.getLogger(__name__)


class CompositionState(enum.Enum):
    NONE = 'none'
    COMPOSING = 'composing'
    PREVIEWING = 'previewing'
    # reserved; no transition leads here
    SELECTING = 'selecting'


@dataclasses.dataclass(frozen=True)
class ClauseSnapshot:
    preview: str
    suffix: str
    raw_input: str
    raw_hiragana: str
    fixed_prefix: str
    corresponding_count: int
    selection_index: int
    candidates: Candidates


@dataclasses.dataclass
class Composition:
    preview: str = ''
    suffix: str = ''
    raw_input: str = ''
    raw_hiragana: str = ''
    fixed_prefix: str = ''
    corresponding_count: int = 0
    selection_index: int = 0
    candidates: Candidates = dataclasses.field(default_factory=Candidates.empty)
    clause_snapshots: list = dataclasses.field(default_factory=list)
    state: CompositionState = CompositionState.NONE

    def copy(self):
        # Snapshots and Candidates are immutable, so only the list needs copying.
        return dataclasses.replace(self, clause_snapshots=list(self.clause_snapshots))

    def take_snapshot(self):
        return ClauseSnapshot(
            preview=self.preview,
            suffix=self.suffix,
            raw_input=self.raw_input,
            raw_hiragana=self.raw_hiragana,
            fixed_prefix=self.fixed_prefix,
            corresponding_count=self.corresponding_count,
            selection_index=self.selection_index,
            candidates=self.candidates,
        )

    def restore(self, snapshot):
        self.preview = snapshot.preview
        self.suffix = snapshot.suffix
        self.raw_input = snapshot.raw_input
        self.raw_hiragana = snapshot.raw_hiragana
        self.fixed_prefix = snapshot.fixed_prefix
        self.corresponding_count = snapshot.corresponding_count
        self.selection_index = snapshot.selection_index
        self.candidates = snapshot.candidates

    def clear_buffer(self):
        """
        Clear the text fields and the snapshot stack.
        candidates and state are left alone.
        """
        self.preview = ''
        self.suffix = ''
        self.raw_input = ''
        self.raw_hiragana = ''
        self.fixed_prefix = ''
        self.corresponding_count = 0
        self.selection_index = 0
        self.clause_snapshots.clear()

    def reset(self):
        self.clear_buffer()
        self.candidates = Candidates.empty()
        self.state = CompositionState.NONE

    def apply_selection(self, selection):
        self.selection_index = selection.index
        self.corresponding_count = selection.corresponding_count
        self.preview = merge_preview_with_prefix(self.fixed_prefix, selection.text)
        self.suffix = selection.sub_text
        self.raw_hiragana = selection.hiragana

    def current_clause_preview(self):
        """preview without fixed_prefix"""
        if self.preview.startswith(self.fixed_prefix):
            return self.preview[len(self.fixed_prefix):]
        return self.preview


@dataclasses.dataclass(frozen=True)
class CandidateSelection:
    index: int
    text: str
    sub_text: str
    hiragana: str
    corresponding_count: int


def select_candidate(candidates, desired_index):
    """
    Pick the candidate nearest to desired_index.

    The index is clamped to [0, len(candidates) - 1], so this never fails
    for a non-empty set.

    Returns:
        CandidateSelection, or None when there are no candidates
    """
    if not candidates.texts:
        return None
    index = min(max(desired_index, 0), len(candidates.texts) - 1)
    return CandidateSelection(
        index=index,
        text=candidates.texts[index],
        sub_text=candidates.sub_texts[index],
        hiragana=candidates.hiragana,
        corresponding_count=candidates.corresponding_count[index],
    )


def merge_preview_with_prefix(fixed_prefix, clause_preview):
    return fixed_prefix + clause_preview
