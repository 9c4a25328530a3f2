#!/usr/bin/env python3
"""
executor.py - Apply client actions to the composition
クライアント操作を変換バッファに適用する

================================================================================
OVERVIEW / 概要
================================================================================

ActionExecutor is the only part of the session controller with side
effects. It runs a batch of client actions (produced by transition.py)
against the composition, calling the candidate service for new candidates
and the rendering sink to show the result.

ActionExecutor はセッション制御の中で唯一副作用を持つ部分。transition.py が
生成したクライアント操作の列を変換バッファに適用し、候補サービスから候補を
取得して、描画先に結果を表示する。

    execute(composition, mode, actions, next_state, config)
        │
        ├─ working = composition.copy()
        ├─ for action in actions: apply to working   (service / sink calls)
        └─ BatchResult(working, mode)                (caller commits it)

================================================================================
FAILURE POLICY / 失敗時の方針
================================================================================

The batch works on a copy. If any action raises, the copy is thrown away,
the remaining actions are not run and ActionBatchError is raised; the
caller's composition is never left half-updated. Calls already made to the
candidate service and the sink cannot be taken back, so the caller is
expected to resynchronize (see SessionController.abandon()).

バッチはコピーに対して実行される。途中で例外が起きた場合、コピーは破棄され、
残りの操作は実行されず ActionBatchError が送出される。呼び出し元の
Composition が中途半端に更新されることはない。既に行った外部呼び出しは
取り消せないため、呼び出し元が再同期を行う（SessionController.abandon()）。

================================================================================
"""

import dataclasses
import logging

import client_action
from candidate_service import (
    Candidates,
    MOVE_CURSOR_CLEAR_CLAUSE_SNAPSHOTS,
    MOVE_CURSOR_POP_CLAUSE_SNAPSHOT,
    MOVE_CURSOR_PUSH_CLAUSE_SNAPSHOT,
)
from character_width import normalize, to_fullwidth, to_halfwidth
from composition import Composition, CompositionState, select_candidate
from input_mode import InputMode
from kana import to_half_katakana, to_katakana

logger = logging.getLogger(__name__)


class ActionBatchError(Exception):
    """
    An action of a batch failed; the batch was not applied.

    Attributes:
        action: the client action that raised
        index: its position in the batch
        cause: the original exception (also chained as __cause__)
    """

    def __init__(self, action, index, cause):
        super().__init__(f'action #{index} {action} failed: {cause}')
        self.action = action
        self.index = index
        self.cause = cause


@dataclasses.dataclass(frozen=True)
class BatchResult:
    composition: Composition
    mode: InputMode


class _Batch:
    """Mutable state of one execute() call."""

    def __init__(self, composition, mode, next_state, config):
        self.composition = composition
        self.mode = mode
        self.next_state = next_state
        self.config = config


class ActionExecutor:
    def __init__(self, candidate_service, rendering_sink):
        self._service = candidate_service
        self._sink = rendering_sink
        self._handlers = {
            client_action.StartComposition: self._start_composition,
            client_action.EndComposition: self._end_composition,
            client_action.AppendText: self._append_text,
            client_action.AppendTextRaw: self._append_text_raw,
            client_action.RemoveText: self._remove_text,
            client_action.ShrinkText: self._shrink_text,
            client_action.ShrinkTextRaw: self._shrink_text_raw,
            client_action.SetTextWithType: self._set_text_with_type,
            client_action.MoveCursor: self._move_cursor,
            client_action.MoveClause: self._move_clause,
            client_action.AdjustBoundary: self._adjust_boundary,
            client_action.SetSelection: self._set_selection,
            client_action.SetIMEMode: self._set_ime_mode,
        }

    def execute(self, composition, mode, actions, next_state, config):
        """
        Run actions against a copy of composition.

        Args:
            composition: the current Composition (not modified)
            mode: the current InputMode
            actions: ordered client actions
            next_state: CompositionState to end in; RemoveText and
                ShrinkText may override it
            config: AppConfig snapshot of this cycle

        Returns:
            BatchResult with the new composition and input mode

        Raises:
            ActionBatchError: an action failed; nothing was applied
        """
        batch = _Batch(composition.copy(), mode, next_state, config)
        for index, action in enumerate(actions):
            handler = self._handlers.get(type(action))
            if handler is None:
                raise ActionBatchError(action, index, TypeError(f'unknown client action {action!r}'))
            logger.debug(f'execute {action}')
            try:
                handler(batch, action)
            except Exception as e:
                logger.error(f'action #{index} {action} failed: {e}')
                raise ActionBatchError(action, index, e) from e
        batch.composition.state = batch.next_state
        return BatchResult(batch.composition, batch.mode)

    #
    # helpers
    #

    def _clear_clause_snapshots(self, work):
        if not work.clause_snapshots:
            return
        work.clause_snapshots.clear()
        self._service.move_cursor(MOVE_CURSOR_CLEAR_CLAUSE_SNAPSHOTS)

    def _show_candidates(self, work, update_caret=False):
        self._sink.set_text(work.preview, work.suffix)
        self._service.set_candidates(list(work.candidates.texts))
        self._service.set_selection(work.selection_index)
        if update_caret:
            self._sink.update_caret_position()

    def _select(self, work, desired_index, update_caret=False):
        """
        Select the candidate nearest to desired_index and show it.

        Returns:
            False when there are no candidates (nothing is changed)
        """
        selected = select_candidate(work.candidates, desired_index)
        if selected is None:
            return False
        work.apply_selection(selected)
        self._show_candidates(work, update_caret)
        return True

    def _convert(self, batch, text):
        if batch.mode != InputMode.KANA:
            return text
        config = batch.config
        return normalize(text, config.general, config.character_width, config.romaji_rules)

    def _restore(self, work, snapshot):
        work.restore(snapshot)
        self._show_candidates(work, update_caret=True)

    #
    # actions
    #

    def _start_composition(self, batch, action):
        self._sink.start_composition()
        self._sink.update_caret_position()
        self._service.show_window()

    def _end_composition(self, batch, action):
        self._sink.end_composition()
        batch.composition.reset()
        self._service.hide_window()
        self._service.set_candidates([])
        self._service.clear_text()

    def _append(self, batch, raw_text, text):
        work = batch.composition
        self._clear_clause_snapshots(work)
        work.raw_input += raw_text
        work.candidates = self._service.append_text(text)
        self._select(work, work.selection_index)

    def _append_text(self, batch, action):
        self._append(batch, action.text, self._convert(batch, action.text))

    def _append_text_raw(self, batch, action):
        self._append(batch, action.text, action.text)

    def _remove_text(self, batch, action):
        work = batch.composition
        self._clear_clause_snapshots(work)
        work.raw_input = work.raw_input[:-1]
        work.candidates = self._service.remove_text()
        if self._select(work, work.selection_index):
            return

        # The service has nothing left; close the composition so that no
        # stale preview stays on screen. Clauses already passed are kept.
        logger.debug('candidate service drained; terminating the composition')
        committed_prefix = work.fixed_prefix
        self._sink.set_text(committed_prefix, '')
        self._sink.end_composition()
        self._service.hide_window()
        self._service.set_candidates([])
        self._service.clear_text()
        work.reset()
        batch.next_state = CompositionState.NONE

    def _shrink(self, batch, text, converted):
        work = batch.composition
        committed = work.preview
        work.fixed_prefix = ''
        self._clear_clause_snapshots(work)
        count = max(work.corresponding_count, 0)
        work.raw_input = (work.raw_input + text)[count:]

        self._service.shrink_text(work.corresponding_count)
        work.candidates = self._service.append_text(converted)
        work.selection_index = 0

        selected = select_candidate(work.candidates, 0)
        if selected is not None:
            work.apply_selection(selected)
            self._sink.shift_start(committed, work.preview, work.suffix)
            self._service.set_candidates(list(work.candidates.texts))
            self._service.set_selection(work.selection_index)
            self._sink.update_caret_position()

        batch.next_state = CompositionState.COMPOSING

    def _shrink_text(self, batch, action):
        self._shrink(batch, action.text, self._convert(batch, action.text))

    def _shrink_text_raw(self, batch, action):
        self._shrink(batch, action.text, action.text)

    def _set_text_with_type(self, batch, action):
        work = batch.composition
        kind = action.kind
        if kind == client_action.SetTextType.HIRAGANA:
            text = work.raw_hiragana
        elif kind == client_action.SetTextType.KATAKANA:
            text = to_katakana(work.raw_hiragana)
        elif kind == client_action.SetTextType.HALF_KATAKANA:
            text = to_half_katakana(work.raw_hiragana)
        elif kind == client_action.SetTextType.FULL_LATIN:
            text = to_fullwidth(work.raw_input, True)
        else:
            text = to_halfwidth(work.raw_input)
        # display only; the stored fields keep the converted text
        self._sink.set_text(text, '')

    def _move_cursor(self, batch, action):
        work = batch.composition
        work.candidates = self._service.move_cursor(action.offset)
        self._select(work, work.selection_index, update_caret=True)

    def _move_clause(self, batch, action):
        work = batch.composition
        if action.direction > 0:
            self._next_clause(work)
        elif action.direction < 0:
            self._previous_clause(work)

    def _next_clause(self, work):
        if not work.suffix:
            return
        snapshot = work.take_snapshot()
        clause_preview = work.current_clause_preview()
        count = work.corresponding_count

        self._service.move_cursor(MOVE_CURSOR_PUSH_CLAUSE_SNAPSHOT)
        work.clause_snapshots.append(snapshot)

        work.candidates = self._service.shrink_text(count)
        work.selection_index = 0
        work.raw_input = work.raw_input[max(count, 0):]
        work.fixed_prefix += clause_preview

        if self._select(work, 0, update_caret=True):
            return

        # no clause after this one
        logger.debug('no next clause; rolling back')
        self._service.move_cursor(MOVE_CURSOR_POP_CLAUSE_SNAPSHOT)
        self._restore(work, work.clause_snapshots.pop())

    def _previous_clause(self, work):
        if not work.clause_snapshots:
            return
        snapshot = work.clause_snapshots.pop()
        self._service.move_cursor(MOVE_CURSOR_POP_CLAUSE_SNAPSHOT)
        self._restore(work, snapshot)

    def _adjust_boundary(self, batch, action):
        work = batch.composition
        direction = action.direction
        if direction == 0:
            return

        self._service.move_cursor(direction)
        probed = self._service.move_cursor(0)
        if not probed.texts:
            # At least one character has to stay left of the boundary.
            if direction < 0:
                self._service.move_cursor(1)
            logger.debug(f'clause boundary cannot move by {direction}')
            return

        work.candidates = probed
        self._select(work, 0, update_caret=True)

    def _set_ime_mode(self, batch, action):
        work = batch.composition
        self._sink.start_composition()
        self._sink.update_caret_position()
        self._sink.end_composition()

        # the mode indicator is redrawn by the controller once the batch is committed
        batch.mode = action.mode
        self._service.set_input_mode(action.mode.label)

        work.clear_buffer()
        work.candidates = Candidates.empty()
        self._service.clear_text()

    def _set_selection(self, batch, action):
        work = batch.composition
        if action.kind == client_action.SetSelectionType.UP:
            desired_index = work.selection_index - 1
        elif action.kind == client_action.SetSelectionType.DOWN:
            desired_index = work.selection_index + 1
        else:
            desired_index = action.number

        selected = select_candidate(work.candidates, desired_index)
        if selected is None:
            return
        work.apply_selection(selected)
        self._service.set_selection(work.selection_index)
        self._sink.set_text(work.preview, work.suffix)
