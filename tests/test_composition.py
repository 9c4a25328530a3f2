#!/usr/bin/env python3
# tests/test_composition.py - Unit tests for composition.py

import pytest
import os
import sys

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from candidate_service import Candidates
from composition import (
    Composition,
    CompositionState,
    merge_preview_with_prefix,
    select_candidate,
)


@pytest.fixture
def three_candidates():
    return Candidates(
        texts=['日本', '二本', 'にほん'],
        sub_texts=['語', '語', 'ご'],
        corresponding_count=[3, 3, 3],
        hiragana='にほん',
    )


class TestSelectCandidate:
    """Test suite for select_candidate()"""

    def test_select_in_range(self, three_candidates):
        selection = select_candidate(three_candidates, 1)

        assert selection.index == 1
        assert selection.text == '二本'
        assert selection.sub_text == '語'
        assert selection.hiragana == 'にほん'
        assert selection.corresponding_count == 3

    @pytest.mark.parametrize('desired, expected', [(-5, 0), (10_000, 2), (3, 2), (0, 0)])
    def test_index_is_clamped(self, three_candidates, desired, expected):
        """Test that any index resolves to the nearest valid candidate"""
        assert select_candidate(three_candidates, desired).index == expected

    def test_no_candidates(self):
        assert select_candidate(Candidates(), 0) is None


class TestComposition:
    """Test suite for the Composition buffer"""

    @pytest.fixture
    def composition(self, three_candidates):
        return Composition(
            preview='今日は日本',
            suffix='語',
            raw_input='nihongo',
            raw_hiragana='にほん',
            fixed_prefix='今日は',
            corresponding_count=3,
            selection_index=0,
            candidates=three_candidates,
            state=CompositionState.COMPOSING,
        )

    def test_snapshot_restore_round_trip(self, composition):
        """Test that restoring a fresh snapshot changes nothing"""
        before = composition.copy()

        snapshot = composition.take_snapshot()
        composition.preview = 'x'
        composition.raw_input = ''
        composition.selection_index = 2
        composition.restore(snapshot)

        assert composition == before

    def test_copy_does_not_share_snapshot_stack(self, composition):
        copy = composition.copy()
        copy.clause_snapshots.append(composition.take_snapshot())

        assert composition.clause_snapshots == []

    def test_reset(self, composition):
        composition.clause_snapshots.append(composition.take_snapshot())

        composition.reset()

        assert composition == Composition()
        assert composition.candidates == Candidates.empty()

    def test_current_clause_preview(self, composition):
        assert composition.current_clause_preview() == '日本'

    def test_merge_preview_with_prefix(self):
        assert merge_preview_with_prefix('', '日本') == '日本'
        assert merge_preview_with_prefix('今日は', '日本') == '今日は日本'
