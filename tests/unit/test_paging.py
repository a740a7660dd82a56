"""Tests for the FIFO, LRU, Optimal and LFU page-replacement policies."""

import pytest

from steptrace.errors import MalformedInstanceError
from steptrace.harness import PAGES_LONG, PAGES_SHORT
from steptrace.paging import (
    PAGE_REPLACEMENT_ALGORITHMS,
    compare_page_replacement,
    fifo_page_replacement,
    lfu_page_replacement,
    lru_page_replacement,
    optimal_page_replacement,
)


def _frames(result):
    """Helper: the frame table after every reference."""
    return [step.frames for step in result.steps]


class TestFifo:
    def test_counts(self):
        result = fifo_page_replacement(PAGES_SHORT, 3)
        assert (result.page_faults, result.page_hits) == (6, 1)
        assert result.hit_ratio == 14.29

    def test_evicts_oldest_even_if_recently_used(self):
        result = fifo_page_replacement([1, 2, 1, 3], 2)
        assert _frames(result)[-1] == (3, 2)
        assert result.steps[-1].replaced_page == 1
        assert result.steps[-1].replaced_index == 0

    def test_beladys_anomaly(self):
        pages = [1, 2, 3, 4, 1, 2, 5, 1, 2, 3, 4, 5]
        three = fifo_page_replacement(pages, 3).page_faults
        four = fifo_page_replacement(pages, 4).page_faults
        assert (three, four) == (9, 10)


class TestLru:
    def test_counts(self):
        result = lru_page_replacement(PAGES_LONG, 4)
        assert (result.page_faults, result.page_hits) == (6, 7)
        assert result.hit_ratio == 53.85

    def test_hit_refreshes_recency(self):
        result = lru_page_replacement([1, 2, 1, 3], 2)
        assert _frames(result)[-1] == (1, 3)
        assert result.steps[-1].replaced_page == 2


class TestOptimal:
    def test_counts(self):
        result = optimal_page_replacement(PAGES_SHORT, 3)
        assert (result.page_faults, result.page_hits) == (5, 2)

    def test_evicts_page_used_farthest_ahead(self):
        result = optimal_page_replacement([1, 2, 3, 1, 2], 2)
        # at 3: 1 is next used at 3, 2 at 4, so 2 goes
        assert result.steps[2].replaced_page == 2

    def test_never_again_beats_any_future_use(self):
        result = optimal_page_replacement([1, 2, 3, 2], 2)
        assert result.steps[2].replaced_page == 1

    def test_tie_goes_to_lowest_slot(self):
        result = optimal_page_replacement([4, 5, 6], 2)
        assert result.steps[2].replaced_index == 0


class TestLfu:
    def test_evicts_least_frequent(self):
        result = lfu_page_replacement([1, 1, 2, 3], 2)
        assert result.steps[-1].replaced_page == 2

    def test_ties_broken_by_oldest_use(self):
        result = lfu_page_replacement([1, 2, 2, 1, 3], 2)
        # both used twice; 2 was last used before 1
        assert result.steps[-1].replaced_page == 2

    def test_evicted_page_restarts_count(self):
        # 1 is evicted at 3 and reloaded with count 1, below 2 which has count 2
        result = lfu_page_replacement([1, 2, 2, 3, 1, 4], 2)
        assert result.steps[-1].replaced_page == 1


class TestSharedContract:
    @pytest.mark.parametrize("name", sorted(PAGE_REPLACEMENT_ALGORITHMS))
    def test_frame_table_width_is_fixed(self, name):
        result = PAGE_REPLACEMENT_ALGORITHMS[name](PAGES_LONG, 4)
        assert all(len(frames) == 4 for frames in _frames(result))

    @pytest.mark.parametrize("name", sorted(PAGE_REPLACEMENT_ALGORITHMS))
    def test_empty_slots_filled_before_eviction(self, name):
        result = PAGE_REPLACEMENT_ALGORITHMS[name]([9, 8, 7], 4)
        assert [s.replaced_page for s in result.steps] == [None, None, None]
        assert [s.replaced_index for s in result.steps] == [0, 1, 2]
        assert _frames(result)[-1] == (9, 8, 7, None)

    @pytest.mark.parametrize("name", sorted(PAGE_REPLACEMENT_ALGORITHMS))
    def test_page_zero_is_a_real_page(self, name):
        result = PAGE_REPLACEMENT_ALGORITHMS[name]([0, 1, 2], 2)
        assert result.steps[2].replaced_page == 0

    @pytest.mark.parametrize("name", sorted(PAGE_REPLACEMENT_ALGORITHMS))
    def test_empty_sequence(self, name):
        result = PAGE_REPLACEMENT_ALGORITHMS[name]([], 3)
        assert (result.page_faults, result.page_hits, result.hit_ratio) == (0, 0, 0.0)
        assert result.steps == ()

    @pytest.mark.parametrize("name", sorted(PAGE_REPLACEMENT_ALGORITHMS))
    def test_zero_frames_raises(self, name):
        with pytest.raises(MalformedInstanceError):
            PAGE_REPLACEMENT_ALGORITHMS[name]([1, 2], 0)

    def test_hit_steps_record_no_replacement(self):
        result = lru_page_replacement([5, 5], 1)
        assert result.steps[1].hit is True
        assert result.steps[1].replaced_index is None

    def test_compare_runs_every_policy(self):
        results = compare_page_replacement(PAGES_LONG, 4)
        assert set(results) == {"fifo", "lru", "optimal", "lfu"}
        assert results["optimal"].page_faults == min(
            r.page_faults for r in results.values()
        )
