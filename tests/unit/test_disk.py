"""Tests for the disk-scheduling policies."""

import pytest

from steptrace.disk import (
    DISK_SCHEDULING_ALGORITHMS,
    clook,
    compare_disk_scheduling,
    cscan,
    fcfs,
    look,
    scan,
    sstf,
)
from steptrace.errors import MalformedInstanceError
from steptrace.harness import DISK_HEAD, DISK_QUEUE
from steptrace.run_types import ScanDirection


class TestFcfs:
    def test_arrival_order(self):
        result = fcfs(DISK_QUEUE, DISK_HEAD)
        assert result.sequence == (53, *DISK_QUEUE)
        assert result.seek_time == 640

    def test_steps_accumulate_seek(self):
        result = fcfs([10, 5], 0)
        assert [(s.position, s.distance, s.cumulative_seek) for s in result.steps] == [
            (0, 0, 0),
            (10, 10, 10),
            (5, 5, 15),
        ]

    def test_pending_shrinks(self):
        result = fcfs([10, 5], 0)
        assert [s.pending for s in result.steps] == [(10, 5), (5,), ()]

    def test_empty_queue(self):
        result = fcfs([], 42)
        assert result.sequence == (42,)
        assert result.seek_time == 0


class TestSstf:
    def test_nearest_first(self):
        result = sstf(DISK_QUEUE, DISK_HEAD)
        assert result.sequence == (53, 65, 67, 37, 14, 98, 122, 124, 183)
        assert result.seek_time == 236

    def test_tie_goes_to_earlier_request(self):
        assert sstf([60, 40], 50).sequence == (50, 60, 40)
        assert sstf([40, 60], 50).sequence == (50, 40, 60)


class TestScan:
    def test_left_visits_zero_before_reversing(self):
        result = scan(DISK_QUEUE, DISK_HEAD, "left")
        assert result.sequence == (53, 37, 14, 0, 65, 67, 98, 122, 124, 183)
        assert result.seek_time == 236

    def test_right_visits_last_cylinder(self):
        result = scan(DISK_QUEUE, DISK_HEAD, ScanDirection.RIGHT)
        assert result.sequence == (53, 65, 67, 98, 122, 124, 183, 199, 37, 14)
        assert result.seek_time == 331

    def test_no_boundary_when_nothing_on_other_side(self):
        result = scan([10, 20], 50, "left")
        assert result.sequence == (50, 20, 10)

    def test_head_on_boundary_not_repeated(self):
        result = scan([5, 10], 0, "left")
        assert result.sequence == (0, 5, 10)

    def test_request_at_head_belongs_to_right_sweep(self):
        result = scan([50, 40], 50, "left")
        assert result.sequence == (50, 40, 0, 50)

    def test_boundary_step_keeps_pending(self):
        result = scan([60, 40], 50, "left", disk_size=100)
        boundary = result.steps[2]
        assert (boundary.position, boundary.pending) == (0, (60,))

    def test_custom_disk_size(self):
        result = scan([10, 90], 50, "right", disk_size=100)
        assert result.sequence == (50, 90, 99, 10)

    @pytest.mark.parametrize("direction", ["up", "LEFT ", ""])
    def test_bad_direction_raises(self, direction):
        with pytest.raises(MalformedInstanceError):
            scan(DISK_QUEUE, DISK_HEAD, direction)

    @pytest.mark.parametrize("queue,head", [([200], 53), ([10], 200), ([-1], 5)])
    def test_out_of_range_raises(self, queue, head):
        with pytest.raises(MalformedInstanceError):
            scan(queue, head)


class TestCscan:
    def test_wraps_to_zero(self):
        result = cscan(DISK_QUEUE, DISK_HEAD)
        assert result.sequence == (53, 65, 67, 98, 122, 124, 183, 199, 0, 14, 37)
        assert result.seek_time == 382

    def test_jump_counts_full_width(self):
        result = cscan([10], 50, disk_size=100)
        jump = result.steps[2]
        assert (jump.position, jump.distance) == (0, 99)

    def test_no_wrap_when_all_requests_above(self):
        assert cscan([60, 70], 50).sequence == (50, 60, 70)

    def test_out_of_range_raises(self):
        with pytest.raises(MalformedInstanceError):
            cscan([250], 10)


class TestLook:
    def test_left_reverses_at_last_request(self):
        result = look(DISK_QUEUE, DISK_HEAD, "left")
        assert result.sequence == (53, 37, 14, 65, 67, 98, 122, 124, 183)
        assert result.seek_time == 208

    def test_right(self):
        result = look(DISK_QUEUE, DISK_HEAD, "right")
        assert result.sequence[-2:] == (37, 14)
        assert result.seek_time == 299

    def test_bad_direction_raises(self):
        with pytest.raises(MalformedInstanceError):
            look(DISK_QUEUE, DISK_HEAD, "sideways")


class TestClook:
    def test_jumps_to_lowest_request(self):
        result = clook(DISK_QUEUE, DISK_HEAD)
        assert result.sequence == (53, 65, 67, 98, 122, 124, 183, 14, 37)
        assert result.seek_time == 322


class TestSharedContract:
    @pytest.mark.parametrize("name", sorted(DISK_SCHEDULING_ALGORITHMS))
    def test_starts_at_head_and_serves_everything(self, name):
        result = DISK_SCHEDULING_ALGORITHMS[name](DISK_QUEUE, DISK_HEAD)
        assert result.sequence[0] == DISK_HEAD
        assert set(DISK_QUEUE) <= set(result.sequence)
        assert result.steps[-1].pending == ()

    @pytest.mark.parametrize("name", sorted(DISK_SCHEDULING_ALGORITHMS))
    def test_seek_time_is_sum_of_moves(self, name):
        result = DISK_SCHEDULING_ALGORITHMS[name](DISK_QUEUE, DISK_HEAD)
        moves = zip(result.sequence, result.sequence[1:])
        assert result.seek_time == sum(abs(b - a) for a, b in moves)
        assert result.steps[-1].cumulative_seek == result.seek_time

    def test_duplicate_requests_are_each_served(self):
        result = sstf([30, 30, 10], 20)
        assert result.sequence == (20, 30, 30, 10)

    def test_compare(self):
        results = compare_disk_scheduling(DISK_QUEUE, DISK_HEAD)
        assert {k: r.seek_time for k, r in results.items()} == {
            "fcfs": 640,
            "sstf": 236,
            "scan": 236,
            "cscan": 382,
            "look": 208,
            "clook": 322,
        }
