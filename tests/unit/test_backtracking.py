"""Tests for the N-Queens, graph colouring and subset sum solvers."""

import pytest

from steptrace.backtracking import graph_coloring, n_queens, subset_sum
from steptrace.errors import MalformedInstanceError
from steptrace.harness import SQUARE_CYCLE, TRIANGLE


def _attacks(a, b):
    (r1, c1), (r2, c2) = a, b
    return r1 == r2 or c1 == c2 or abs(r1 - r2) == abs(c1 - c2)


class TestNQueens:
    def test_four_queens_first_solution(self):
        result = n_queens(4)
        assert result.total_solutions == 1
        assert result.solutions[0] == (
            (0, 1, 0, 0),
            (0, 0, 0, 1),
            (1, 0, 0, 0),
            (0, 0, 1, 0),
        )

    @pytest.mark.parametrize("n", [4, 5, 6, 8])
    def test_solution_is_non_attacking(self, n):
        final = n_queens(n).last_step
        assert final.is_valid
        queens = final.placed_queens
        assert len(queens) == n
        for i, a in enumerate(queens):
            for b in queens[i + 1:]:
                assert not _attacks(a, b)

    def test_single_cell_board(self):
        result = n_queens(1)
        assert result.solutions == (((1,),),)

    @pytest.mark.parametrize("n", [2, 3])
    def test_no_solution(self, n):
        result = n_queens(n)
        assert result.total_solutions == 0
        assert result.solutions == ()
        assert result.last_step.backtrack is True

    def test_first_step_is_empty_board(self):
        first = n_queens(4).steps[0]
        assert first.placed_queens == ()
        assert first.action.startswith("Starting")

    def test_backtrack_step_has_one_queen_fewer(self):
        steps = n_queens(4).steps
        backtracks = [s for s in steps if s.backtrack]
        assert backtracks
        for step in backtracks:
            assert step.is_valid is False
            assert len(step.placed_queens) == step.current_row
            assert (step.current_row, step.current_col) not in step.placed_queens

    def test_placed_step_includes_new_queen(self):
        for step in n_queens(5).steps:
            if step.action.startswith("Queen placed"):
                assert (step.current_row, step.current_col) in step.placed_queens
                assert len(step.placed_queens) == step.current_row + 1

    def test_attacked_square_is_reported(self):
        steps = n_queens(4).steps
        rejected = [s for s in steps if "under attack" in s.action]
        assert rejected
        assert all(not s.is_valid and not s.backtrack for s in rejected)

    def test_board_snapshots_are_independent(self):
        steps = n_queens(4).steps
        assert sum(map(sum, steps[0].board)) == 0

    @pytest.mark.parametrize("n", [0, -3])
    def test_bad_size_raises(self, n):
        with pytest.raises(MalformedInstanceError):
            n_queens(n)


class TestGraphColoring:
    def test_triangle_needs_three_colours(self):
        result = graph_coloring(TRIANGLE, 3)
        assert result.is_colorable
        assert result.coloring == (0, 1, 2)
        assert result.chromatic_number == 3

    def test_triangle_with_two_colours_fails(self):
        result = graph_coloring(TRIANGLE, 2)
        assert result.is_colorable is False
        assert result.coloring == ()
        assert result.chromatic_number == -1
        assert result.last_step.coloring == (-1, -1, -1)

    def test_even_cycle_is_two_colourable(self):
        result = graph_coloring(SQUARE_CYCLE, 2)
        assert result.coloring == (0, 1, 0, 1)
        assert result.chromatic_number == 2

    def test_extra_colours_not_counted(self):
        result = graph_coloring(SQUARE_CYCLE, 5)
        assert result.chromatic_number == 2

    def test_adjacent_vertices_differ(self):
        coloring = graph_coloring(SQUARE_CYCLE, 3).coloring
        for i, row in enumerate(SQUARE_CYCLE):
            for j, edge in enumerate(row):
                if edge:
                    assert coloring[i] != coloring[j]

    def test_backtrack_step_clears_vertex(self):
        steps = graph_coloring(TRIANGLE, 2).steps
        backtracks = [s for s in steps if s.backtrack]
        assert backtracks
        for step in backtracks:
            assert step.coloring[step.vertex] == -1
            assert step.is_valid is False

    def test_empty_graph(self):
        result = graph_coloring([], 1)
        assert result.is_colorable
        assert result.chromatic_number == 0

    def test_non_square_matrix_raises(self):
        with pytest.raises(MalformedInstanceError):
            graph_coloring([[0, 1], [1]], 2)

    def test_zero_colours_raises(self):
        with pytest.raises(MalformedInstanceError):
            graph_coloring(TRIANGLE, 0)


class TestSubsetSum:
    NUMBERS = [3, 34, 4, 12, 5, 2]

    def test_finds_first_subset_in_order(self):
        result = subset_sum(self.NUMBERS, 9)
        assert result.has_subset
        assert result.subset == (3, 4, 2)
        assert result.last_step.found is True

    def test_unreachable_target(self):
        result = subset_sum(self.NUMBERS, 30)
        assert result.has_subset is False
        assert result.subset == ()

    def test_zero_target_is_empty_subset(self):
        result = subset_sum(self.NUMBERS, 0)
        assert result.has_subset
        assert result.subset == ()
        assert result.step_count == 2

    def test_empty_numbers(self):
        assert subset_sum([], 4).has_subset is False

    def test_include_step_shows_new_element(self):
        for step in subset_sum(self.NUMBERS, 9).steps:
            if step.include:
                assert step.current_subset[-1] == self.NUMBERS[step.index]
                assert step.current_sum == sum(step.current_subset)

    def test_exclude_after_failed_include_is_backtrack(self):
        steps = subset_sum(self.NUMBERS, 9).steps
        backtracks = [s for s in steps if s.backtrack]
        # 34, 12 and 5 are each tried and dropped before 2 completes the sum
        assert [self.NUMBERS[s.index] for s in backtracks] == [34, 12, 5]
        for step in backtracks:
            assert step.current_sum == sum(step.current_subset)
            assert step.include is False

    def test_target_sum_on_every_step(self):
        steps = subset_sum(self.NUMBERS, 9).steps
        assert {s.target_sum for s in steps} == {9}

    @pytest.mark.parametrize("numbers,target", [([1, -2], 3), ([1, 2], -1)])
    def test_negative_input_raises(self, numbers, target):
        with pytest.raises(MalformedInstanceError):
            subset_sum(numbers, target)
