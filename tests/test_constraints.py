from minesweeper_hints import BoardSnapshot, Constraint, build_constraints, partition_components


def test_zero_with_all_neighbors_revealed_has_no_constraint():
    board = BoardSnapshot.from_strings(["000", "011", "01."], mines_count=1)

    constraints = build_constraints(board)

    assert (0, 0) not in {c.source for c in constraints}
    assert {c.source for c in constraints} == {(2, 1), (1, 2), (1, 1)}
    assert all(c.cells == frozenset({(2, 2)}) for c in constraints)


def test_flags_are_subtracted_from_required_count():
    board = BoardSnapshot.from_strings(["2F.", "..."], mines_count=2)

    (constraint,) = [c for c in build_constraints(board) if c.source == (0, 0)]

    assert constraint.required == 1
    assert constraint.cells == frozenset({(0, 1), (1, 1)})


def test_required_count_is_clamped_at_zero():
    board = BoardSnapshot.from_strings(["0F", ".."], mines_count=1)

    (constraint,) = build_constraints(board)

    assert constraint == Constraint(
        source=(0, 0), cells=frozenset({(0, 1), (1, 1)}), required=0
    )


def test_constraints_are_row_major():
    board = BoardSnapshot.from_strings([".1.", "1..", "..."], mines_count=1)
    assert [c.source for c in build_constraints(board)] == [(1, 0), (0, 1)]


def test_separate_groups_form_separate_components():
    # Two clues far apart on a single row.
    board = BoardSnapshot.from_strings([".1....1."], mines_count=2)

    components = partition_components(build_constraints(board))

    assert [set(c.cells) for c in components] == [
        {(0, 0), (2, 0)},
        {(5, 0), (7, 0)},
    ]
    assert [len(c.constraints) for c in components] == [1, 1]


def test_shared_cell_links_constraints():
    board = BoardSnapshot.from_strings([".1.1."], mines_count=1)

    (component,) = partition_components(build_constraints(board))

    assert component.cells == ((0, 0), (2, 0), (4, 0))
    assert [c.source for c in component.constraints] == [(1, 0), (3, 0)]


def test_no_constraints_no_components():
    assert partition_components([]) == []
