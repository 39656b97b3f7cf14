import pytest

from photobooth.selection import PhotoSelection


def test_selection_order_is_slot_order():
    selection = PhotoSelection(3, 6)
    for index in (4, 1, 5):
        assert selection.toggle(index)
    assert selection.indices == (4, 1, 5)
    assert selection.slot_of(1) == 1
    assert selection.is_complete


def test_selecting_beyond_count_is_ignored():
    selection = PhotoSelection(2, 6)
    selection.toggle(0)
    selection.toggle(1)
    assert not selection.toggle(2)
    assert selection.indices == (0, 1)


def test_deselect_closes_gap():
    selection = PhotoSelection(3, 6)
    for index in (0, 1, 2):
        selection.toggle(index)
    assert selection.toggle(1)
    assert selection.indices == (0, 2)
    assert selection.slot_of(1) == -1
    assert not selection.is_complete


def test_dimmed_only_when_full():
    selection = PhotoSelection(1, 3)
    assert not selection.is_dimmed(2)
    selection.toggle(0)
    assert selection.is_dimmed(2)
    assert not selection.is_dimmed(0)
    assert selection.is_selected(0)


@pytest.mark.parametrize("index", [-1, 3])
def test_out_of_range_index(index):
    with pytest.raises(IndexError):
        PhotoSelection(2, 3).toggle(index)


def test_clear():
    selection = PhotoSelection(2, 3)
    selection.toggle(2)
    selection.clear()
    assert len(selection) == 0
