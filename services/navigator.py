from core.errors import OutOfRange


def advance_sequential(current_index: int, view_count: int) -> int:
    # what happens past the last view is up to the viewer
    return current_index + 1


def navigate_to(index: int, view_count: int) -> int:
    if index < 0 or index >= view_count:
        raise OutOfRange(index, view_count)
    return index
