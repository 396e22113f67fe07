"""Pure list reordering used for drag-and-drop."""

from typing import Sequence, TypeVar

from ..core.exceptions import ValidationError

T = TypeVar("T")


def move_item(items: Sequence[T], from_index: int, to_index: int) -> list[T]:
    """
    Move one element to a new position, shifting the others.

    Equivalent to removing ``items[from_index]`` and inserting it at
    ``to_index`` in the shortened list. The input is not mutated.

    Raises:
        ValidationError: If either index is outside the sequence
    """
    size = len(items)
    for name, index in (("fromIndex", from_index), ("toIndex", to_index)):
        if not 0 <= index < size:
            raise ValidationError(
                detail=f"{name} {index} is outside a list of {size} waypoints",
                errors={name: index},
            )

    reordered = list(items)
    moved = reordered.pop(from_index)
    reordered.insert(to_index, moved)
    return reordered
