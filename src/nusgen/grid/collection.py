"""
Ordered set of linear grid indices.

Samplers accumulate accepted indices here one at a time and flatten the
result to an ascending array once the schedule is final. The set is a
red-black tree, so inserts cost O(log n) regardless of insertion order
(gap sequences insert long monotone runs, which would degrade a plain
binary search tree to a linked list).
"""

from typing import Iterator, List, Optional

import numpy as np
from numpy.typing import NDArray


BLACK = 0
RED = 1


class _Node:
    __slots__ = ("value", "color", "left", "right", "up")

    def __init__(self, value: int, up: Optional["_Node"] = None):
        self.value = value
        self.color = RED
        self.left: Optional[_Node] = None
        self.right: Optional[_Node] = None
        self.up = up


class UniqueIndexCollection:
    """
    Red-black tree keyed by linear index value.

    Example:
        ```python
        coll = UniqueIndexCollection()
        coll.insert(5)     # True
        coll.insert(2)     # True
        coll.insert(5)     # False, already present
        coll.flatten()     # array([2, 5])
        ```
    """

    def __init__(self) -> None:
        self._root: Optional[_Node] = None
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def __bool__(self) -> bool:
        return self._size > 0

    def __contains__(self, value: object) -> bool:
        node = self._root
        while node is not None:
            if value == node.value:
                return True
            node = node.left if value < node.value else node.right  # type: ignore[operator]
        return False

    def __iter__(self) -> Iterator[int]:
        # iterative in-order walk; deep trees must not hit the recursion limit
        stack: List[_Node] = []
        node = self._root
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node.left
            node = stack.pop()
            yield node.value
            node = node.right

    def __repr__(self) -> str:
        return f"UniqueIndexCollection(size={self._size})"

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------

    def insert(self, value: int) -> bool:
        """
        Insert ``value`` unless it is already present.

        Returns:
            True if the value was new, False if it was a duplicate
        """
        value = int(value)
        if self._root is None:
            self._root = _Node(value)
            self._root.color = BLACK
            self._size = 1
            return True

        node = self._root
        while True:
            if value < node.value:
                if node.left is None:
                    node.left = _Node(value, node)
                    node = node.left
                    break
                node = node.left
            elif value > node.value:
                if node.right is None:
                    node.right = _Node(value, node)
                    node = node.right
                    break
                node = node.right
            else:
                return False

        self._size += 1
        self._fix_insert(node)
        return True

    def flatten(self) -> NDArray[np.int64]:
        """Ascending array of all stored indices."""
        return np.fromiter(iter(self), dtype=np.int64, count=self._size)

    def clear(self) -> None:
        """Drop every node."""
        self._root = None
        self._size = 0

    # ------------------------------------------------------------------
    # balancing
    # ------------------------------------------------------------------

    def _rotate_left(self, x: _Node) -> None:
        y = x.right
        x.right = y.left
        if y.left is not None:
            y.left.up = x
        y.up = x.up
        if x.up is None:
            self._root = y
        elif x is x.up.left:
            x.up.left = y
        else:
            x.up.right = y
        y.left = x
        x.up = y

    def _rotate_right(self, x: _Node) -> None:
        y = x.left
        x.left = y.right
        if y.right is not None:
            y.right.up = x
        y.up = x.up
        if x.up is None:
            self._root = y
        elif x is x.up.right:
            x.up.right = y
        else:
            x.up.left = y
        y.right = x
        x.up = y

    def _fix_insert(self, node: _Node) -> None:
        while node.up is not None and node.up.color == RED:
            parent = node.up
            grand = parent.up
            if parent is grand.left:
                uncle = grand.right
                if uncle is not None and uncle.color == RED:
                    parent.color = BLACK
                    uncle.color = BLACK
                    grand.color = RED
                    node = grand
                    continue
                if node is parent.right:
                    node = parent
                    self._rotate_left(node)
                    parent = node.up
                parent.color = BLACK
                grand.color = RED
                self._rotate_right(grand)
            else:
                uncle = grand.left
                if uncle is not None and uncle.color == RED:
                    parent.color = BLACK
                    uncle.color = BLACK
                    grand.color = RED
                    node = grand
                    continue
                if node is parent.left:
                    node = parent
                    self._rotate_right(node)
                    parent = node.up
                parent.color = BLACK
                grand.color = RED
                self._rotate_left(grand)
        self._root.color = BLACK
