"""A red-black tree keyed by any totally ordered value."""

from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any


class Color(enum.IntEnum):
    """Node colour."""

    RED = 0
    BLACK = 1


@dataclass(eq=False)
class RBNode:
    """A node of an :class:`RBTree`."""

    key: Any
    value: Any = None
    color: Color = Color.RED
    parent: RBNode | None = field(default=None, repr=False)
    left: RBNode | None = field(default=None, repr=False)
    right: RBNode | None = field(default=None, repr=False)

    def next(self) -> RBNode | None:
        """Return the node that follows this one in key order."""
        node = self
        if node.right is not None:
            node = node.right
            while node.left is not None:
                node = node.left
            return node
        parent = node.parent
        while parent is not None and node is parent.right:
            node = parent
            parent = node.parent
        return parent

    def prev(self) -> RBNode | None:
        """Return the node that precedes this one in key order."""
        node = self
        if node.left is not None:
            node = node.left
            while node.right is not None:
                node = node.right
            return node
        parent = node.parent
        while parent is not None and node is parent.left:
            node = parent
            parent = node.parent
        return parent


def _is_red(node: RBNode | None) -> bool:
    return node is not None and node.color is Color.RED


def _is_black(node: RBNode | None) -> bool:
    return node is None or node.color is Color.BLACK


class RBTree:
    """A balanced binary search tree of :class:`RBNode` objects."""

    def __init__(self) -> None:
        self._root: RBNode | None = None
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[RBNode]:
        node = self.first()
        while node is not None:
            following = node.next()
            yield node
            node = following

    def first(self) -> RBNode | None:
        """Return the node with the smallest key, or None if empty."""
        node = self._root
        if node is None:
            return None
        while node.left is not None:
            node = node.left
        return node

    def last(self) -> RBNode | None:
        """Return the node with the largest key, or None if empty."""
        node = self._root
        if node is None:
            return None
        while node.right is not None:
            node = node.right
        return node

    def find(self, key: Any) -> RBNode | None:
        """Return the node holding ``key``, or None."""
        node = self._root
        while node is not None:
            if key < node.key:
                node = node.left
            elif key > node.key:
                node = node.right
            else:
                return node
        return None

    def insert(self, key: Any, value: Any = None) -> RBNode:
        """Insert ``key``; if it is already present, return the existing node unchanged."""
        parent: RBNode | None = None
        node = self._root
        go_left = False
        while node is not None:
            parent = node
            if key < node.key:
                node = node.left
                go_left = True
            elif key > node.key:
                node = node.right
                go_left = False
            else:
                return node
        new = RBNode(key, value, Color.RED, parent)
        if parent is None:
            self._root = new
        elif go_left:
            parent.left = new
        else:
            parent.right = new
        self._size += 1
        self._insert_color(new)
        return new

    def _rotate_left(self, node: RBNode) -> None:
        right = node.right
        assert right is not None
        parent = node.parent
        node.right = right.left
        if right.left is not None:
            right.left.parent = node
        right.left = node
        right.parent = parent
        if parent is not None:
            if node is parent.left:
                parent.left = right
            else:
                parent.right = right
        else:
            self._root = right
        node.parent = right

    def _rotate_right(self, node: RBNode) -> None:
        left = node.left
        assert left is not None
        parent = node.parent
        node.left = left.right
        if left.right is not None:
            left.right.parent = node
        left.right = node
        left.parent = parent
        if parent is not None:
            if node is parent.right:
                parent.right = left
            else:
                parent.left = left
        else:
            self._root = left
        node.parent = left

    def _insert_color(self, node: RBNode) -> None:
        while (parent := node.parent) is not None and _is_red(parent):
            gparent = parent.parent
            assert gparent is not None
            if parent is gparent.left:
                uncle = gparent.right
                if _is_red(uncle):
                    uncle.color = Color.BLACK
                    parent.color = Color.BLACK
                    gparent.color = Color.RED
                    node = gparent
                    continue
                if parent.right is node:
                    self._rotate_left(parent)
                    parent, node = node, parent
                parent.color = Color.BLACK
                gparent.color = Color.RED
                self._rotate_right(gparent)
            else:
                uncle = gparent.left
                if _is_red(uncle):
                    uncle.color = Color.BLACK
                    parent.color = Color.BLACK
                    gparent.color = Color.RED
                    node = gparent
                    continue
                if parent.left is node:
                    self._rotate_right(parent)
                    parent, node = node, parent
                parent.color = Color.BLACK
                gparent.color = Color.RED
                self._rotate_left(gparent)
        assert self._root is not None
        self._root.color = Color.BLACK

    def _erase_color(self, node: RBNode | None, parent: RBNode | None) -> None:
        while _is_black(node) and node is not self._root:
            assert parent is not None
            if parent.left is node:
                other = parent.right
                assert other is not None
                if _is_red(other):
                    other.color = Color.BLACK
                    parent.color = Color.RED
                    self._rotate_left(parent)
                    other = parent.right
                    assert other is not None
                if _is_black(other.left) and _is_black(other.right):
                    other.color = Color.RED
                    node = parent
                    parent = node.parent
                else:
                    if _is_black(other.right):
                        if other.left is not None:
                            other.left.color = Color.BLACK
                        other.color = Color.RED
                        self._rotate_right(other)
                        other = parent.right
                        assert other is not None
                    other.color = parent.color
                    parent.color = Color.BLACK
                    if other.right is not None:
                        other.right.color = Color.BLACK
                    self._rotate_left(parent)
                    node = self._root
                    break
            else:
                other = parent.left
                assert other is not None
                if _is_red(other):
                    other.color = Color.BLACK
                    parent.color = Color.RED
                    self._rotate_right(parent)
                    other = parent.left
                    assert other is not None
                if _is_black(other.left) and _is_black(other.right):
                    other.color = Color.RED
                    node = parent
                    parent = node.parent
                else:
                    if _is_black(other.left):
                        if other.right is not None:
                            other.right.color = Color.BLACK
                        other.color = Color.RED
                        self._rotate_left(other)
                        other = parent.left
                        assert other is not None
                    other.color = parent.color
                    parent.color = Color.BLACK
                    if other.left is not None:
                        other.left.color = Color.BLACK
                    self._rotate_right(parent)
                    node = self._root
                    break
        if node is not None:
            node.color = Color.BLACK

    def erase(self, node: RBNode) -> None:
        """Remove ``node`` from the tree and rebalance."""
        if node.left is None:
            child = node.right
        elif node.right is None:
            child = node.left
        else:
            old = node
            node = node.right
            while node.left is not None:
                node = node.left
            child = node.right
            parent = node.parent
            color = node.color
            if child is not None:
                child.parent = parent
            assert parent is not None
            if parent is old:
                parent.right = child
                parent = node
            else:
                parent.left = child
            node.parent = old.parent
            node.color = old.color
            node.right = old.right
            node.left = old.left
            if old.parent is not None:
                if old.parent.left is old:
                    old.parent.left = node
                else:
                    old.parent.right = node
            else:
                self._root = node
            assert old.left is not None
            old.left.parent = node
            if old.right is not None:
                old.right.parent = node
            self._finish_erase(old, child, parent, color)
            return

        parent = node.parent
        color = node.color
        if child is not None:
            child.parent = parent
        if parent is not None:
            if parent.left is node:
                parent.left = child
            else:
                parent.right = child
        else:
            self._root = child
        self._finish_erase(node, child, parent, color)

    def _finish_erase(
        self,
        removed: RBNode,
        child: RBNode | None,
        parent: RBNode | None,
        color: Color,
    ) -> None:
        self._size -= 1
        if color is Color.BLACK:
            self._erase_color(child, parent)
        removed.parent = removed.left = removed.right = None

    def replace_node(self, victim: RBNode, new: RBNode) -> None:
        """Put ``new`` in ``victim``'s place without rebalancing.

        The caller must make sure ``new`` sorts where ``victim`` did.
        """
        parent = victim.parent
        if parent is not None:
            if victim is parent.left:
                parent.left = new
            else:
                parent.right = new
        else:
            self._root = new
        if victim.left is not None:
            victim.left.parent = new
        if victim.right is not None:
            victim.right.parent = new
        new.parent = victim.parent
        new.left = victim.left
        new.right = victim.right
        new.color = victim.color
        victim.parent = victim.left = victim.right = None