"""Unbalanced binary search tree of key-value records."""

from __future__ import annotations

import enum
from typing import Any, Iterator, List, Optional

from .keyvalue import KeyValue

__all__ = ["Color", "TreeNode", "BinaryTree"]


class Color(enum.Enum):
    RED = 0
    BLACK = 1
    DOUBLE_BLACK = 2
    NA = 3


class TreeNode:
    """A tree node holding one record and links to its neighbours."""

    __slots__ = ("key_value", "left", "right", "parent", "color")

    def __init__(self, key_value: KeyValue, color: Color = Color.RED) -> None:
        self.key_value = key_value
        self.left: Optional[TreeNode] = None
        self.right: Optional[TreeNode] = None
        self.parent: Optional[TreeNode] = None
        self.color = color

    def __repr__(self) -> str:
        return f"TreeNode({self.key_value!r}, {self.color.name})"


def _as_key(key: Any) -> KeyValue:
    return key if isinstance(key, KeyValue) else KeyValue(key)


class BinaryTree:
    """Binary search tree ordered by key; equal keys go to the right."""

    def __init__(self) -> None:
        self.root: Optional[TreeNode] = None

    def insert(self, key: Any, value: Any) -> None:
        """Insert a new record built from a key and a value."""
        node = TreeNode(KeyValue(key, value))
        if self.root is None:
            self.root = node
            return
        current = self.root
        while True:
            if node.key_value < current.key_value:
                if current.left is None:
                    current.left = node
                    break
                current = current.left
            else:
                if current.right is None:
                    current.right = node
                    break
                current = current.right
        node.parent = current

    def search(self, key: Any) -> bool:
        """True when a record with an equal key is in the tree."""
        kv = _as_key(key)
        node = self.root
        while node is not None:
            if kv < node.key_value:
                node = node.left
            elif node.key_value < kv:
                node = node.right
            else:
                return node.key_value == kv
        return False

    def inorder(self) -> Iterator[KeyValue]:
        """Records in ascending key order."""
        stack: List[TreeNode] = []
        node = self.root
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node.left
            node = stack.pop()
            yield node.key_value
            node = node.right

    def preorder(self) -> Iterator[KeyValue]:
        """Records with each node before its subtrees."""
        stack = [self.root] if self.root is not None else []
        while stack:
            node = stack.pop()
            yield node.key_value
            if node.right is not None:
                stack.append(node.right)
            if node.left is not None:
                stack.append(node.left)

    def postorder(self) -> Iterator[KeyValue]:
        """Records with each node after its subtrees."""
        if self.root is None:
            return
        stack = [self.root]
        visited: List[TreeNode] = []
        while stack:
            node = stack.pop()
            visited.append(node)
            if node.left is not None:
                stack.append(node.left)
            if node.right is not None:
                stack.append(node.right)
        for node in reversed(visited):
            yield node.key_value

    def scan(self, small_key: Any, large_key: Any) -> List[KeyValue]:
        """Records whose keys lie in [small_key, large_key], sorted and distinct.

        Of several records with equivalent keys, the first one met in key
        order is kept.
        """
        small, large = _as_key(small_key), _as_key(large_key)
        result: List[KeyValue] = []
        stack: List[TreeNode] = []
        node = self.root
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node.left if node.key_value > small else None
            node = stack.pop()
            kv = node.key_value
            if not kv < small and not large < kv:
                last = result[-1] if result else None
                if last is None or last < kv or kv < last:
                    result.append(kv)
            node = node.right if kv < large else None
        return result

    def __iter__(self) -> Iterator[KeyValue]:
        return self.inorder()