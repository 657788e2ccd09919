"""Self-balancing red-black tree used as the memtable's index."""

from __future__ import annotations

from typing import Any, Iterator, List, Optional

from .binary_tree import BinaryTree, Color, TreeNode, _as_key
from .keyvalue import KeyValue

__all__ = ["RedBlackTree"]

_COLOR_NAMES = {
    Color.RED: "Red",
    Color.BLACK: "Black",
    Color.DOUBLE_BLACK: "Double Black",
    Color.NA: "N/A",
}


class RedBlackTree(BinaryTree):
    """Red-black tree keyed by record keys; inserting a present key replaces it."""

    @staticmethod
    def color_of(node: Optional[TreeNode]) -> Color:
        """Colour of a node; missing nodes count as black."""
        return Color.BLACK if node is None else node.color

    @staticmethod
    def _set_color(node: Optional[TreeNode], color: Color) -> None:
        if node is not None:
            node.color = color

    # Insertion

    def insert(self, kv: KeyValue) -> None:
        """Insert a record, or replace the record whose key is equal."""
        if not isinstance(kv, KeyValue):
            raise TypeError(f"Expected a KeyValue, got {type(kv).__name__}")
        existing = self._find_equal(kv)
        if existing is not None:
            existing.key_value = kv
            return
        node = TreeNode(kv)
        if self._attach(node):
            self._fix_insert(node)
        self._set_color(self.root, Color.BLACK)

    def _find_equal(self, kv: KeyValue) -> Optional[TreeNode]:
        if not self.search(kv):
            return None
        node = self.root
        while node is not None:
            if node.key_value == kv:
                return node
            node = node.left if kv < node.key_value else node.right
        return None

    def _attach(self, node: TreeNode) -> bool:
        if self.root is None:
            self.root = node
            return True
        current = self.root
        while True:
            if node.key_value < current.key_value:
                if current.left is None:
                    current.left = node
                    break
                current = current.left
            elif node.key_value > current.key_value:
                if current.right is None:
                    current.right = node
                    break
                current = current.right
            else:
                return False
        node.parent = current
        return True

    def _fix_insert(self, ptr: TreeNode) -> None:
        color = self.color_of
        while ptr is not self.root and color(ptr) is Color.RED and color(ptr.parent) is Color.RED:
            parent = ptr.parent
            grandparent = parent.parent
            if parent is grandparent.left:
                uncle = grandparent.right
                if color(uncle) is Color.RED:
                    uncle.color = Color.BLACK
                    parent.color = Color.BLACK
                    grandparent.color = Color.RED
                    ptr = grandparent
                else:
                    if ptr is parent.right:
                        self._rotate_left(parent)
                        ptr = parent
                        parent = ptr.parent
                    self._rotate_right(grandparent)
                    parent.color, grandparent.color = grandparent.color, parent.color
                    ptr = parent
            else:
                uncle = grandparent.left
                if color(uncle) is Color.RED:
                    uncle.color = Color.BLACK
                    parent.color = Color.BLACK
                    grandparent.color = Color.RED
                    ptr = grandparent
                else:
                    if ptr is parent.left:
                        self._rotate_right(parent)
                        ptr = parent
                        parent = ptr.parent
                    self._rotate_left(grandparent)
                    parent.color, grandparent.color = grandparent.color, parent.color
                    ptr = parent

    def _replace_in_parent(self, node: TreeNode, child: Optional[TreeNode]) -> None:
        if node.parent is None:
            self.root = child
        elif node is node.parent.left:
            node.parent.left = child
        else:
            node.parent.right = child
        if child is not None:
            child.parent = node.parent

    def _rotate_left(self, ptr: TreeNode) -> None:
        right_child = ptr.right
        ptr.right = right_child.left
        if ptr.right is not None:
            ptr.right.parent = ptr
        self._replace_in_parent(ptr, right_child)
        right_child.left = ptr
        ptr.parent = right_child

    def _rotate_right(self, ptr: TreeNode) -> None:
        left_child = ptr.left
        ptr.left = left_child.right
        if ptr.left is not None:
            ptr.left.parent = ptr
        self._replace_in_parent(ptr, left_child)
        left_child.right = ptr
        ptr.parent = left_child

    # Lookup

    def get_value(self, kv: Any) -> KeyValue:
        """The stored record with an equal key, or an empty record if absent."""
        key = _as_key(kv)
        node = self._find_equal(key)
        return node.key_value if node is not None else KeyValue()

    # Deletion

    def delete_key(self, kv: Any) -> None:
        """Remove the record with an equal key; absent keys are ignored."""
        node = self._delete_target(_as_key(kv))
        if node is not None:
            self._fix_delete(node)

    def _delete_target(self, kv: KeyValue) -> Optional[TreeNode]:
        node = self.root
        while node is not None:
            if kv < node.key_value:
                node = node.left
            elif kv > node.key_value:
                node = node.right
            elif node.left is None or node.right is None:
                return node
            else:
                successor = node.right
                while successor.left is not None:
                    successor = successor.left
                node.key_value = successor.key_value
                kv = successor.key_value
                node = node.right
        return None

    def _fix_delete(self, node: TreeNode) -> None:
        color = self.color_of
        child = node.left if node.left is not None else node.right
        if node is self.root:
            self.root = child
            if child is not None:
                child.parent = None
                child.color = Color.BLACK
            return

        if Color.RED in (color(node), color(node.left), color(node.right)):
            self._replace_in_parent(node, child)
            self._set_color(child, Color.BLACK)
            return

        ptr = node
        ptr.color = Color.DOUBLE_BLACK
        while ptr is not self.root and color(ptr) is Color.DOUBLE_BLACK:
            parent = ptr.parent
            if ptr is parent.left:
                sibling = parent.right
                if color(sibling) is Color.RED:
                    sibling.color = Color.BLACK
                    parent.color = Color.RED
                    self._rotate_left(parent)
                elif color(sibling.left) is Color.BLACK and color(sibling.right) is Color.BLACK:
                    sibling.color = Color.RED
                    parent.color = Color.BLACK if parent.color is Color.RED else Color.DOUBLE_BLACK
                    ptr.color = Color.BLACK
                    ptr = parent
                else:
                    if color(sibling.right) is Color.BLACK:
                        self._set_color(sibling.left, Color.BLACK)
                        sibling.color = Color.RED
                        self._rotate_right(sibling)
                        sibling = parent.right
                    sibling.color = parent.color
                    parent.color = Color.BLACK
                    self._set_color(sibling.right, Color.BLACK)
                    self._rotate_left(parent)
                    ptr.color = Color.BLACK
                    break
            else:
                sibling = parent.left
                if color(sibling) is Color.RED:
                    sibling.color = Color.BLACK
                    parent.color = Color.RED
                    self._rotate_right(parent)
                elif color(sibling.left) is Color.BLACK and color(sibling.right) is Color.BLACK:
                    sibling.color = Color.RED
                    parent.color = Color.BLACK if parent.color is Color.RED else Color.DOUBLE_BLACK
                    ptr.color = Color.BLACK
                    ptr = parent
                else:
                    if color(sibling.left) is Color.BLACK:
                        self._set_color(sibling.right, Color.BLACK)
                        sibling.color = Color.RED
                        self._rotate_left(sibling)
                        sibling = parent.left
                    sibling.color = parent.color
                    parent.color = Color.BLACK
                    self._set_color(sibling.left, Color.BLACK)
                    self._rotate_right(parent)
                    ptr.color = Color.BLACK
                    break

        if node is node.parent.left:
            node.parent.left = None
        else:
            node.parent.right = None
        node.parent = None
        self._set_color(self.root, Color.BLACK)

    # Traversal and inspection

    def items(self) -> Iterator[KeyValue]:
        """Records in ascending key order."""
        return self.inorder()

    def to_list(self) -> List[KeyValue]:
        """All records in ascending key order, ready to be flushed."""
        return list(self.inorder())

    def black_height(self) -> int:
        """Number of black nodes on the leftmost path from the root."""
        height = 0
        node = self.root
        while node is not None:
            if node.color is Color.BLACK:
                height += 1
            node = node.left
        return height

    def describe(self) -> str:
        """Each record in key order, followed by its node colour."""
        blocks = []
        stack: List[TreeNode] = []
        node = self.root
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node.left
            node = stack.pop()
            blocks.append(f"{node.key_value.describe()}\nColor: {_COLOR_NAMES[node.color]}")
            node = node.right
        return "\n".join(blocks)