"""
Singly linked FIFO queue used for breadth-first scheduling.
"""

from dataclasses import dataclass
from typing import Generic, Iterator, Optional, TypeVar

T = TypeVar('T')


@dataclass
class QueueNode(Generic[T]):
    """A queued value and the link to the node behind it."""
    value: T
    next: Optional['QueueNode[T]'] = None


class Queue(Generic[T]):
    """
    FIFO queue with O(1) push and pop.

    Values leave in exactly the order they were pushed. Popping from an
    empty queue returns None instead of raising.
    """

    def __init__(self):
        self.head: Optional[QueueNode[T]] = None
        self.tail: Optional[QueueNode[T]] = None
        self.length = 0

    def push(self, value: T):
        """Append a value at the tail."""
        node = QueueNode(value)
        if self.tail is None:
            self.head = node
        else:
            self.tail.next = node
        self.tail = node
        self.length += 1

    def pop(self) -> Optional[T]:
        """Remove and return the value at the head, or None if empty."""
        if self.head is None:
            return None

        node = self.head
        self.head = node.next
        node.next = None
        self.length -= 1

        if self.head is None:
            self.tail = None

        return node.value

    def is_empty(self) -> bool:
        return self.head is None

    def __len__(self) -> int:
        return self.length

    def __iter__(self) -> Iterator[T]:
        node = self.head
        while node is not None:
            yield node.value
            node = node.next

    def __repr__(self) -> str:
        return f"Queue({list(self)!r})"
