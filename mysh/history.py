from collections import deque
from typing import Deque, List

from mysh.ast_tree import HistoryEntry
from mysh.config import HISTORY_SIZE
from mysh.errors import NoSuchHistoryIndexError


class HistoryStore:
    """
    Bounded log of entered lines, numbered 1..count in insertion order.

    When full, the oldest line is dropped and the remaining ones are
    renumbered, so index 1 always names the oldest retained line.
    """

    def __init__(self, capacity: int = HISTORY_SIZE) -> None:
        if capacity < 1:
            raise ValueError("history capacity must be at least 1")
        self.capacity = capacity
        self.lines: Deque[str] = deque(maxlen=capacity)

    def record(self, line: str) -> None:
        self.lines.append(line)

    def entries(self) -> List[HistoryEntry]:
        return [HistoryEntry(i, line) for i, line in enumerate(self.lines, 1)]

    def get(self, index: int) -> str:
        if index < 1 or index > len(self.lines):
            raise NoSuchHistoryIndexError(index)
        return self.lines[index - 1]

    def copy(self) -> "HistoryStore":
        earlier = HistoryStore(self.capacity)
        earlier.lines.extend(self.lines)
        return earlier

    def render(self) -> List[str]:
        return [str(entry) for entry in self.entries()]

    def __len__(self) -> int:
        return len(self.lines)
