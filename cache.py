class CacheSet:
    """A single associative cache set with a fixed number of slots.

    Slots keep their position for the lifetime of the set, so a snapshot
    always lists the same slot in the same column. An unused slot holds
    ``None``; line numbers may be any integer, including negative ones.
    """

    def __init__(self, capacity: int):
        self.capacity = capacity
        self.slots = [None] * capacity
        self.occupied = 0

    def __len__(self):
        return self.occupied

    def __contains__(self, line):
        return self.find(line) >= 0

    def __iter__(self):
        """Resident lines in slot order."""
        return (line for line in self.slots if line is not None)

    def is_full(self) -> bool:
        return self.occupied == self.capacity

    def find(self, line: int) -> int:
        """Return the slot holding ``line``, or -1 if it is not resident."""
        for i, resident in enumerate(self.slots):
            if resident is not None and resident == line:
                return i
        return -1

    def insert(self, line: int) -> int:
        if self.is_full():
            raise RuntimeError("cache set is full")
        if line in self:
            raise ValueError(f"line {line} is already resident")
        index = self.slots.index(None)
        self.slots[index] = line
        self.occupied += 1
        return index

    def replace(self, index: int, line: int) -> int:
        """Put ``line`` in slot ``index`` and return the line it evicted."""
        evicted = self.slots[index]
        if evicted is None:
            raise ValueError(f"slot {index} is empty")
        if line in self:
            raise ValueError(f"line {line} is already resident")
        self.slots[index] = line
        return evicted

    def snapshot(self):
        return tuple(self.slots)
