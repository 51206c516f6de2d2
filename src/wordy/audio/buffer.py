"""Fixed-size ring buffer for the rolling recognition window."""

import numpy as np


class RingBuffer:
    """Keeps the most recent `size` samples of a stream."""

    def __init__(self, size: int, dtype: type = np.float32):
        if size < 1:
            raise ValueError("size must be >= 1")
        self.size = size
        self.dtype = dtype
        self._data = np.zeros(size, dtype=dtype)
        self._write_idx = 0
        self._count = 0

    def __len__(self) -> int:
        return self._count

    def push(self, chunk: np.ndarray) -> None:
        """Append samples; the oldest are overwritten once full."""
        chunk = np.asarray(chunk, dtype=self.dtype).reshape(-1)
        n = len(chunk)
        if n == 0:
            return
        if n >= self.size:
            self._data[:] = chunk[-self.size :]
            self._write_idx = 0
            self._count = self.size
            return
        end = self._write_idx + n
        if end <= self.size:
            self._data[self._write_idx : end] = chunk
        else:
            head = self.size - self._write_idx
            self._data[self._write_idx :] = chunk[:head]
            self._data[: end - self.size] = chunk[head:]
        self._write_idx = end % self.size
        self._count = min(self._count + n, self.size)

    def snapshot(self) -> np.ndarray:
        """Buffered samples in chronological order (a copy)."""
        if self._count < self.size:
            return self._data[: self._count].copy()
        return np.roll(self._data, -self._write_idx)

    def clear(self) -> None:
        self._write_idx = 0
        self._count = 0
