import time


class Stopwatch:
    """Wall-clock timer handed to whoever reports timings."""

    def __init__(self):
        self._start = time.perf_counter()
        self._lap = self._start

    def restart(self):
        self._start = time.perf_counter()
        self._lap = self._start

    def elapsed(self):
        return time.perf_counter() - self._start

    def lap(self):
        # seconds since the previous lap (or start)
        now = time.perf_counter()
        delta = now - self._lap
        self._lap = now
        return delta
