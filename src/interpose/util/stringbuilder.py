class StringBuilder:
    def __init__(self):
        self._parts = []

    def append(self, s) -> "StringBuilder":
        self._parts.append(str(s))

        return self

    def join(self, separator: str, iterable) -> "StringBuilder":
        first = True
        for s in iterable:
            if not first:
                self._parts.append(separator)

            self._parts.append(str(s))
            first = False

        return self

    def __str__(self):
        return ''.join(self._parts)
