class FileActionRecord:
    def __init__(self, path):
        self.path = path
    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.path!r})"
    def __eq__(self, o: object) -> bool:
        return isinstance(o, type(self)) and self.path == o.path
    def __hash__(self) -> int:
        return hash((type(self), self.path))


class AddDirectory(FileActionRecord):
    pass


class AddFile(FileActionRecord):
    pass


class KeepFile(FileActionRecord):
    pass


class RemoveFile(FileActionRecord):
    pass


class CopyFile(FileActionRecord):
    def __init__(self, path: str, source: str):
        super().__init__(path)
        self.source = source
    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.path!r}, source={self.source!r})"
    def __eq__(self, o: object) -> bool:
        return isinstance(o, type(self)) and self.path == o.path and self.source == o.source
    def __hash__(self) -> int:
        return hash((type(self), self.path, self.source))


class PatchFile(FileActionRecord):
    def __init__(self, path: str, patch: str):
        super().__init__(path)
        self.patch = patch
    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.path!r}, patch={self.patch!r})"
    def __eq__(self, o: object) -> bool:
        return isinstance(o, type(self)) and self.path == o.path and self.patch == o.patch
    def __hash__(self) -> int:
        return hash((type(self), self.path, self.patch))
