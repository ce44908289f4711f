class BundleDiffError(Exception):
    """Base class of the errors that abort a diff."""


class UsageError(BundleDiffError):
    pass


class ArchiveError(BundleDiffError):
    """The container itself could not be opened or parsed."""


class PayloadNotFoundError(BundleDiffError):
    def __init__(self, path, candidates):
        self.path = path
        self.candidates = tuple(candidates)
        super().__init__(f"Bundle file not found in {path}! Please use default bundle file name and path: {', '.join(self.candidates)}")


class AlgorithmUnavailableError(BundleDiffError):
    def __init__(self, name: str, hint: str):
        self.name = name
        self.hint = hint
        super().__init__(f"This function needs {name!r} delta support. {hint}")


class NestingDepthError(BundleDiffError):
    """Raised per entry when nested containers go deeper than allowed; never aborts the enumeration."""


class PatchWriteError(BundleDiffError):
    """Writing the patch package failed; the partial output is discarded."""


class PayloadDeltaError(BundleDiffError):
    pass
