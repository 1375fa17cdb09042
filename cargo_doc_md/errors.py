"""Exception hierarchy for plan, output and unit level failures."""


class DocMdError(Exception):
    """Base class for every error raised by cargo-doc-md."""


class PlanError(DocMdError):
    """The build plan cannot be resolved; nothing has been documented yet."""


class OutputError(DocMdError):
    """The output base directory cannot be prepared or cleaned."""


class UnitError(DocMdError):
    """A single unit failed; the run continues with the next unit."""


class ExtractionError(UnitError):
    """The external rustdoc invocation failed for a unit."""

    def __init__(self, message: str, diagnostics: str = "") -> None:
        """Keep the captured compiler output next to the summary message."""
        super().__init__(message)
        self.diagnostics = diagnostics


class IRFormatError(UnitError):
    """The IR declares a format version this tool does not understand."""


class MalformedIRError(UnitError):
    """The IR is not structured the way rustdoc JSON is."""


class ModuleTreeError(UnitError):
    """The item graph has no usable root module."""


class NoLibraryTarget(DocMdError):
    """The unit has nothing to document; this is an exclusion, not a failure."""
