"""Exception types raised by the LDPC codec."""


class CodecError(ValueError):
    """Base class for codec errors that are reported as failed results."""


class StructuralError(CodecError):
    """Graph or matrix structure does not admit a valid code."""


class DimensionError(CodecError):
    """A vector or matrix has the wrong length or shape."""


class DomainError(CodecError):
    """Input values fall outside the allowed alphabet (non-binary, NaN, ...)."""
