"""Errors raised by the stores and the ordered list engine."""


class CalcflowError(Exception):
    """Base class for every domain error."""


class NotFoundError(CalcflowError):
    """A referenced parent, child, entity or association does not exist."""


class InvalidReferenceError(CalcflowError):
    """A supplied id does not belong to the expected parent or entity kind."""


class InvalidOrderError(CalcflowError):
    """The requested ordering change is malformed."""


class ChainIntegrityError(CalcflowError):
    """The stored chain is cyclic, forked, dangling or fragmented."""
