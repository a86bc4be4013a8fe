"""Exception types raised on contract violations."""


class FieldMismatchError(ValueError):
    """Operands belong to different fields, or a value is not a field element."""


class NotEnoughSharesError(ValueError):
    """Fewer shares than the threshold were supplied."""


class InconsistentSharesError(ValueError):
    """The supplied shares cannot come from a single consistent dealing."""
