from __future__ import annotations


class PycallError(RuntimeError):
    """Misuse of the library (never raised for I/O failures, which stay OSError)."""


class ProgramConsumedError(PycallError):
    pass


class GuardDischargedError(PycallError):
    pass
