from __future__ import annotations


class MarineDeskError(Exception):
    pass


class ValidationError(MarineDeskError):
    pass


class NotFoundError(MarineDeskError):
    pass


class DuplicateIdError(MarineDeskError):
    pass


class PermissionDenied(MarineDeskError):
    pass
