"""Exception hierarchy for schema reflection.

Tag directive problems never surface here: they are dropped and logged where
they are parsed so that schema generation stays total over well-formed types.
"""

from __future__ import annotations


class ReflectionError(Exception):
    """Base class for every terminal failure of a reflect call."""


class ConfigurationError(ReflectionError):
    """Raised when the reflector configuration cannot produce a valid document.

    Covers malformed base identifiers and invalid results returned by a
    caller-supplied ``lookup`` function.
    """


class UnsupportedTypeError(ReflectionError):
    """Raised when a Python type cannot be described structurally."""


class CapabilityError(ReflectionError):
    """Raised when a type's schema capability raises instead of returning."""


class DefinitionError(ReflectionError):
    """Raised when the definitions table would be left inconsistent.

    This signals a defect in the reflector (a dangling or duplicated
    reference), never a user error.
    """


class SchemaDocumentError(ReflectionError):
    """Raised when an emitted document is rejected by the 2020-12 meta-schema."""
