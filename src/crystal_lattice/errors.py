"""
Configuration errors raised while constructing a lattice.

Every failure in the construction engine is a configuration error: the
inputs are fully known when a call is made, so nothing is retried. Each
subclass names one violated rule so callers can assert on it.
"""


class ConfigurationError(ValueError):
    """Base class for all lattice construction errors."""


class DuplicateBindingError(ConfigurationError):
    """Basis, material or bounds declared more than once."""


class ScopeError(ConfigurationError):
    """An operation was issued outside the scopes that permit it."""


class MissingBindingError(ConfigurationError):
    """Bounds or material were needed before they were declared."""


class InvalidGeometryError(ConfigurationError):
    """Bounds or vectors that cannot describe a lattice."""


class UnrecognizedMaterialError(InvalidGeometryError):
    """Material combination absent from the lattice constant table."""


class UnsupportedGeometryError(InvalidGeometryError):
    """Recognized material paired with a basis it cannot form."""


class MaskSizeError(ConfigurationError):
    """Two masks of different lengths were combined."""


class ReentrancyError(ConfigurationError):
    """A construction context was reused after it finished or failed."""
