"""Custom exception classes for meshnav."""


class MeshnavError(Exception):
    """Base exception class for all meshnav errors."""
    pass


class ConfigurationError(MeshnavError):
    """Raised when there's an error in configuration."""
    pass


class MeshError(MeshnavError):
    """Raised when mesh arrays are malformed or a mesh file cannot be loaded."""
    pass


class NonManifoldError(MeshError):
    """Raised when an adjacency lookup touches a non-manifold vertex."""

    def __init__(self, vertex: int, message: str = "non manifold vertex"):
        super().__init__(f"{message}: {vertex}")
        self.vertex = vertex
