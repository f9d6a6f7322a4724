from meshnav.mesh.surface import MeshSurface

__all__ = ["MeshSurface"]
