"""depctl — dependency resolution and package materialization for bundled web apps."""

__version__ = "0.4.0"
