"""Infrastructure layer — package location, metadata loading, filesystem, graph engine.

This layer depends on stdlib, the domain layer, and third-party libs (NetworkX).
It must never import from services, commands, or output.
"""
