"""Service layer — business logic returning Result.

Services may import from domain and infrastructure layers.
They must never import from commands or output.
"""
