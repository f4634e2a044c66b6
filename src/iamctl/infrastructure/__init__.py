"""Infrastructure layer — database, repositories, cache, and the store.

Infrastructure may import from domain, never from services or commands.
"""
