"""Category domain services.

``lifecycle`` holds every mutating operation (create, play, delete, bulk
user delete, host post-delete events); ``browse`` holds the index-backed
reads used by the listing screens. HTTP routes and socket handlers import
from here and stay free of store details.
"""
