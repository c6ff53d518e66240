"""Fair map directory service.

Geotagged entries with categories, tags and community ratings, connected
through a small subject/predicate/object relation graph.
"""

__version__ = "0.3.0"
