"""Relation graph, geo helpers and the search / ranking pipeline.

Nothing in this package performs I/O except ``usecase``, which talks to a
:class:`~fairmap.core.repository.Repository` handed in by the caller.
"""
