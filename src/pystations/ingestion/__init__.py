"""Ingestion helpers.

Everything that turns raw store documents into domain models (and back)
lives here so the rest of the library only ever sees :class:`Station`.
"""
