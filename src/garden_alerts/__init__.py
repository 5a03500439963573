"""Grow A Garden stock and weather email alerts.

Polls (or streams) the upstream game API, detects stock and weather changes,
and emails verified subscribers whose watched items come into stock.
"""

__version__ = "0.1.0"
