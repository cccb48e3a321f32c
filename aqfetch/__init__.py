"""
aqfetch: periodic air-quality measurement fetch and ingestion pipeline.
"""

__version__ = "0.1.0"
