"""Marketing Hub - marketing data ingestion and aggregation backend"""

__version__ = "1.0.0"
