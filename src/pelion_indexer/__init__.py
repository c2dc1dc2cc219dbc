"""
Pelion Device Management webhook to Elasticsearch bulk indexer.

The Lambda entry point lives in ``pelion_indexer.lambda_function``.
"""

__version__ = "1.0.0"
