"""
Infrastructure layer: streaming readers and the NDJSON record writer.
"""
