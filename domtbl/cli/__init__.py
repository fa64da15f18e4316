"""
Command-line interface for the domtbl pipeline.
"""
