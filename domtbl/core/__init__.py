"""
Shared runtime setup for the domtbl pipeline.
"""
