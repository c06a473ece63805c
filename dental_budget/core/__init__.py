"""
Core logic - annotation surfaces and budget computation.
"""
