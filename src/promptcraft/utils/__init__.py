"""
Utility modules for promptcraft: exceptions and the trailing debouncer.
"""
