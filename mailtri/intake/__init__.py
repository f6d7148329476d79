"""
Mail intake: raw email bytes to normalized records.
"""
