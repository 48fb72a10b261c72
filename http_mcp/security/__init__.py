"""
Security helpers: masking of credentials in logs.
"""
