"""
Payments HTTP package
"""
