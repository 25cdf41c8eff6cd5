"""
PayPal payout services
"""
