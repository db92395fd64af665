"""
Live auction server: real-time multi-team player bidding.
"""
