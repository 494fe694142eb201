"""
Domain services: activity reconciliation, review likes, friends and users.
"""
