"""
HTTP blueprints.
"""
