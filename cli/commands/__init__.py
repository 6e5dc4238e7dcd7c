"""
CLI command groups
"""
