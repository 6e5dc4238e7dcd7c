"""
Command line interface for the cross-market correlation engine
"""
