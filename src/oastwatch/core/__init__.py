"""
OASTWatch core infrastructure: configuration, logging and the error hierarchy.
"""
