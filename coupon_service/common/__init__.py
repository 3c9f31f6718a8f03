"""
Common utilities: status codes, logging, errors, CLI, identity and security
"""
