"""
Service layer: form actions, session handling and read queries.
"""
