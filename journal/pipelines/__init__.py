"""
Pipelines - orchestration across journal services.
"""
