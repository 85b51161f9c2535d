"""Gateway proxy API for the prompt studio.

The FastAPI application lives in :mod:`larchviz.api.main`; request models
are in :mod:`larchviz.api.models`.
"""
