"""
animflow: headless execution engine for animation flow graphs.

Evaluates a DAG of typed nodes that place, style and time scene objects,
producing absolute-time scene animations per object and one scene replica
per batch key.
"""

__version__ = "0.1.0"
