"""Transform facade: validation, execution and saved templates.

Dispatches transform names to the transform engine in ``src.jolt`` and
resolves custom transform classes through ``src.modules``.
"""
