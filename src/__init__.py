"""JSON Transform Service.

Validates and executes declarative JSON-to-JSON transform specifications
(shift, default, remove, cardinality, sort, chain) and loads custom
transform classes from a configurable module path.
"""

__version__ = "0.1.0"
