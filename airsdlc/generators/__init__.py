"""
Generators for workspace reports.

- trace_md: Traceability matrix (TRACE.md)
"""

from airsdlc.generators.trace_md import generate_trace_md

__all__ = ["generate_trace_md"]
