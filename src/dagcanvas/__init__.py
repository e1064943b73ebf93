"""dagcanvas: interactive directed graph editing with live DAG validation."""

__version__ = "0.3.0"
