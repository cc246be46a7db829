"""
Junction port connectivity and placement engine.

The engine lives in ``junction.ports`` and works on the records defined in
``junction.nodes``; ``junction.ui`` draws them with PySide6.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
