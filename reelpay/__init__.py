"""reelpay: campaign budget accounting and verification-to-payout pipeline.

The ``services`` package is the core; ``api`` and ``main`` form the thin HTTP
shell around it.
"""

__version__ = "1.0.0"

__all__: list[str] = ["__version__"]
