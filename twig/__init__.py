"""twig: a small single-user version-control engine."""

__version__ = "0.1.0"
