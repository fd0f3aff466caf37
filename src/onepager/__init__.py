"""onepager - compose one-pagers from reorderable blocks with AI-assisted refinement."""

__version__ = "0.1.0"
