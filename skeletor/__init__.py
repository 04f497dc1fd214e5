"""skeletor -- scaffolding generator for Porter mixins."""

__version__ = "1.0.0"
