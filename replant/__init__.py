"""replant: analyze a Flutter app and rebuild it through generation modules."""

__version__ = "0.1.0"
