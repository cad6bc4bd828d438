"""Raw readout data scanning: configuration, CDP input scanning, link filtering, statistics and reports."""

__version__ = "0.1.0"