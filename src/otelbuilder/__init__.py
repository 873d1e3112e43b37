"""otelbuilder - custom OpenTelemetry Collector distribution builder."""

__version__ = "0.1.0"
