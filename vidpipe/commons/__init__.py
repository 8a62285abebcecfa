"""Cross-cutting infrastructure: settings, telemetry and providers."""
