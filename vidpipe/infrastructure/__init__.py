"""Infrastructure layer - repositories, media tooling, URL signing and wiring."""
