"""Service layer: storage backends, settings and workspace persistence."""
