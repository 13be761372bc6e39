"""Live-reload development server."""
