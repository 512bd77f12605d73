"""REST/WebSocket bridge for renderers."""
