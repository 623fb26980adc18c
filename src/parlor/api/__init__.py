"""HTTP and WebSocket surface of the Parlor application."""
