"""HTTP and WebSocket surface of the Pryvo backend."""
