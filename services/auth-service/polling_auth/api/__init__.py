"""HTTP surface of the authentication service."""
