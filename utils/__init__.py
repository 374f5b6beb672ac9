"""Request, upload and authorization helpers."""
