"""API middleware: request IDs and RFC 7807 error responses."""
