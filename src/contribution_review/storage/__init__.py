"""Evidence file storage."""
