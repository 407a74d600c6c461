"""Service layer for hidden profile logic and user lifecycle."""
