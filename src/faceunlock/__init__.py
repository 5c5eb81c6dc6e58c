"""Local data and session layer for the face-unlock manager."""
