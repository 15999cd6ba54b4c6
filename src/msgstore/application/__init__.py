"""Application layer — store ports and backend-independent behaviour."""
