"""FastAPI backend for chatsplit."""
