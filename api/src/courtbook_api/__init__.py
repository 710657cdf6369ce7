"""FastAPI application exposing the Courtbook payment core."""
