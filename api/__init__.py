"""api/ -- FastAPI application, request/response models, and routes."""
