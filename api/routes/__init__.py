"""api/routes/ -- One APIRouter per resource; registered in api/main.py."""
