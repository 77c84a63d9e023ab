"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskFilter) and JSON conversion
- errors.py: error taxonomy shared by the store, the API and the client
- task_store.py: in-memory authoritative store
"""
