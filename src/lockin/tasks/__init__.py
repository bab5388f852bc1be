"""
Task subsystem.

Components:
- task_models.py: data structures (Task)
- task_store.py: task codec, id generation and the persisted TaskStore
- task_scheduler.py: permission-gated reminder poller (ReminderScheduler)
- profile.py: username and the default "notify me" preference
"""
