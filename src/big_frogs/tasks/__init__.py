"""
Task subsystem.

Components:
- task_models.py: data structures (FrogTask, DailyTask, PersistedState)
- task_codec.py: JSON at-rest format for PersistedState
- rollover.py: the once-per-day rollover policy and its two transforms
- task_store.py: rollover-aware stores (BigFrogStore, DailyTaskStore)
- reminder_scheduler.py: evening reminder for unfinished daily tasks
"""
