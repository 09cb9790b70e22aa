"""
Scheduling for the pgvector store

- cron: parsing and validation of start/stop expressions
- rds_scheduler: EventBridge Scheduler rules and their IAM role
"""
