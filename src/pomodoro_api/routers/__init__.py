"""HTTP routers: tasks, sessions and summary."""
