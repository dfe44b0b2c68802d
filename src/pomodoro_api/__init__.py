"""
Pomodoro tracker REST API.

Tasks, focus/break sessions and daily summaries served by FastAPI. The app
instance lives in pomodoro_api.main.
"""

__version__ = "0.1.0"
