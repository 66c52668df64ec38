"""Entry point for ``python -m storycard_tasks``."""

from storycard_tasks.cli import app

app(prog_name="storycard-tasks")
