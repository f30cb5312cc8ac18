"""Creative studio orchestration: request builders, retry, polling, and materialization."""
