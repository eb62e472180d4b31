"""Infrastructure: SQLAlchemy persistence for tasks, workflows and correspondence."""
