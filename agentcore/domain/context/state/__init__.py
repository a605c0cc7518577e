# State = everything required to resume a run at a given iteration:
# the conversation snapshot, the step that captured it and the run's properties.

from .checkpoint_store import CheckpointStore, FileCheckpointStore, InMemoryCheckpointStore
