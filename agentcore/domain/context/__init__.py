# This module handles the conversation context of an agent run

# +---------------------+
# |   Context sources   |   (Fetched once, at seed time)
# |---------------------|
# | Reference documents |
# | Skills / resources  |
# +---------------------+
#            |
#            v
# +------------------------------+
# |   ConversationContextManager |   (Live, append-only history)
# |------------------------------|
# | System prompt + context      |
# | Assistant replies            |
# | Tool results / denials       |
# +------------------------------+
#      |                  |
#      | over budget      | every N iterations
#      v                  v
# [CompactionStrategy]  [CheckpointStore]
#  summary replaces      independent snapshot
#  older messages        per (run, checkpoint)

from .context_aggregator import ContextAggregator, ContextSource, StaticContextSource
from .context_manager import ConversationContextManager
from .token_estimator import DefaultTokenEstimator, TokenEstimator
