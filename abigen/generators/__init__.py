"""Generation pipeline: schema source -> IR -> bindings on disk."""
