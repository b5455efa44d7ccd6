"""Settings, error taxonomy and the store collaborator."""
