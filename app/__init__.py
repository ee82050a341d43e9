"""Environment collaborators: transport, loaders, notifier, settings."""
